# SPDX-License-Identifier: AGPL-3.0-only

"""
Flask endpoints for market trend analysis.
"""

import logging
import threading
from typing import Callable, Optional

from flask import jsonify, request
from marshmallow import ValidationError

from .errors import (
    ConfigurationError,
    ExtractionFailure,
    InvalidSubjectError,
    MarketAnalysisError,
    UpstreamAccessError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
)
from .jobs import (
    FINISHED_STATUSES,
    create_job,
    get_job,
    mark_job_superseded,
    set_job_error,
    set_job_result,
    update_job,
)
from .metrics import AnalysisMetrics
from .pipeline import MarketAnalysisPipeline
from .session import AnalysisSession, SessionRegistry, session_registry
from .validators import MarketAnalysisRequestSchema

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidSubjectError: 400,
    ConfigurationError: 500,
    UpstreamRateLimitError: 429,
    UpstreamAccessError: 403,
    UpstreamTimeoutError: 504,
    ExtractionFailure: 422,
}


def status_for_error(error: MarketAnalysisError) -> int:
    """HTTP status for a surfaced error; other upstream failures map to 502."""
    if type(error) is MarketAnalysisError:
        return 500
    for error_class, status in ERROR_STATUS.items():
        if isinstance(error, error_class):
            return status
    return 502


def wrap_unexpected(error: Exception) -> MarketAnalysisError:
    """Wrap a non-taxonomy exception; its text goes to ``detail`` only."""
    return MarketAnalysisError(detail=f"{type(error).__name__}: {error}")


def error_response(error: MarketAnalysisError):
    info = error.to_info()
    return jsonify({"error": info.message, "error_type": info.error_type}), status_for_error(error)


def _publish_error(
    job_id: str, session: AnalysisSession, error: MarketAnalysisError, metrics: AnalysisMetrics
) -> None:
    if session.fail(job_id, error):
        set_job_error(job_id, error.to_info().model_dump(exclude={"details"}), metrics.to_dict())
    else:
        mark_job_superseded(job_id)


def run_analysis_job(
    job_id: str,
    session: AnalysisSession,
    subject: str,
    pipeline_factory: Callable[[], MarketAnalysisPipeline],
) -> None:
    """Run one analysis and publish its outcome unless the session moved on."""
    metrics = AnalysisMetrics()
    update_job(job_id, {"status": "processing"})
    try:
        report = pipeline_factory().analyze(subject, metrics=metrics)
    except MarketAnalysisError as e:
        _publish_error(job_id, session, e, metrics)
        return
    except Exception as e:
        logger.exception("Unexpected error in analysis job %s", job_id)
        error = wrap_unexpected(e)
        metrics.add_error(error.error_type)
        metrics.finish()
        _publish_error(job_id, session, error, metrics)
        return

    if session.resolve(job_id, report):
        set_job_result(job_id, report.to_dict(), metrics.to_dict())
    else:
        logger.info("Discarding stale result for job %s", job_id)
        mark_job_superseded(job_id)


def register_market_endpoints(
    app,
    pipeline_factory: Optional[Callable[[], MarketAnalysisPipeline]] = None,
    registry: Optional[SessionRegistry] = None,
):
    """Register market analysis endpoints with Flask app."""
    pipeline_factory = pipeline_factory or MarketAnalysisPipeline
    registry = registry or session_registry
    schema = MarketAnalysisRequestSchema()

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok"})

    @app.post("/api/market-analysis")
    def market_analysis():
        """Synchronous analysis endpoint - returns the report."""
        try:
            payload = schema.load(request.get_json(silent=True) or {})
        except ValidationError as e:
            return jsonify({"error": "Invalid request", "details": e.messages}), 400

        try:
            report = pipeline_factory().analyze(payload["subject"])
        except MarketAnalysisError as e:
            return error_response(e)
        except Exception as e:
            logger.exception("Unexpected error in market analysis")
            return error_response(wrap_unexpected(e))
        return jsonify(report.to_dict())

    @app.post("/api/market-analysis/async")
    def market_analysis_async():
        """Async analysis endpoint - returns job_id immediately."""
        try:
            payload = schema.load(request.get_json(silent=True) or {})
        except ValidationError as e:
            return jsonify({"error": "Invalid request", "details": e.messages}), 400

        session = registry.get_or_create(payload.get("session_id"))
        job_id = session.begin(payload["subject"])
        create_job(job_id, {"subject": payload["subject"], "session_id": session.session_id})

        thread = threading.Thread(
            target=run_analysis_job,
            args=(job_id, session, payload["subject"], pipeline_factory),
            daemon=True,
        )
        thread.start()

        return jsonify({"job_id": job_id, "session_id": session.session_id}), 202

    @app.get("/api/market-analysis/status/<job_id>")
    def market_analysis_status(job_id: str):
        """Get status of an analysis job."""
        job = get_job(job_id)
        if not job:
            return jsonify({"error": "Job not found"}), 404

        return jsonify({
            "job_id": job_id,
            "status": job["status"],
            "error": job.get("error"),
            "done": job["status"] in FINISHED_STATUSES
        })

    @app.get("/api/market-analysis/result/<job_id>")
    def market_analysis_result(job_id: str):
        """Get result of a completed analysis job."""
        job = get_job(job_id)
        if not job:
            return jsonify({"error": "Job not found"}), 404

        if job["status"] != "completed":
            return jsonify({"error": "Job not completed", "status": job["status"]}), 400

        return jsonify({"report": job["result"], "metrics": job["metrics"]})

    @app.get("/api/market-analysis/session/<session_id>")
    def market_analysis_session(session_id: str):
        """Get the current state of an analysis session."""
        session = registry.get(session_id)
        if not session:
            return jsonify({"error": "Session not found"}), 404
        return jsonify(session.snapshot())

    @app.post("/api/market-analysis/session/<session_id>/reset")
    def market_analysis_session_reset(session_id: str):
        """Discard a session's report and return it to idle."""
        session = registry.get(session_id)
        if not session:
            return jsonify({"error": "Session not found"}), 404
        session.reset()
        return jsonify(session.snapshot())
