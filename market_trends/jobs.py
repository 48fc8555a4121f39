# SPDX-License-Identifier: AGPL-3.0-only

"""
Job storage and lifecycle management for async market analyses.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional


# In-memory job storage; nothing is persisted across restarts
ANALYSIS_JOBS: Dict[str, Dict[str, Any]] = {}
ANALYSIS_JOBS_LOCK = threading.Lock()

FINISHED_STATUSES = ("completed", "failed", "superseded")

# Finished jobs older than this are dropped when new jobs arrive
JOB_RETENTION_SECONDS = 3600


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_job(job_id: str, params: Dict[str, Any]) -> None:
    """Create a new analysis job, evicting expired finished jobs."""
    with ANALYSIS_JOBS_LOCK:
        _prune_locked(JOB_RETENTION_SECONDS)
        ANALYSIS_JOBS[job_id] = {
            "job_id": job_id,
            "status": "pending",
            "created_at": _now(),
            "finished_at": None,
            "params": params,
            "result": None,
            "error": None,
            "metrics": {}
        }


def prune_finished_jobs(max_age_seconds: float = JOB_RETENTION_SECONDS) -> int:
    """Drop finished jobs older than ``max_age_seconds``; return how many."""
    with ANALYSIS_JOBS_LOCK:
        return _prune_locked(max_age_seconds)


def _prune_locked(max_age_seconds: float) -> int:
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=max_age_seconds)
    expired = [
        job_id for job_id, job in ANALYSIS_JOBS.items()
        if job["status"] in FINISHED_STATUSES
        and job["finished_at"]
        and datetime.fromisoformat(job["finished_at"]) <= cutoff
    ]
    for job_id in expired:
        del ANALYSIS_JOBS[job_id]
    return len(expired)


def update_job(job_id: str, updates: Dict[str, Any]) -> None:
    """Update job status."""
    with ANALYSIS_JOBS_LOCK:
        if job_id in ANALYSIS_JOBS:
            ANALYSIS_JOBS[job_id].update(updates)


def get_job(job_id: str) -> Optional[Dict[str, Any]]:
    """Get a copy of a job by ID."""
    with ANALYSIS_JOBS_LOCK:
        job = ANALYSIS_JOBS.get(job_id)
        return dict(job) if job else None


def set_job_result(job_id: str, result: Dict[str, Any], metrics: Optional[Dict[str, Any]] = None) -> None:
    """Set job result and mark as completed."""
    with ANALYSIS_JOBS_LOCK:
        if job_id in ANALYSIS_JOBS:
            ANALYSIS_JOBS[job_id]["result"] = result
            ANALYSIS_JOBS[job_id]["status"] = "completed"
            ANALYSIS_JOBS[job_id]["finished_at"] = _now()
            if metrics:
                ANALYSIS_JOBS[job_id]["metrics"] = metrics


def set_job_error(job_id: str, error: Dict[str, Any], metrics: Optional[Dict[str, Any]] = None) -> None:
    """Set job error and mark as failed."""
    with ANALYSIS_JOBS_LOCK:
        if job_id in ANALYSIS_JOBS:
            ANALYSIS_JOBS[job_id]["error"] = error
            ANALYSIS_JOBS[job_id]["status"] = "failed"
            ANALYSIS_JOBS[job_id]["finished_at"] = _now()
            if metrics:
                ANALYSIS_JOBS[job_id]["metrics"] = metrics


def mark_job_superseded(job_id: str) -> None:
    """Mark a job whose session moved on before it finished."""
    with ANALYSIS_JOBS_LOCK:
        if job_id in ANALYSIS_JOBS:
            ANALYSIS_JOBS[job_id]["status"] = "superseded"
            ANALYSIS_JOBS[job_id]["finished_at"] = _now()
