# SPDX-License-Identifier: AGPL-3.0-only

"""
Tests for the async job store.
"""

import uuid
from datetime import datetime, timedelta, timezone

from market_trends.jobs import (
    ANALYSIS_JOBS,
    ANALYSIS_JOBS_LOCK,
    create_job,
    get_job,
    mark_job_superseded,
    prune_finished_jobs,
    set_job_error,
    set_job_result,
    update_job,
)


def new_job():
    job_id = str(uuid.uuid4())
    create_job(job_id, {"subject": "Florist"})
    return job_id


def age_job(job_id, seconds):
    stamp = (datetime.now(timezone.utc) - timedelta(seconds=seconds)).isoformat()
    with ANALYSIS_JOBS_LOCK:
        ANALYSIS_JOBS[job_id]["finished_at"] = stamp


class TestJobLifecycle:
    """Test job status transitions."""

    def test_create_and_update(self):
        job_id = new_job()
        assert get_job(job_id)["status"] == "pending"
        update_job(job_id, {"status": "processing"})
        assert get_job(job_id)["status"] == "processing"

    def test_get_job_returns_copy(self):
        job_id = new_job()
        get_job(job_id)["status"] = "tampered"
        assert get_job(job_id)["status"] == "pending"

    def test_result_error_and_superseded(self):
        done, failed, stale = new_job(), new_job(), new_job()
        set_job_result(done, {"subject": "Florist"}, {"llm_calls": 1})
        set_job_error(failed, {"error_type": "rate_limited"})
        mark_job_superseded(stale)

        assert get_job(done)["status"] == "completed"
        assert get_job(done)["metrics"] == {"llm_calls": 1}
        assert get_job(failed)["error"] == {"error_type": "rate_limited"}
        assert get_job(stale)["status"] == "superseded"
        assert all(get_job(j)["finished_at"] for j in (done, failed, stale))

    def test_missing_job(self):
        assert get_job("missing") is None
        update_job("missing", {"status": "processing"})


class TestJobEviction:
    """Finished jobs expire; running ones are kept."""

    def test_prune_drops_only_expired_finished_jobs(self):
        expired, recent, running = new_job(), new_job(), new_job()
        set_job_result(expired, {})
        set_job_result(recent, {})
        update_job(running, {"status": "processing"})
        age_job(expired, 7200)

        prune_finished_jobs(3600)

        assert get_job(expired) is None
        assert get_job(recent) is not None
        assert get_job(running) is not None

    def test_create_job_evicts_expired(self):
        old = new_job()
        set_job_error(old, {"error_type": "upstream_error"})
        age_job(old, 7200)

        new_job()

        assert get_job(old) is None
