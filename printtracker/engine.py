"""Job aggregate engine.

Keeps a job's total estimated time, progress and status in line with its
current items. Every item mutation must be followed by ``recompute``.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, Optional
from .errors import JobNotFoundError
from .models import Job, JobItem, JobStatus
from .storage import Storage

logger = logging.getLogger(__name__)


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer nearest to numerator / denominator, halves rounded up.

    denominator must be positive.
    """
    return (2 * numerator + denominator) // (2 * denominator)


def total_time(items: Iterable[JobItem]) -> int:
    return sum((item.estimated_time_per_item or 0) * item.quantity for item in items)


def progress_for(items: Iterable[JobItem]) -> int:
    """Percentage of item units completed, 0 when there are no units."""
    total_units = 0
    done_units = 0
    for item in items:
        total_units += item.quantity
        done_units += item.completed_quantity or 0
    if total_units <= 0:
        return 0
    return max(0, min(100, round_half_up(100 * done_units, total_units)))


def status_for(progress: int) -> JobStatus:
    if progress <= 0:
        return JobStatus.NOT_STARTED
    if progress >= 100:
        return JobStatus.COMPLETED
    return JobStatus.PRINTING


def completion_fields(job: Job, new_status: JobStatus, now: datetime) -> Dict[str, Optional[datetime]]:
    """completed_at change implied by moving job to new_status.

    Stamped on entering completed, kept while completed, cleared on leaving.
    """
    was_completed = job.status == JobStatus.COMPLETED
    if new_status == JobStatus.COMPLETED:
        if was_completed and job.completed_at is not None:
            return {}
        return {"completed_at": now}
    if was_completed or job.completed_at is not None:
        return {"completed_at": None}
    return {}


class JobAggregateEngine:
    """Recomputes derived job fields from job items."""

    def __init__(self, storage: Storage, clock: Callable[[], datetime] = datetime.now):
        self.storage = storage
        self.clock = clock

    def _require_job(self, job_id: int) -> Job:
        job = self.storage.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def recompute_total_time(self, job_id: int) -> Job:
        """Write the sum of per-item time times quantity onto the job."""
        self._require_job(job_id)
        minutes = total_time(self.storage.list_items(job_id))
        logger.debug("Job %s total_estimated_time=%s", job_id, minutes)
        return self.storage.write_job(job_id, {"total_estimated_time": minutes})

    def recompute_progress_and_status(self, job_id: int) -> Job:
        """Write progress and the status derived from it onto the job.

        The derived status always replaces the stored one, paused included.
        """
        job = self._require_job(job_id)
        progress = progress_for(self.storage.list_items(job_id))
        status = status_for(progress)
        fields = {"progress": progress, "status": status}
        fields.update(completion_fields(job, status, self.clock()))
        logger.debug("Job %s progress=%s status=%s", job_id, progress, status.value)
        return self.storage.write_job(job_id, fields)

    def recompute(self, job_id: int) -> Job:
        """Run both recomputations back to back."""
        self.recompute_total_time(job_id)
        return self.recompute_progress_and_status(job_id)

