"""In-memory entity store with optional JSON snapshots."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from .models import Customer, Job, JobItem, Notification

logger = logging.getLogger(__name__)

SEQUENCES = ("customers", "jobs", "job_items", "notifications", "job_number")


class Storage:
    """Keyed collections of customers, jobs, job items and notifications.

    Ids come from explicit named sequences that only ever move forward,
    so a deleted id is never handed out again.
    """

    def __init__(self):
        self.customers: Dict[int, Customer] = {}
        self.jobs: Dict[int, Job] = {}
        self.job_items: Dict[int, JobItem] = {}
        self.notifications: Dict[int, Notification] = {}
        self.sequences: Dict[str, int] = {name: 1 for name in SEQUENCES}

    def next_value(self, sequence: str) -> int:
        """Return the next value of a sequence and advance it."""
        value = self.sequences[sequence]
        self.sequences[sequence] = value + 1
        return value

    # Contract used by the aggregate engine

    def get_job(self, job_id: int) -> Optional[Job]:
        """Get a job by ID."""
        return self.jobs.get(job_id)

    def list_items(self, job_id: int) -> List[JobItem]:
        """Get all items belonging to a job, in creation order."""
        return [item for item in self.job_items.values() if item.job_id == job_id]

    def write_job(self, job_id: int, fields: Dict[str, Any]) -> Optional[Job]:
        """Patch fields onto a stored job. Returns None if the job is absent."""
        existing = self.jobs.get(job_id)
        if existing is None:
            return None
        updated = Job(**{**existing.model_dump(), **fields})
        self.jobs[job_id] = updated
        return updated

    # Snapshots

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customers": [c.model_dump(mode="json") for c in self.customers.values()],
            "jobs": [j.model_dump(mode="json") for j in self.jobs.values()],
            "job_items": [i.model_dump(mode="json") for i in self.job_items.values()],
            "notifications": [n.model_dump(mode="json") for n in self.notifications.values()],
            "sequences": dict(self.sequences),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Storage":
        storage = cls()
        for record in data.get("customers", []):
            customer = Customer(**record)
            storage.customers[customer.id] = customer
        for record in data.get("jobs", []):
            job = Job(**record)
            storage.jobs[job.id] = job
        for record in data.get("job_items", []):
            item = JobItem(**record)
            storage.job_items[item.id] = item
        for record in data.get("notifications", []):
            notification = Notification(**record)
            storage.notifications[notification.id] = notification
        storage.sequences.update(data.get("sequences", {}))
        return storage

    def save(self, file_path: Path) -> None:
        """Write a snapshot to a JSON file with atomic write."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = file_path.with_suffix(".tmp")
        with open(temp_file, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)
        temp_file.replace(file_path)
        logger.debug("Saved snapshot to %s", file_path)

    @classmethod
    def load(cls, file_path: Path) -> "Storage":
        """Read a snapshot, or start empty if the file does not exist."""
        file_path = Path(file_path)
        if not file_path.exists():
            return cls()
        with open(file_path, "r") as f:
            return cls.from_dict(json.load(f))
