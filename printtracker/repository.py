"""Repository over the entity store.

Every job item mutation is followed by a recompute of the owning job, inside
the same call, so callers never observe stale derived fields.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional
from .engine import JobAggregateEngine, completion_fields, round_half_up
from .errors import CustomerNotFoundError, JobItemNotFoundError, JobNotFoundError
from .models import (
    Customer,
    CustomerCreate,
    CustomerUpdate,
    Job,
    JobCreate,
    JobItem,
    JobItemCreate,
    JobItemUpdate,
    JobStats,
    JobStatus,
    JobUpdate,
    JobWithDetails,
    Notification,
    NotificationCreate,
    NotificationType,
)
from .storage import Storage

logger = logging.getLogger(__name__)

DEFAULT_NOTIFICATION_MESSAGE = "Status update notification sent"


class Repository:
    """CRUD for customers, jobs, job items and notifications, plus stats."""

    def __init__(self, storage: Optional[Storage] = None, clock: Callable[[], datetime] = datetime.now):
        self.storage = storage if storage is not None else Storage()
        self.clock = clock
        self.engine = JobAggregateEngine(self.storage, clock)

    def next_job_number(self) -> str:
        """Format the next job number as <year>-<seq>, seq padded to 3 digits."""
        year = self.clock().year
        return f"{year}-{self.storage.next_value('job_number'):03d}"

    # Customers

    def create_customer(self, data: CustomerCreate) -> Customer:
        customer = Customer(id=self.storage.next_value("customers"), **data.model_dump())
        self.storage.customers[customer.id] = customer
        logger.info("Created customer %s (%s)", customer.id, customer.email)
        return customer

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        return self.storage.customers.get(customer_id)

    def get_customer_by_email(self, email: str) -> Optional[Customer]:
        for customer in self.storage.customers.values():
            if customer.email == email:
                return customer
        return None

    def list_customers(self) -> List[Customer]:
        return list(self.storage.customers.values())

    def update_customer(self, customer_id: int, update: CustomerUpdate) -> Customer:
        existing = self.storage.customers.get(customer_id)
        if existing is None:
            raise CustomerNotFoundError(customer_id)
        updated = Customer(**{**existing.model_dump(), **update.changes()})
        self.storage.customers[customer_id] = updated
        return updated

    def delete_customer(self, customer_id: int) -> None:
        """Delete a customer. Their jobs are left in place."""
        if self.storage.customers.pop(customer_id, None) is None:
            raise CustomerNotFoundError(customer_id)
        logger.info("Deleted customer %s", customer_id)

    # Jobs

    def create_job(self, data: JobCreate, items: Optional[Iterable[dict]] = None) -> Job:
        """Create a job, optionally with initial items.

        Item dicts take JobItemCreate fields without job_id.
        """
        if data.customer_id not in self.storage.customers:
            raise CustomerNotFoundError(data.customer_id)
        # Validated before the job takes an id or a number; job_id is filled in below.
        drafts = [JobItemCreate(**{**item, "job_id": 0}) for item in items or []]
        job = Job(
            id=self.storage.next_value("jobs"),
            job_number=self.next_job_number(),
            created_at=self.clock(),
            **data.model_dump(),
        )
        if job.status == JobStatus.COMPLETED:
            job.completed_at = job.created_at
        self.storage.jobs[job.id] = job
        logger.info("Created job %s (%s)", job.id, job.job_number)

        for draft in drafts:
            self.create_item(draft.model_copy(update={"job_id": job.id}))
        return self.storage.jobs[job.id]

    def get_job(self, job_id: int) -> Optional[Job]:
        return self.storage.get_job(job_id)

    def get_job_with_details(self, job_id: int) -> Optional[JobWithDetails]:
        """Job joined with its customer and items. None if either is missing."""
        job = self.storage.get_job(job_id)
        if job is None:
            return None
        customer = self.storage.customers.get(job.customer_id)
        if customer is None:
            return None
        return JobWithDetails(
            **job.model_dump(),
            customer=customer,
            items=self.storage.list_items(job_id),
        )

    def list_jobs(self, status: Optional[JobStatus] = None) -> List[JobWithDetails]:
        """All jobs with details, newest first.

        Jobs whose customer no longer exists are skipped.
        """
        jobs = []
        for job_id in self.storage.jobs:
            details = self.get_job_with_details(job_id)
            if details is None:
                continue
            if status is not None and details.status != status:
                continue
            jobs.append(details)
        jobs.sort(key=lambda j: (j.created_at, j.id), reverse=True)
        return jobs

    def update_job(self, job_id: int, update: JobUpdate) -> Job:
        existing = self.storage.get_job(job_id)
        if existing is None:
            raise JobNotFoundError(job_id)
        fields = update.changes()
        if "customer_id" in fields and fields["customer_id"] not in self.storage.customers:
            raise CustomerNotFoundError(fields["customer_id"])
        if fields.get("status") is not None:
            fields.update(completion_fields(existing, JobStatus(fields["status"]), self.clock()))
        return self.storage.write_job(job_id, fields)

    def delete_job(self, job_id: int) -> None:
        """Delete a job together with its items."""
        if job_id not in self.storage.jobs:
            raise JobNotFoundError(job_id)
        for item in self.storage.list_items(job_id):
            del self.storage.job_items[item.id]
        del self.storage.jobs[job_id]
        logger.info("Deleted job %s", job_id)

    # Job items

    def list_items(self, job_id: int) -> List[JobItem]:
        return self.storage.list_items(job_id)

    def get_item(self, item_id: int) -> Optional[JobItem]:
        return self.storage.job_items.get(item_id)

    def create_item(self, data: JobItemCreate) -> JobItem:
        if self.storage.get_job(data.job_id) is None:
            raise JobNotFoundError(data.job_id)
        item = JobItem(id=self.storage.next_value("job_items"), **data.model_dump())
        self.storage.job_items[item.id] = item
        self.engine.recompute(item.job_id)
        return item

    def update_item(self, item_id: int, update: JobItemUpdate) -> JobItem:
        existing = self.storage.job_items.get(item_id)
        if existing is None:
            raise JobItemNotFoundError(item_id)
        updated = JobItem(**{**existing.model_dump(), **update.changes()})
        self.storage.job_items[item_id] = updated
        self.engine.recompute(updated.job_id)
        return updated

    def delete_item(self, item_id: int) -> None:
        item = self.storage.job_items.pop(item_id, None)
        if item is None:
            raise JobItemNotFoundError(item_id)
        self.engine.recompute(item.job_id)

    # Notifications

    def create_notification(self, data: NotificationCreate) -> Notification:
        if self.storage.get_job(data.job_id) is None:
            raise JobNotFoundError(data.job_id)
        notification = Notification(
            id=self.storage.next_value("notifications"),
            sent_at=self.clock(),
            **data.model_dump(),
        )
        self.storage.notifications[notification.id] = notification
        return notification

    def list_notifications(self, job_id: int) -> List[Notification]:
        """Notifications for a job, newest first."""
        notifications = [n for n in self.storage.notifications.values() if n.job_id == job_id]
        notifications.sort(key=lambda n: (n.sent_at, n.id), reverse=True)
        return notifications

    def notify_customer(
        self,
        job_id: int,
        message: Optional[str] = None,
        type: NotificationType = NotificationType.STATUS_UPDATE,
    ) -> Notification:
        """Record a notification addressed to the job's customer."""
        details = self.get_job_with_details(job_id)
        if details is None:
            raise JobNotFoundError(job_id)
        notification = self.create_notification(
            NotificationCreate(
                job_id=job_id,
                type=type,
                message=message or DEFAULT_NOTIFICATION_MESSAGE,
                recipient_email=details.customer.email,
            )
        )
        logger.info("Notified %s about job %s", notification.recipient_email, details.job_number)
        return notification

    # Stats

    def get_stats(self) -> JobStats:
        """Get job statistics."""
        jobs = list(self.storage.jobs.values())
        start_of_day = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)

        stats = JobStats()
        total_minutes = 0
        for job in jobs:
            if job.status in (JobStatus.PRINTING, JobStatus.PAUSED):
                stats.active_jobs += 1
            elif job.status == JobStatus.NOT_STARTED:
                stats.queue_length += 1
            elif job.status == JobStatus.COMPLETED and job.completed_at is not None:
                if job.completed_at >= start_of_day:
                    stats.completed_today += 1
            total_minutes += job.total_estimated_time or 0

        stats.total_print_time = round_half_up(total_minutes, 60)
        return stats
