"""Data models for customers, jobs, job items and notifications."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class JobStatus(str, Enum):
    """Job lifecycle states."""
    NOT_STARTED = "not_started"
    PRINTING = "printing"
    PAUSED = "paused"
    COMPLETED = "completed"


class JobPriority(str, Enum):
    """Job priority levels."""
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class NotificationType(str, Enum):
    """Kinds of outbound customer notifications."""
    STATUS_UPDATE = "status_update"
    COMPLETION = "completion"
    DELAY = "delay"


class Patch(BaseModel):
    """Optional-valued variant of an entity's writable fields.

    Only fields that were explicitly given are applied.
    """

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


def _not_null(value):
    if value is None:
        raise ValueError("may not be null")
    return value


class CustomerCreate(BaseModel):
    """Customer creation payload."""
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None


class Customer(CustomerCreate):
    id: int


class CustomerUpdate(Patch):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None

    @field_validator("name", "email")
    @classmethod
    def reject_null(cls, value):
        return _not_null(value)


class JobCreate(BaseModel):
    """Job creation payload. Derived fields are not accepted here."""
    customer_id: int
    status: JobStatus = JobStatus.NOT_STARTED
    priority: JobPriority = JobPriority.NORMAL
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    actual_time: Optional[int] = None  # minutes


class Job(JobCreate):
    """A print-production order for a customer."""
    id: int
    job_number: str
    total_estimated_time: int = 0  # minutes
    progress: int = 0  # percentage 0-100
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None


class JobUpdate(Patch):
    customer_id: Optional[int] = None
    status: Optional[JobStatus] = None
    priority: Optional[JobPriority] = None
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    actual_time: Optional[int] = None

    @field_validator("customer_id", "status", "priority")
    @classmethod
    def reject_null(cls, value):
        return _not_null(value)


class JobItemCreate(BaseModel):
    """Line item payload."""
    job_id: int
    name: str
    quantity: int
    estimated_time_per_item: Optional[int] = 0  # minutes per unit
    completed_quantity: int = 0
    actual_time_per_item: Optional[int] = None
    material: Optional[str] = None
    notes: Optional[str] = None
    status: str = "not_started"  # free-form tag, never derived


class JobItem(JobItemCreate):
    id: int


class JobItemUpdate(Patch):
    name: Optional[str] = None
    quantity: Optional[int] = None
    estimated_time_per_item: Optional[int] = None
    completed_quantity: Optional[int] = None
    actual_time_per_item: Optional[int] = None
    material: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None

    @field_validator("name", "quantity", "completed_quantity", "status")
    @classmethod
    def reject_null(cls, value):
        return _not_null(value)


class NotificationCreate(BaseModel):
    job_id: int
    type: NotificationType = NotificationType.STATUS_UPDATE
    message: str
    recipient_email: str


class Notification(NotificationCreate):
    """Record of a message sent to a customer. Never mutated."""
    id: int
    sent_at: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}


class JobWithDetails(Job):
    """A job joined with its customer and items."""
    customer: Customer
    items: List[JobItem] = Field(default_factory=list)


class JobStats(BaseModel):
    """Dashboard aggregates."""
    active_jobs: int = 0
    completed_today: int = 0
    total_print_time: int = 0  # hours
    queue_length: int = 0
