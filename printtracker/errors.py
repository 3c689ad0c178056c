"""Exceptions raised by the repository and the aggregate engine."""


class PrintTrackerError(Exception):
    """Base class for printtracker errors."""


class NotFoundError(PrintTrackerError, LookupError):
    """Raised when a mutation targets a record that does not exist."""

    entity = "Record"

    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"{self.entity} {record_id} not found")


class CustomerNotFoundError(NotFoundError):
    entity = "Customer"


class JobNotFoundError(NotFoundError):
    entity = "Job"


class JobItemNotFoundError(NotFoundError):
    entity = "Job item"
