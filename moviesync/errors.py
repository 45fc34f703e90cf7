"""Error taxonomy for the sync layer."""

from typing import Optional

UNKNOWN_ERROR = "unknown error"


class SyncError(Exception):
    """Base class for everything the sync layer raises."""

    def __init__(self, message: Optional[str] = None):
        self.message = message or UNKNOWN_ERROR
        super().__init__(self.message)


class TransportFailure(SyncError):
    """The remote catalog could not be reached (no response at all)."""


class ApiError(SyncError):
    """The remote catalog answered, but not with a usable success body."""

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DataError(SyncError):
    """A single record is malformed; it is dropped, the batch survives."""
