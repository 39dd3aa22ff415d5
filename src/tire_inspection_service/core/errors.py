"""Domain errors raised by the upload-and-submit pipeline."""


class InspectionError(Exception):
    """Base class for tire inspection errors"""


class ValidationError(InspectionError):
    """Client input is malformed, missing or out of bounds (HTTP 400)"""


class PersistenceError(InspectionError):
    """Inspection store unreachable or the insert was not acknowledged (HTTP 500)"""


class StorageError(InspectionError):
    """Object store provider failed to mint a credential (HTTP 500)"""


class UploadError(InspectionError):
    """One or more direct-to-storage uploads failed.

    The whole submission must be treated as failed; nothing is reconciled.
    """

    def __init__(self, failed_count: int, total: int):
        self.failed_count = failed_count
        self.total = total
        super().__init__(f"Failed to upload {failed_count} of {total} files")


class NotificationError(InspectionError):
    """Alert email could not be sent. Logged, never surfaced to clients."""
