"""Error taxonomy for the upload relay."""

from robyn import status_codes


class UploadError(Exception):
    """Base class for failures while relaying an upload."""


class ValidationError(UploadError):
    """The incoming file was rejected before staging or any remote call."""

    def __init__(self, message: str, status_code: int = status_codes.HTTP_400_BAD_REQUEST) -> None:
        super().__init__(message)
        self.status_code = status_code


class StagingError(UploadError):
    """The payload could not be written to the scratch directory."""


class RemoteUploadError(UploadError):
    """The storage provider rejected the upload, failed or timed out."""


class StorageProviderError(Exception):
    """Raised by storage provider adapters.

    ``transient`` marks failures worth another attempt (rate limiting,
    provider-side 5xx, dropped connections).
    """

    def __init__(self, message: str, status_code: int | None = None, transient: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.transient = transient
