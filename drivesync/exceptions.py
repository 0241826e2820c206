"""Exception hierarchy for drivesync."""

from typing import Optional


class DriveSyncError(Exception):
    """Base exception for all drivesync errors."""


# =============================================================================
# Remote drive API errors
# =============================================================================


class DriveAPIError(DriveSyncError):
    """Base exception for remote drive API errors."""


class DriveAuthenticationError(DriveAPIError):
    """Invalid API key or unauthorized access."""


class DriveConfigError(DriveAPIError):
    """Missing or invalid client configuration."""


class DriveDownloadError(DriveAPIError):
    """A file download failed."""


class DriveUploadError(DriveAPIError):
    """A file upload failed."""


class DriveInvalidResponseError(DriveAPIError):
    """The server returned a response that could not be understood."""


class DriveNetworkError(DriveAPIError):
    """Network-level failure talking to the API."""


class DriveNotFoundError(DriveAPIError):
    """The requested resource does not exist (HTTP 404)."""


class DriveFileNotFoundError(DriveAPIError):
    """A path could not be resolved to a drive entry."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No such file or folder: {path}")


class DrivePermissionError(DriveAPIError):
    """Access forbidden (HTTP 403)."""


class DriveRateLimitError(DriveAPIError):
    """Rate limit exceeded (HTTP 429)."""


# =============================================================================
# Synchronization errors
# =============================================================================


class SyncError(DriveSyncError):
    """Base exception for synchronization failures.

    Every sync error carries the path that triggered it so the caller can
    report exactly where a run stopped.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        if path is not None:
            super().__init__(f'{message}: "{path}"')
        else:
            super().__init__(message)


class PreconditionError(SyncError):
    """Destination root is missing or not a directory."""


class TraversalError(SyncError):
    """Enumerating the source tree failed."""


class ClassificationError(SyncError):
    """Reading the type or metadata of an entry failed."""


class PatternError(SyncError):
    """An exclusion glob is syntactically invalid."""

    def __init__(self, message: str, pattern: str, path: Optional[str] = None):
        self.pattern = pattern
        super().__init__(f"{message} in pattern {pattern!r}", path)


class WriteError(SyncError):
    """Creating a directory or writing a file at the destination failed."""


class MtimeError(SyncError):
    """Reading or setting a modification time failed."""


class ReadError(SyncError):
    """Reading a source file failed.

    This is the only recoverable sync error: the engine logs it, skips the
    entry and carries on with the run.
    """
