"""drivesync - synchronize directory trees between local disk and a cloud drive."""

from .api import DriveClient
from .exceptions import (
    ClassificationError,
    DriveAPIError,
    DriveAuthenticationError,
    DriveConfigError,
    DriveDownloadError,
    DriveFileNotFoundError,
    DriveInvalidResponseError,
    DriveNetworkError,
    DriveNotFoundError,
    DrivePermissionError,
    DriveRateLimitError,
    DriveSyncError,
    DriveUploadError,
    MtimeError,
    PatternError,
    PreconditionError,
    ReadError,
    SyncError,
    TraversalError,
    WriteError,
)
from .sync import SyncEngine, SyncOptions, SyncResult
from .vfs import DriveFileSystem, EntryKind, FileSystem, LocalFileSystem

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "DriveClient",
    "SyncEngine",
    "SyncOptions",
    "SyncResult",
    "FileSystem",
    "EntryKind",
    "LocalFileSystem",
    "DriveFileSystem",
    "DriveSyncError",
    "DriveAPIError",
    "DriveAuthenticationError",
    "DriveConfigError",
    "DriveDownloadError",
    "DriveFileNotFoundError",
    "DriveInvalidResponseError",
    "DriveNetworkError",
    "DriveNotFoundError",
    "DrivePermissionError",
    "DriveRateLimitError",
    "DriveUploadError",
    "SyncError",
    "PreconditionError",
    "TraversalError",
    "ClassificationError",
    "PatternError",
    "WriteError",
    "MtimeError",
    "ReadError",
]
