"""Storage backends behind one filesystem interface."""

from .base import EntryKind, FileSystem
from .local import LocalFileSystem
from .remote import DriveFileSystem

__all__ = [
    "EntryKind",
    "FileSystem",
    "LocalFileSystem",
    "DriveFileSystem",
]
