"""Virtual filesystem interface shared by all storage backends."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import BinaryIO


class EntryKind(str, Enum):
    """Classification of a filesystem entry."""

    DIRECTORY = "directory"
    """Directory (folder)"""

    FILE = "file"
    """Regular file"""

    OTHER = "other"
    """Anything else: device, socket, FIFO, ..."""


class FileSystem(ABC):
    """Capability interface a storage backend implements to be synced.

    Paths are plain strings with ``/`` as the separator. Every operation
    raises the backend's own error type on a genuine failure (I/O,
    permission, transport). A missing entry is not a failure for
    ``exists``, which returns False instead, so callers can treat
    "destination missing" as ordinary control flow.
    """

    name: str = "vfs"

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if an entry exists at path."""

    @abstractmethod
    def kind(self, path: str) -> EntryKind:
        """Classify the entry at path."""

    def is_dir(self, path: str) -> bool:
        """Return True if path is a directory."""
        return self.kind(path) is EntryKind.DIRECTORY

    def is_regular(self, path: str) -> bool:
        """Return True if path is a regular file."""
        return self.kind(path) is EntryKind.FILE

    @abstractmethod
    def file_tree(self, root: str) -> list[str]:
        """List root and every entry below it, in no particular order."""

    @abstractmethod
    def mtime(self, path: str) -> float:
        """Return the modification time of path as a POSIX timestamp."""

    @abstractmethod
    def set_mtime(self, path: str, mtime: float) -> None:
        """Set the modification time of path."""

    @abstractmethod
    def mkdir(self, path: str) -> None:
        """Create the directory path. Its parent must already exist."""

    @abstractmethod
    def open_read(self, path: str) -> BinaryIO:
        """Open path for streaming read. The caller closes the stream."""

    @abstractmethod
    def write_file(self, path: str, reader: BinaryIO, in_place: bool = False) -> None:
        """Write the content of reader to path.

        By default the data goes to a temporary entry next to path that is
        renamed over path once complete, so a failure leaves path untouched.
        With ``in_place`` the destination is replaced directly: faster, but
        an interrupted write leaves a partial file behind.

        Errors raised by ``reader`` itself must propagate unchanged.
        """

    @abstractmethod
    def size(self, path: str) -> int:
        """Return the size of path in bytes."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
