"""File copy operation between two filesystems."""

import logging
from typing import Any, BinaryIO

from ..exceptions import MtimeError, ReadError, WriteError
from ..vfs.base import FileSystem

logger = logging.getLogger(__name__)


class _SourceReader:
    """Wraps a source stream so read failures surface as ReadError.

    The destination backend sees a plain readable object; anything that
    goes wrong while pulling data from the source is re-raised as ReadError
    and passes through the backend untouched.
    """

    def __init__(self, stream: BinaryIO, path: str):
        self._stream = stream
        self._path = path

    def read(self, size: int = -1) -> bytes:
        try:
            return self._stream.read(size)
        except Exception as e:
            raise ReadError(f"Error reading source file ({e})", self._path) from e

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> "_SourceReader":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class SyncOperations:
    """Copies single files from a source to a destination filesystem."""

    def __init__(self, src_fs: FileSystem, dst_fs: FileSystem):
        """Initialize sync operations.

        Args:
            src_fs: Filesystem files are read from
            dst_fs: Filesystem files are written to
        """
        self.src_fs = src_fs
        self.dst_fs = dst_fs

    def copy_file(self, src_path: str, dst_path: str, in_place: bool = False) -> None:
        """Copy a file and give the copy the source's modification time.

        Args:
            src_path: Source file path
            dst_path: Destination file path
            in_place: Overwrite the destination directly instead of writing
                a temporary file and renaming it

        Raises:
            ReadError: If the source cannot be opened or read
            WriteError: If the destination cannot be written
            MtimeError: If the modification time cannot be transferred
        """
        try:
            stream = self.src_fs.open_read(src_path)
        except Exception as e:
            raise ReadError(f"Unable to open source file ({e})", src_path) from e

        with _SourceReader(stream, src_path) as reader:
            try:
                self.dst_fs.write_file(dst_path, reader, in_place=in_place)  # type: ignore[arg-type]
            except ReadError:
                raise
            except Exception as e:
                raise WriteError(f"Unable to write file ({e})", dst_path) from e

        try:
            mtime = self.src_fs.mtime(src_path)
        except Exception as e:
            raise MtimeError(f"Unable to read modification time ({e})", src_path) from e

        try:
            self.dst_fs.set_mtime(dst_path, mtime)
        except Exception as e:
            raise MtimeError(f"Unable to set modification time ({e})", dst_path) from e

        logger.debug("Copied %s -> %s", src_path, dst_path)
