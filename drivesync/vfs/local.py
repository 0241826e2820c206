"""Local disk backend."""

import logging
import os
import shutil
import stat
import tempfile
from typing import BinaryIO

from .base import EntryKind, FileSystem

logger = logging.getLogger(__name__)


def _raise_walk_error(error: OSError) -> None:
    raise error


class LocalFileSystem(FileSystem):
    """Local disk filesystem.

    Symbolic links are followed for classification and metadata, the same
    way ``os.stat`` does, but ``file_tree`` does not descend into linked
    directories.
    """

    name = "local"

    def exists(self, path: str) -> bool:
        try:
            os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return False
        return True

    def kind(self, path: str) -> EntryKind:
        mode = os.stat(path).st_mode
        if stat.S_ISDIR(mode):
            return EntryKind.DIRECTORY
        if stat.S_ISREG(mode):
            return EntryKind.FILE
        return EntryKind.OTHER

    def file_tree(self, root: str) -> list[str]:
        """List root and everything below it.

        Raises:
            OSError: If any directory in the tree cannot be read
        """
        paths = [root]
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
            for name in dirnames + filenames:
                paths.append(os.path.join(dirpath, name))
        logger.debug("Found %d entries under %s", len(paths), root)
        return paths

    def mtime(self, path: str) -> float:
        return os.stat(path).st_mtime

    def set_mtime(self, path: str, mtime: float) -> None:
        os.utime(path, (mtime, mtime))

    def mkdir(self, path: str) -> None:
        os.mkdir(path)

    def open_read(self, path: str) -> BinaryIO:
        return open(path, "rb")

    def write_file(self, path: str, reader: BinaryIO, in_place: bool = False) -> None:
        """Write the content of reader to path.

        Raises:
            IsADirectoryError: If path exists and is not a regular file
            OSError: If the file cannot be written
        """
        if self.exists(path) and not self.is_regular(path):
            raise IsADirectoryError(f'Local path "{path}" exists and is not a regular file')

        if in_place:
            with open(path, "wb") as f:
                shutil.copyfileobj(reader, f)
            return

        directory, filename = os.path.split(path)
        tmp = tempfile.NamedTemporaryFile(
            dir=directory or ".", prefix=f".{filename}.", suffix=".tmp", delete=False
        )
        try:
            with tmp:
                shutil.copyfileobj(reader, tmp)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp.name, path)
        except BaseException:
            try:
                os.unlink(tmp.name)
            except FileNotFoundError:
                pass
            raise

    def size(self, path: str) -> int:
        return os.stat(path).st_size
