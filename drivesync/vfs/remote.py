"""Remote drive backend."""

import logging
import secrets
import shutil
import tempfile
from typing import Any, BinaryIO, Optional

from ..api import DriveClient
from ..exceptions import (
    DriveAPIError,
    DriveFileNotFoundError,
    DriveInvalidResponseError,
    DriveNotFoundError,
    DriveUploadError,
)
from ..file_entries_manager import FileEntriesManager, split_path
from ..models import FileEntry
from ..utils import SPOOL_MAX_SIZE, format_iso_timestamp, parse_iso_timestamp
from .base import EntryKind, FileSystem

logger = logging.getLogger(__name__)


def _entry_from_response(response: Any, key: str) -> Optional[FileEntry]:
    """Extract an entry dictionary nested under key from an API response."""
    if isinstance(response, dict):
        data = response.get(key) or response
        if isinstance(data, dict) and "id" in data:
            return FileEntry.from_dict(data)
    return None


class DriveFileSystem(FileSystem):
    """Remote drive filesystem.

    Paths are resolved from the drive root one component at a time. The
    drive has no special files, so every entry that is not a folder is a
    regular file.

    The root folder has no entry of its own: it always exists, is always a
    directory, and its modification time cannot be set.
    """

    name = "drive"

    def __init__(self, client: DriveClient):
        """Initialize the remote filesystem.

        Args:
            client: Drive API client
        """
        self.client = client
        self.manager = FileEntriesManager(client)

    def _is_root(self, path: str) -> bool:
        return not split_path(path)

    def _lookup(self, path: str) -> Optional[FileEntry]:
        try:
            return self.manager.resolve_path(path)
        except DriveNotFoundError:
            return None

    def _entry(self, path: str) -> FileEntry:
        entry = self._lookup(path)
        if entry is None:
            raise DriveFileNotFoundError(path)
        return entry

    def _parent_id(self, path: str) -> Optional[int]:
        """Resolve the folder ID of path's parent (None for the root)."""
        parts = split_path(path)
        if len(parts) <= 1:
            return None
        parent = self._entry("/".join(parts[:-1]))
        if not parent.is_folder:
            raise DriveAPIError(f"Not a folder: {'/'.join(parts[:-1])}")
        return parent.id

    def exists(self, path: str) -> bool:
        if self._is_root(path):
            return True
        return self._lookup(path) is not None

    def kind(self, path: str) -> EntryKind:
        if self._is_root(path) or self._entry(path).is_folder:
            return EntryKind.DIRECTORY
        return EntryKind.FILE

    def file_tree(self, root: str) -> list[str]:
        """List root and everything below it.

        Raises:
            DriveFileNotFoundError: If root does not exist
            DriveAPIError: If any folder listing fails
        """
        folder_id: Optional[int] = None
        if not self._is_root(root):
            folder_id = self._entry(root).id

        base = root.rstrip("/")
        paths = [root]
        for _, relative_path in self.manager.get_all_recursive(
            folder_id, include_folders=True
        ):
            paths.append(f"{base}/{relative_path}")
        logger.debug("Found %d entries under %s", len(paths), root)
        return paths

    def mtime(self, path: str) -> float:
        if self._is_root(path):
            # Stand-in for the root: its most recently modified child
            stamps = [
                dt.timestamp()
                for dt in (
                    parse_iso_timestamp(child.updated_at)
                    for child in self.manager.get_all_in_folder(None)
                )
                if dt is not None
            ]
            return max(stamps, default=0.0)

        entry = self._entry(path)
        dt = parse_iso_timestamp(entry.updated_at)
        if dt is None:
            raise DriveInvalidResponseError(
                f"Entry {path} has no valid modification time: {entry.updated_at!r}"
            )
        return dt.timestamp()

    def set_mtime(self, path: str, mtime: float) -> None:
        if self._is_root(path):
            # Nothing to update; the drive root carries no timestamp
            logger.debug("Not setting mtime on drive root")
            return
        entry = self._entry(path)
        self.client.update_file_entry(entry.id, updated_at=format_iso_timestamp(mtime))
        entry.updated_at = format_iso_timestamp(mtime)

    def mkdir(self, path: str) -> None:
        parts = split_path(path)
        if not parts:
            raise DriveAPIError("Cannot create the drive root")
        parent_id = self._parent_id(path)
        self.client.create_folder(parts[-1], parent_id=parent_id)
        self.manager.invalidate(parent_id)

    def open_read(self, path: str) -> BinaryIO:
        """Download path into a spooled temporary file.

        Small files stay in memory; larger ones roll over to disk.
        """
        entry = self._entry(path)
        if entry.is_folder:
            raise DriveAPIError(f"Cannot read a folder: {path}")

        spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE)
        try:
            self.client.download_to(entry.hash, spool)
        except BaseException:
            spool.close()
            raise
        spool.seek(0)
        return spool  # type: ignore[return-value]

    def write_file(self, path: str, reader: BinaryIO, in_place: bool = False) -> None:
        """Upload the content of reader to path.

        Default mode uploads under a temporary name in the destination
        folder, renames the previous entry aside, renames the upload into
        place and only then deletes the previous entry. If the swap fails
        the previous entry gets its name back. In-place mode removes the
        previous entry first and uploads under the final name.
        """
        parts = split_path(path)
        if not parts:
            raise DriveAPIError("Cannot write to the drive root")
        name = parts[-1]
        parent_id = self._parent_id(path)

        existing = self.manager.find_entry(name, parent_id)
        if existing is not None and existing.is_folder:
            raise DriveAPIError(f'Remote path "{path}" exists and is a folder')

        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_SIZE) as spool:
            # Uploads need the length up front
            shutil.copyfileobj(reader, spool)
            size = spool.tell()
            spool.seek(0)

            if in_place:
                if existing is not None:
                    self.client.delete_file_entries([existing.id], delete_forever=True)
                    self.manager.invalidate(parent_id)
                self._upload(spool, name, size, parent_id)
                self.manager.invalidate(parent_id)
                return

            token = secrets.token_hex(4)
            uploaded = self._upload(spool, f".{name}.{token}.partial", size, parent_id)
            self.manager.invalidate(parent_id)

        try:
            if existing is None:
                self.client.update_file_entry(uploaded.id, name=name)
                return

            self.client.update_file_entry(existing.id, name=f".{name}.{token}.old")
            try:
                self.client.update_file_entry(uploaded.id, name=name)
            except DriveAPIError:
                logger.debug("Restoring %s after failed rename", path)
                self.client.update_file_entry(existing.id, name=name)
                raise
            self.client.delete_file_entries([existing.id], delete_forever=True)
        finally:
            self.manager.invalidate(parent_id)

    def _upload(
        self, spool: BinaryIO, name: str, size: int, parent_id: Optional[int]
    ) -> FileEntry:
        response = self.client.upload_stream(spool, name, size, parent_id=parent_id)
        entry = _entry_from_response(response, "fileEntry")
        if entry is None:
            raise DriveUploadError(f"Upload response missing file entry: {response}")
        logger.debug("Uploaded %s (%d bytes) as entry %d", name, size, entry.id)
        return entry

    def size(self, path: str) -> int:
        if self._is_root(path):
            return 0
        return self._entry(path).file_size
