"""Manager for fetching and caching file entries with automatic pagination."""

import logging
from typing import Optional

from .api import DriveClient
from .models import FileEntriesResult, FileEntry
from .utils import DEFAULT_PER_PAGE

logger = logging.getLogger(__name__)


def split_path(path: str) -> list[str]:
    """Split a drive path into its non-empty components.

    Examples:
        >>> split_path("/a//b/c/")
        ['a', 'b', 'c']
    """
    return [part for part in path.split("/") if part and part != "."]


class FileEntriesManager:
    """Manages file entry fetching with automatic pagination and caching.

    Folder listings are cached by folder ID. Callers that mutate a folder
    must call ``invalidate`` for it so later lookups see the change.
    """

    def __init__(self, client: DriveClient):
        """Initialize the file entries manager.

        Args:
            client: Drive API client
        """
        self.client = client
        self._cache: dict[Optional[int], list[FileEntry]] = {}

    def get_all_in_folder(
        self,
        folder_id: Optional[int] = None,
        use_cache: bool = True,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> list[FileEntry]:
        """Get all file entries in a folder with automatic pagination.

        Args:
            folder_id: Folder ID to query (None for root)
            use_cache: Whether to use cached results
            per_page: Number of entries per page

        Returns:
            List of all file entries in the folder

        Raises:
            DriveAPIError: If any page cannot be fetched
        """
        if use_cache and folder_id in self._cache:
            return self._cache[folder_id]

        all_entries: list[FileEntry] = []
        current_page = 1

        while True:
            parent_ids = [folder_id] if folder_id is not None else None
            result = self.client.get_file_entries(
                parent_ids=parent_ids,
                per_page=per_page,
                page=current_page,
            )
            page = FileEntriesResult.from_api_response(result)
            all_entries.extend(page.entries)

            if page.pagination:
                current = page.pagination.get("current_page")
                last = page.pagination.get("last_page")
                if current is not None and last is not None and current < last:
                    current_page += 1
                    continue
            break

        logger.debug(
            "Listed %d entries in folder %s (%d page(s))",
            len(all_entries),
            folder_id,
            current_page,
        )

        if use_cache:
            self._cache[folder_id] = all_entries

        return all_entries

    def invalidate(self, folder_id: Optional[int]) -> None:
        """Drop the cached listing of a folder."""
        self._cache.pop(folder_id, None)

    def find_entry(self, name: str, parent_id: Optional[int] = None) -> Optional[FileEntry]:
        """Find an entry by exact name inside a folder.

        Args:
            name: Entry name
            parent_id: Folder to look in (None for root)

        Returns:
            The matching entry, or None if there is none
        """
        for entry in self.get_all_in_folder(parent_id):
            if entry.name == name:
                return entry
        return None

    def resolve_path(self, path: str) -> Optional[FileEntry]:
        """Resolve a slash-separated path to its entry.

        The root folder itself has no entry; resolving it returns None just
        like a missing path, so callers check ``split_path(path)`` first.

        Args:
            path: Drive path (leading slash optional)

        Returns:
            The entry at path, or None if any component is missing
        """
        entry: Optional[FileEntry] = None
        parent_id: Optional[int] = None

        for part in split_path(path):
            if entry is not None and not entry.is_folder:
                return None
            entry = self.find_entry(part, parent_id)
            if entry is None:
                return None
            parent_id = entry.id

        return entry

    def get_all_recursive(
        self,
        folder_id: Optional[int] = None,
        path_prefix: str = "",
        include_folders: bool = False,
        visited: Optional[set[int]] = None,
    ) -> list[tuple[FileEntry, str]]:
        """Recursively get all file entries in a folder and its subfolders.

        Args:
            folder_id: Folder ID to start from (None for root)
            path_prefix: Path prefix for nested entries
            include_folders: Whether folders appear in the result themselves
            visited: Set of visited folder IDs (for cycle detection)

        Returns:
            List of (FileEntry, relative_path) tuples
        """
        if visited is None:
            visited = set()

        if folder_id is not None:
            if folder_id in visited:
                return []
            visited.add(folder_id)

        result_entries: list[tuple[FileEntry, str]] = []

        for entry in self.get_all_in_folder(folder_id):
            entry_path = f"{path_prefix}/{entry.name}" if path_prefix else entry.name

            if entry.is_folder:
                if include_folders:
                    result_entries.append((entry, entry_path))
                result_entries.extend(
                    self.get_all_recursive(
                        folder_id=entry.id,
                        path_prefix=entry_path,
                        include_folders=include_folders,
                        visited=visited,
                    )
                )
            else:
                result_entries.append((entry, entry_path))

        return result_entries
