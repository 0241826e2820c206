"""Data models for remote drive API responses."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class FileEntry:
    """A file or folder entry on the remote drive."""

    id: int
    """Entry ID"""

    name: str
    """Entry name (basename)"""

    type: str
    """Entry type ("folder", "text", "image", ...)"""

    hash: str = ""
    """Entry hash, used for downloads"""

    file_size: int = 0
    """File size in bytes"""

    parent_id: Optional[int] = None
    """ID of the parent folder (None for root)"""

    mime: Optional[str] = None
    """MIME type"""

    created_at: Optional[str] = None
    """ISO creation timestamp"""

    updated_at: Optional[str] = None
    """ISO modification timestamp"""

    @property
    def is_folder(self) -> bool:
        """Whether this entry is a folder."""
        return self.type == "folder"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileEntry":
        """Create a FileEntry from an API response dictionary.

        Args:
            data: Entry dictionary as returned by the API

        Returns:
            FileEntry instance
        """
        parent_id = data.get("parent_id")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            type=data.get("type") or "",
            hash=data.get("hash") or "",
            file_size=data.get("file_size") or 0,
            # The API reports 0 for entries in the root folder
            parent_id=parent_id or None,
            mime=data.get("mime"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass
class FileEntriesResult:
    """One page of file entries with pagination metadata."""

    entries: list[FileEntry] = field(default_factory=list)
    pagination: Optional[dict[str, Any]] = None

    @classmethod
    def from_api_response(cls, result: Any) -> "FileEntriesResult":
        """Build a result from a paginated listing response.

        Args:
            result: Response JSON (dictionary with a "data" list)

        Returns:
            FileEntriesResult instance
        """
        if not isinstance(result, dict):
            return cls()

        entries = [FileEntry.from_dict(item) for item in result.get("data", [])]

        pagination = None
        if "current_page" in result or "last_page" in result:
            pagination = {
                "current_page": result.get("current_page"),
                "last_page": result.get("last_page"),
                "per_page": result.get("per_page"),
                "total": result.get("total"),
            }

        return cls(entries=entries, pagination=pagination)
