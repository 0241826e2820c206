"""Change detection for sync operations."""

import logging
import math
from enum import Enum

from ..vfs.base import FileSystem

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    """Outcome recorded for an entry during sync."""

    COPIED = "copied"
    """File copied (or would be, in dry-run)"""

    UNCHANGED = "unchanged"
    """File already up to date"""

    CREATED = "created"
    """Directory created (or would be, in dry-run)"""

    EXISTS = "exists"
    """Directory already present at the destination"""

    EXCLUDED = "excluded"
    """Entry matched an exclusion pattern"""

    WARNED = "warned"
    """Entry skipped with a warning"""


def truncate_mtime(mtime: float) -> int:
    """Truncate a timestamp to whole seconds.

    Backends store sub-second precision differently (or not at all), so
    only whole seconds are compared.
    """
    return math.floor(mtime)


def need_to_copy(
    src_fs: FileSystem,
    dst_fs: FileSystem,
    src_path: str,
    dst_path: str,
) -> bool:
    """Decide whether src_path must be copied over dst_path.

    A copy is needed when the destination does not exist or when the source
    is strictly newer, comparing modification times truncated to the
    second. File contents are never compared.

    Args:
        src_fs: Source filesystem
        dst_fs: Destination filesystem
        src_path: Source file path
        dst_path: Destination file path

    Returns:
        True if the file must be copied
    """
    if not dst_fs.exists(dst_path):
        logger.debug("need_to_copy: destination %r does not exist; will copy", dst_path)
        return True

    src_mtime = truncate_mtime(src_fs.mtime(src_path))
    dst_mtime = truncate_mtime(dst_fs.mtime(dst_path))

    if src_mtime > dst_mtime:
        logger.debug(
            "need_to_copy: %r: source is newer than destination (%d > %d); will copy",
            src_path,
            src_mtime,
            dst_mtime,
        )
        return True

    logger.debug(
        "need_to_copy: %r: source is not newer than destination (%d <= %d); "
        "will not copy",
        src_path,
        src_mtime,
        dst_mtime,
    )
    return False
