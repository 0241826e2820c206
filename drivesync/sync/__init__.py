"""Sync engine for drivesync - one-way, mtime-based tree synchronization."""

from .comparator import SyncAction, need_to_copy, truncate_mtime
from .engine import DirectoryPair, SyncEngine, SyncResult, SyncStats
from .exclude import ExclusionFilter
from .operations import SyncOperations
from .options import SyncOptions
from .pathmap import dest_path, resolve_dest

__all__ = [
    "SyncEngine",
    "SyncOptions",
    "SyncResult",
    "SyncStats",
    "SyncAction",
    "SyncOperations",
    "DirectoryPair",
    "ExclusionFilter",
    "need_to_copy",
    "truncate_mtime",
    "dest_path",
    "resolve_dest",
]
