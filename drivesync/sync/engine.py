"""Core sync engine for executing sync operations."""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from ..exceptions import (
    ClassificationError,
    MtimeError,
    PreconditionError,
    ReadError,
    TraversalError,
    WriteError,
)
from ..output import OutputFormatter
from ..utils import format_size
from ..vfs.base import EntryKind, FileSystem
from .comparator import SyncAction, need_to_copy
from .exclude import ExclusionFilter
from .operations import SyncOperations
from .options import SyncOptions
from .pathmap import resolve_dest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryPair:
    """A source directory and its destination, kept for mtime restoration."""

    src: str
    dst: str


@dataclass
class SyncResult:
    """What happened to one source entry."""

    path: str
    """Source path"""

    dest: Optional[str]
    """Destination path (None for excluded entries)"""

    kind: Optional[EntryKind]
    """Entry kind (None for excluded entries, which are not classified)"""

    action: SyncAction
    """Action taken"""

    size: Optional[int] = None
    """Size in bytes (regular files only)"""

    message: str = ""
    """Warning text for skipped entries"""


@dataclass
class SyncStats:
    """Per-action counts for a run."""

    counts: dict[SyncAction, int] = field(
        default_factory=lambda: {action: 0 for action in SyncAction}
    )
    bytes_copied: int = 0

    @classmethod
    def from_results(cls, results: list[SyncResult]) -> "SyncStats":
        """Summarize a list of results."""
        stats = cls()
        for result in results:
            stats.counts[result.action] += 1
            if result.action == SyncAction.COPIED and result.size:
                stats.bytes_copied += result.size
        return stats

    def __getitem__(self, action: SyncAction) -> int:
        return self.counts[action]


class SyncEngine:
    """Synchronizes a tree from a source filesystem into a destination one.

    The engine works on the ``FileSystem`` interface only, so any pair of
    backends can be combined. A run is single-threaded: each entry is
    classified, decided and acted upon before the next one is looked at.
    """

    def __init__(
        self,
        src_fs: FileSystem,
        dst_fs: FileSystem,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            src_fs: Filesystem the source tree lives on
            dst_fs: Filesystem the destination directory lives on
            output: Output formatter for per-entry reporting
        """
        self.src_fs = src_fs
        self.dst_fs = dst_fs
        self.output = output or OutputFormatter()
        self.operations = SyncOperations(src_fs, dst_fs)

    def sync(
        self,
        src_root: str,
        dst_root: str,
        options: Optional[SyncOptions] = None,
    ) -> list[SyncResult]:
        """Copy src_root into the directory dst_root.

        If src_root is a file, only that file is copied. If it is a
        directory, the whole subtree is. Like rsync, a source ending in "/"
        copies the directory's contents into dst_root, while a source
        without it creates the directory itself inside dst_root.

        Files are copied only when missing at the destination or when the
        source is newer. Directory modification times are restored last,
        deepest first.

        Args:
            src_root: Source file or directory
            dst_root: Existing destination directory
            options: Run configuration

        Returns:
            One SyncResult per source entry, in processing order

        Raises:
            PatternError: If an exclusion pattern is malformed
            PreconditionError: If dst_root is missing or not a directory
            SyncError: On the first structural failure (the run stops)

        Examples:
            >>> engine = SyncEngine(LocalFileSystem(), LocalFileSystem())
            >>> results = engine.sync("photos/", "/backup", SyncOptions(dry_run=True))
        """
        options = options or SyncOptions()
        start_time = time.time()

        exclusions = ExclusionFilter(options.exclude)
        self._check_destination(dst_root)

        entries = self._source_entries(src_root)
        # A directory sorts before everything inside it
        entries.sort()
        logger.debug("Syncing %d entries from %s to %s", len(entries), src_root, dst_root)

        dirpairs: list[DirectoryPair] = []
        results: list[SyncResult] = []

        for src in entries:
            result = self._sync_entry(
                src, src_root, dst_root, options, exclusions, dirpairs
            )
            results.append(result)
            self._report(result, options)

        # Updating files inside a directory changes its mtime on some
        # filesystems, so directories are restored after everything else,
        # children before parents.
        if not options.dry_run:
            self._restore_directory_mtimes(dirpairs)

        logger.debug("Sync of %s took %.2fs", src_root, time.time() - start_time)
        return results

    def _check_destination(self, dst_root: str) -> None:
        try:
            exists = self.dst_fs.exists(dst_root)
        except Exception as e:
            raise PreconditionError(
                f"Unable to check destination ({e})", dst_root
            ) from e
        if not exists:
            raise PreconditionError("Destination does not exist", dst_root)

        try:
            is_dir = self.dst_fs.is_dir(dst_root)
        except Exception as e:
            raise PreconditionError(
                f"Unable to check destination ({e})", dst_root
            ) from e
        if not is_dir:
            raise PreconditionError("Destination is not a directory/folder", dst_root)

    def _source_entries(self, src_root: str) -> list[str]:
        try:
            is_dir = self.src_fs.is_dir(src_root)
        except Exception as e:
            raise ClassificationError(f"Unable to stat source ({e})", src_root) from e

        if not is_dir:
            return [src_root]

        try:
            return list(self.src_fs.file_tree(src_root))
        except Exception as e:
            raise TraversalError(f"Unable to list source tree ({e})", src_root) from e

    def _sync_entry(
        self,
        src: str,
        src_root: str,
        dst_root: str,
        options: SyncOptions,
        exclusions: ExclusionFilter,
        dirpairs: list[DirectoryPair],
    ) -> SyncResult:
        if exclusions.excluded(src):
            return SyncResult(src, None, None, SyncAction.EXCLUDED)

        dst = resolve_dest(src_root, dst_root, src)

        try:
            kind = self.src_fs.kind(src)
        except Exception as e:
            raise ClassificationError(f"Unable to stat ({e})", src) from e

        if kind is EntryKind.DIRECTORY:
            return self._sync_directory(src, dst, options, dirpairs)
        if kind is EntryKind.FILE:
            return self._sync_file(src, dst, options)

        message = "not a regular file or directory"
        logger.warning('Skipping "%s": %s', src, message)
        return SyncResult(src, dst, kind, SyncAction.WARNED, message=message)

    def _sync_directory(
        self,
        src: str,
        dst: str,
        options: SyncOptions,
        dirpairs: list[DirectoryPair],
    ) -> SyncResult:
        try:
            exists = self.dst_fs.exists(dst)
        except Exception as e:
            raise ClassificationError(f"Unable to stat ({e})", dst) from e

        action = SyncAction.EXISTS
        if not exists:
            action = SyncAction.CREATED
            if not options.dry_run:
                try:
                    self.dst_fs.mkdir(dst)
                except Exception as e:
                    raise WriteError(f"Unable to create directory ({e})", dst) from e

        # Recorded whether or not the directory was new
        dirpairs.append(DirectoryPair(src, dst))
        return SyncResult(src, dst, EntryKind.DIRECTORY, action)

    def _sync_file(self, src: str, dst: str, options: SyncOptions) -> SyncResult:
        try:
            size = self.src_fs.size(src)
            copy_needed = need_to_copy(self.src_fs, self.dst_fs, src, dst)
        except Exception as e:
            raise ClassificationError(f"Unable to compare ({e})", src) from e

        if not copy_needed:
            return SyncResult(src, dst, EntryKind.FILE, SyncAction.UNCHANGED, size=size)

        if not options.dry_run:
            try:
                self.operations.copy_file(src, dst, in_place=options.write_in_place)
            except ReadError as e:
                logger.warning('Skipping "%s": %s', src, e.message)
                return SyncResult(
                    src, dst, EntryKind.FILE, SyncAction.WARNED, size=size, message=e.message
                )

        return SyncResult(src, dst, EntryKind.FILE, SyncAction.COPIED, size=size)

    def _restore_directory_mtimes(self, dirpairs: list[DirectoryPair]) -> None:
        for pair in reversed(dirpairs):
            try:
                mtime = self.src_fs.mtime(pair.src)
            except Exception as e:
                raise MtimeError(
                    f"Unable to read modification time ({e})", pair.src
                ) from e
            try:
                self.dst_fs.set_mtime(pair.dst, mtime)
            except Exception as e:
                raise MtimeError(
                    f"Unable to set modification time ({e})", pair.dst
                ) from e
            logger.debug("Restored mtime of %s", pair.dst)

    def _report(self, result: SyncResult, options: SyncOptions) -> None:
        """Report one result, filtered by verbosity.

        Warnings are not repeated here; they already went to the log.
        """
        if result.action == SyncAction.WARNED:
            return
        if result.action in (SyncAction.COPIED, SyncAction.CREATED):
            if options.verbosity >= 1:
                self.output.print(result.dest or "")
        elif options.verbosity >= 2:
            if result.action == SyncAction.EXCLUDED:
                self.output.info(f"{result.path}: excluded from copy")
            else:
                self.output.info(f"{result.dest}: {result.action.value}")

    def display_summary(self, results: list[SyncResult], dry_run: bool) -> SyncStats:
        """Display a summary of one or more runs.

        Args:
            results: Results to summarize
            dry_run: Whether this was a dry run

        Returns:
            The computed statistics
        """
        stats = SyncStats.from_results(results)
        if self.output.quiet:
            return stats

        self.output.print("")
        if dry_run:
            self.output.success("Dry run complete!")
        else:
            self.output.success("Sync complete!")

        copied = stats[SyncAction.COPIED]
        created = stats[SyncAction.CREATED]
        if copied or created:
            verb = "Would copy" if dry_run else "Copied"
            self.output.info(f"  {verb}: {copied} file(s), {format_size(stats.bytes_copied)}")
            verb = "Would create" if dry_run else "Created"
            self.output.info(f"  {verb}: {created} directory(ies)")
        else:
            self.output.info("No changes needed - everything is in sync!")

        if stats[SyncAction.UNCHANGED]:
            self.output.info(f"  Unchanged: {stats[SyncAction.UNCHANGED]}")
        if stats[SyncAction.EXCLUDED]:
            self.output.info(f"  Excluded: {stats[SyncAction.EXCLUDED]}")
        if stats[SyncAction.WARNED]:
            self.output.info(f"  Skipped with warnings: {stats[SyncAction.WARNED]}")

        return stats
