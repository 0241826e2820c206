"""Run configuration for the sync engine."""

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class SyncOptions:
    """Immutable configuration for one synchronization run.

    Examples:
        >>> opts = SyncOptions(dry_run=True, exclude=["*.tmp"])
        >>> opts.exclude
        ('*.tmp',)
    """

    dry_run: bool = False
    """Decide and report everything, but change nothing"""

    exclude: Sequence[str] = ()
    """Glob patterns matched against entry basenames, in order"""

    write_in_place: bool = False
    """Overwrite destination files directly instead of via a temporary file"""

    verbosity: int = 0
    """Reporting level (0: summary, 1: changes, 2: every entry)"""

    def __post_init__(self) -> None:
        # Freeze the pattern list as well
        object.__setattr__(self, "exclude", tuple(self.exclude))
