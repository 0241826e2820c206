"""Exclusion filtering by basename glob."""

import logging
import posixpath
import re
from collections.abc import Iterable
from typing import Optional

from ..utils import glob_to_regex

logger = logging.getLogger(__name__)


class ExclusionFilter:
    """Matches entry basenames against an ordered list of glob patterns.

    Only the final path component is tested, never the full path, and an
    excluded directory does not exclude its children: each entry is judged
    on its own name.

    Examples:
        >>> f = ExclusionFilter(["*.tmp"])
        >>> f.excluded("/a/b/c.tmp")
        True
        >>> f.excluded("/a/b.tmp/c")
        False
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None):
        """Compile the exclusion patterns.

        Args:
            patterns: Glob patterns, tried in order

        Raises:
            PatternError: If any pattern is malformed
        """
        self.patterns: list[str] = list(patterns or [])
        self._compiled: list[tuple[str, re.Pattern[str]]] = [
            (pattern, glob_to_regex(pattern)) for pattern in self.patterns
        ]

    def match(self, path: str) -> Optional[str]:
        """Return the first pattern matching path's basename, or None."""
        name = posixpath.basename(path.rstrip("/"))
        for pattern, regex in self._compiled:
            logger.debug("Attempting to match %r to pattern %r", path, pattern)
            if regex.fullmatch(name) is not None:
                logger.debug("Excluding %r: matched %r", path, pattern)
                return pattern
        return None

    def excluded(self, path: str) -> bool:
        """Check whether path is excluded."""
        return self.match(path) is not None

