"""Utility functions for drivesync."""

import re
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from .exceptions import PatternError

# =============================================================================
# Constants for file operations
# =============================================================================

# Retry configuration for transient API errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds

# Request timeout for API calls
DEFAULT_TIMEOUT: float = 30.0  # seconds

# Chunk size for streamed downloads and uploads (64 KB)
TRANSFER_CHUNK_SIZE: int = 64 * 1024

# Transfers larger than this are spooled to disk instead of memory (16 MB)
SPOOL_MAX_SIZE: int = 16 * 1024 * 1024

# Page size used when listing remote folders
DEFAULT_PER_PAGE: int = 100


# =============================================================================
# Timestamp utilities
# =============================================================================


def parse_iso_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    """Parse an ISO format timestamp returned by the drive API.

    Timestamps without an explicit offset are taken to be UTC.

    Args:
        timestamp_str: ISO format timestamp string
            (e.g., "2025-01-15T10:30:00.000000Z")

    Returns:
        Timezone-aware datetime or None if parsing fails
    """
    if not timestamp_str:
        return None

    try:
        # The 'Z' suffix indicates UTC time
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"

        try:
            dt = datetime.fromisoformat(timestamp_str)
        except ValueError:
            # Older interpreters reject fractional seconds that are not
            # exactly 3 or 6 digits; drop them.
            if "." not in timestamp_str:
                raise
            head, _, tail = timestamp_str.partition(".")
            offset = ""
            for sign in ("+", "-"):
                if sign in tail:
                    offset = sign + tail.split(sign, 1)[1]
                    break
            dt = datetime.fromisoformat(head + offset)

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except (ValueError, AttributeError):
        return None


def format_iso_timestamp(timestamp: float) -> str:
    """Format a POSIX timestamp the way the drive API expects it.

    Examples:
        >>> format_iso_timestamp(0)
        '1970-01-01T00:00:00.000000Z'
    """
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


# =============================================================================
# Glob matching utilities
# =============================================================================


def _read_class_char(pattern: str, pos: int) -> tuple[str, int]:
    """Read one (possibly escaped) character inside a ``[...]`` class."""
    if pos >= len(pattern):
        raise PatternError("unterminated character class", pattern)
    ch = pattern[pos]
    if ch == "-" or ch == "]":
        raise PatternError("unexpected character in class", pattern)
    if ch == "\\":
        pos += 1
        if pos >= len(pattern):
            raise PatternError("trailing escape character", pattern)
        ch = pattern[pos]
    return ch, pos + 1


def _translate_class(pattern: str, pos: int) -> tuple[str, int]:
    """Translate a character class starting right after ``[``.

    Returns:
        Tuple of (regex class, position after the closing ``]``)
    """
    negate = False
    if pos < len(pattern) and pattern[pos] in "!^":
        negate = True
        pos += 1

    items: list[str] = []
    while True:
        if pos >= len(pattern):
            raise PatternError("unterminated character class", pattern)
        if pattern[pos] == "]":
            if not items:
                raise PatternError("empty character class", pattern)
            pos += 1
            break

        lo, pos = _read_class_char(pattern, pos)
        if pos < len(pattern) and pattern[pos] == "-":
            hi, pos = _read_class_char(pattern, pos + 1)
            if hi < lo:
                raise PatternError(f"invalid range {lo}-{hi}", pattern)
            items.append(f"{re.escape(lo)}-{re.escape(hi)}")
        else:
            items.append(re.escape(lo))

    prefix = "^" if negate else ""
    return f"[{prefix}{''.join(items)}]", pos


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> "re.Pattern[str]":
    """Compile a shell glob into a regular expression.

    Supported syntax: ``*`` (any run of characters except ``/``), ``?``
    (one character except ``/``), ``[...]`` classes with ranges and ``!`` or
    ``^`` negation, and ``\\`` to escape the next character.

    Args:
        pattern: Glob pattern

    Returns:
        Compiled regex that must match the whole name

    Raises:
        PatternError: If the pattern is malformed
    """
    parts: list[str] = []
    pos = 0
    while pos < len(pattern):
        ch = pattern[pos]
        pos += 1
        if ch == "*":
            parts.append("[^/]*")
        elif ch == "?":
            parts.append("[^/]")
        elif ch == "\\":
            if pos >= len(pattern):
                raise PatternError("trailing escape character", pattern)
            parts.append(re.escape(pattern[pos]))
            pos += 1
        elif ch == "[":
            translated, pos = _translate_class(pattern, pos)
            parts.append(translated)
        else:
            parts.append(re.escape(ch))

    return re.compile("".join(parts), re.DOTALL)

