"""Shared fixtures for drivesync tests."""

import io
from dataclasses import dataclass
from typing import BinaryIO, Optional
from unittest.mock import Mock

import pytest

from drivesync.output import OutputFormatter
from drivesync.vfs.base import EntryKind, FileSystem


def _normalize(path: str) -> str:
    parts = [part for part in path.split("/") if part not in ("", ".")]
    return "/" + "/".join(parts)


@dataclass
class Node:
    kind: EntryKind
    mtime: float
    data: bytes = b""


class FailingStream(io.BytesIO):
    """A stream that fails on the first read."""

    def read(self, size: Optional[int] = -1) -> bytes:
        raise OSError("input/output error")


class MemoryFileSystem(FileSystem):
    """In-memory filesystem that records every mutating call.

    ``fail`` maps an operation name to the set of paths on which it raises
    OSError. ``unreadable`` holds paths whose content stream fails on read.
    Written files get ``now`` as their modification time.
    """

    name = "memory"

    def __init__(self, now: float = 10_000.0):
        self.nodes: dict[str, Node] = {"/": Node(EntryKind.DIRECTORY, 0.0)}
        self.calls: list[tuple[str, str]] = []
        self.fail: dict[str, set[str]] = {}
        self.unreadable: set[str] = set()
        self.now = now

    # Helpers for building trees in tests

    def add_dir(self, path: str, mtime: float = 0.0) -> None:
        self.nodes[_normalize(path)] = Node(EntryKind.DIRECTORY, mtime)

    def add_file(self, path: str, data: bytes = b"", mtime: float = 0.0) -> None:
        self.nodes[_normalize(path)] = Node(EntryKind.FILE, mtime, data)

    def add_other(self, path: str, mtime: float = 0.0) -> None:
        self.nodes[_normalize(path)] = Node(EntryKind.OTHER, mtime)

    def node(self, path: str) -> Node:
        return self.nodes[_normalize(path)]

    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] in ("mkdir", "write_file", "set_mtime")]

    def _check(self, op: str, path: str) -> None:
        self.calls.append((op, _normalize(path)))
        if _normalize(path) in self.fail.get(op, set()):
            raise OSError(f"{op} failed")

    def _get(self, path: str) -> Node:
        try:
            return self.nodes[_normalize(path)]
        except KeyError:
            raise FileNotFoundError(path) from None

    # FileSystem interface

    def exists(self, path: str) -> bool:
        self._check("exists", path)
        return _normalize(path) in self.nodes

    def kind(self, path: str) -> EntryKind:
        self._check("kind", path)
        return self._get(path).kind

    def file_tree(self, root: str) -> list[str]:
        self._check("file_tree", root)
        base = _normalize(root)
        prefix = base.rstrip("/") + "/"
        head = root.rstrip("/")
        children = [
            head + path[len(base.rstrip("/")) :]
            for path in self.nodes
            if path.startswith(prefix) and path != base
        ]
        # Deliberately unsorted
        return [root] + sorted(children, reverse=True)

    def mtime(self, path: str) -> float:
        self._check("mtime", path)
        return self._get(path).mtime

    def set_mtime(self, path: str, mtime: float) -> None:
        self._check("set_mtime", path)
        self._get(path).mtime = mtime

    def mkdir(self, path: str) -> None:
        self._check("mkdir", path)
        self.nodes[_normalize(path)] = Node(EntryKind.DIRECTORY, self.now)

    def open_read(self, path: str) -> BinaryIO:
        self._check("open_read", path)
        node = self._get(path)
        if _normalize(path) in self.unreadable:
            return FailingStream()
        return io.BytesIO(node.data)

    def write_file(self, path: str, reader: BinaryIO, in_place: bool = False) -> None:
        self._check("write_file", path)
        data = reader.read()
        self.nodes[_normalize(path)] = Node(EntryKind.FILE, self.now, data)

    def size(self, path: str) -> int:
        self._check("size", path)
        return len(self._get(path).data)


@pytest.fixture
def memfs():
    """Factory for in-memory filesystems."""
    return MemoryFileSystem


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    output = Mock(spec=OutputFormatter)
    output.quiet = True
    return output
