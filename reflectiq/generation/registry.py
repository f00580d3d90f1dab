"""Uniqueness registry for previously issued grids."""

import threading
from typing import Iterable, Optional, Protocol, Set, runtime_checkable


@runtime_checkable
class PuzzleRegistry(Protocol):
    """Read/append store of grid hashes that must not be issued again."""

    def has_hash(self, puzzle_hash: str) -> bool: ...

    def add_hash(self, puzzle_hash: str) -> None: ...


class InMemoryPuzzleRegistry:
    """Process-local registry, safe to share across generation threads."""

    def __init__(self, hashes: Optional[Iterable[str]] = None):
        self._hashes: Set[str] = set(hashes or ())
        self._lock = threading.Lock()

    def has_hash(self, puzzle_hash: str) -> bool:
        with self._lock:
            return puzzle_hash in self._hashes

    def add_hash(self, puzzle_hash: str) -> None:
        with self._lock:
            self._hashes.add(puzzle_hash)

    def __len__(self) -> int:
        with self._lock:
            return len(self._hashes)
