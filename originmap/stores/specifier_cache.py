"""Per-run memo of external package resolution results."""

from __future__ import annotations

import threading
from typing import Dict, Optional, Tuple

_MISSING = object()


class SpecifierCache:
    """Caches ``(from_dir, specifier) -> resolved path`` for one resolution run.

    A cached ``None`` records a known miss and is distinct from an absent key,
    so ``lookup`` returns ``(found, value)``. Nothing is persisted: results can
    go stale as soon as ``node_modules`` changes.
    """

    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, str], Optional[str]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, from_dir: str, specifier: str) -> Tuple[bool, Optional[str]]:
        with self._lock:
            value = self._entries.get((from_dir, specifier), _MISSING)
            if value is _MISSING:
                self.misses += 1
                return False, None
            self.hits += 1
            return True, value  # type: ignore[return-value]

    def store(self, from_dir: str, specifier: str, resolved: Optional[str]) -> None:
        with self._lock:
            self._entries[(from_dir, specifier)] = resolved

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0


__all__ = ["SpecifierCache"]
