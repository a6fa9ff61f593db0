"""
Baseline Watch - Per-file change signature cache.

Stores the last seen signature (content hash or mtime) per absolute path.
record_and_check is a single locked check-and-set so two near-simultaneous
signals for one file cannot both observe "changed".
"""

import threading
from pathlib import Path
from typing import Hashable, Optional


class ChangeCache:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._signatures: dict[str, Hashable] = {}

    def record_and_check(self, file_path: str, signature: Hashable) -> bool:
        """Store signature; True if it is new or differs from the stored one."""
        with self._lock:
            previous = self._signatures.get(file_path)
            if previous is not None and previous == signature:
                return False
            self._signatures[file_path] = signature
            return True

    def get(self, file_path: str) -> Optional[Hashable]:
        with self._lock:
            return self._signatures.get(file_path)

    def evict(self, file_path: str) -> bool:
        with self._lock:
            return self._signatures.pop(file_path, None) is not None

    def paths_under(self, root: str) -> list[str]:
        """Cached paths located at or below root."""
        root_path = Path(root)
        with self._lock:
            keys = list(self._signatures)
        result = []
        for key in keys:
            p = Path(key)
            if p == root_path or root_path in p.parents:
                result.append(key)
        return result

    def clear(self) -> None:
        with self._lock:
            self._signatures.clear()

    def __contains__(self, file_path: object) -> bool:
        with self._lock:
            return file_path in self._signatures

    def __len__(self) -> int:
        with self._lock:
            return len(self._signatures)
