"""
Baseline Watch - Polling fallback.

Reconciles watch roots against the mtime cache on a fixed interval,
independent of whether native notifications work. Shares the relevance
filter with the native path through SourceScanner.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from baseline_watch.core.change_cache import ChangeCache
from baseline_watch.core.scanner import SourceScanner

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 1.0


class ChangePoller:
    """
    Background thread: every interval, walk each root, report files whose
    mtime changed and cached files that no longer exist.
    """

    def __init__(
        self,
        roots: list[Path],
        mtime_cache: ChangeCache,
        on_change: Callable[[str], None],
        on_delete: Callable[[str], None],
        scanner: Optional[SourceScanner] = None,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self._roots = [Path(r).resolve() for r in roots]
        self._cache = mtime_cache
        self._on_change = on_change
        self._on_delete = on_delete
        self._on_error = on_error
        self._scanner = scanner or SourceScanner()
        self.interval_seconds = max(0.05, interval_seconds)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def add_root(self, root: Path) -> None:
        root = Path(root).resolve()
        if root not in self._roots:
            self._roots.append(root)

    def poll_once(self) -> tuple[list[str], list[str]]:
        """
        One reconciliation pass over all roots.
        Returns (changed_paths, deleted_paths) after invoking the callbacks.
        """
        changed: list[str] = []
        deleted: list[str] = []
        for root in list(self._roots):
            # A vanished root still has cached files to report as deleted.
            current = self._scanner.scan_mtimes(root) if root.exists() else {}
            for path, mtime in current.items():
                if self._cache.record_and_check(path, mtime):
                    changed.append(path)
                    self._on_change(path)
            for path in self._cache.paths_under(str(root)):
                if path not in current and not Path(path).exists():
                    deleted.append(path)
                    self._on_delete(path)
        return changed, deleted

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.poll_once()
            except Exception as e:
                logger.exception("Poll cycle failed: %s", e)
                if self._on_error is not None:
                    self._on_error(e)

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="baseline-watch-poller", daemon=True)
        self._thread.start()
        logger.debug("Poller started (interval=%.2fs, roots=%d)", self.interval_seconds, len(self._roots))

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
