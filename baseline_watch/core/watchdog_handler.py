"""
Baseline Watch - Watchdog event handler for real-time file change detection.

Uses recursive observation and a shared debounce timer so that a burst of
editor/bundler events for a save becomes one analysis per file.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from baseline_watch.core.errors import WatchError
from baseline_watch.core.models import ChangeEvent, ChangeKind, WatchTarget
from baseline_watch.core.scanner import SourceScanner

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5


class ChangeDebouncer:
    """
    Coalesces change events. Every push() restarts one shared timer; when it
    elapses without further pushes, the callback receives the latest event
    for each path seen during the burst.
    """

    def __init__(
        self,
        callback: Callable[[list[ChangeEvent]], None],
        delay_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self._callback = callback
        self._delay = max(0.0, delay_seconds)
        self._lock = threading.Lock()
        self._pending: dict[str, ChangeEvent] = {}
        self._timer: Optional[threading.Timer] = None
        self._closed = False

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def push(self, event: ChangeEvent) -> None:
        with self._lock:
            if self._closed:
                return
            self._pending[event.file_path] = event
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _take_pending(self) -> list[ChangeEvent]:
        with self._lock:
            events = list(self._pending.values())
            self._pending.clear()
            self._timer = None
        return events

    def _fire(self) -> None:
        events = self._take_pending()
        if not events:
            return
        try:
            self._callback(events)
        except Exception as e:
            logger.exception("Debounced change handler failed: %s", e)

    def flush(self) -> None:
        """Deliver pending events now instead of waiting for the timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
        self._fire()

    def cancel(self) -> None:
        """Drop pending events and refuse further pushes."""
        with self._lock:
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending.clear()


class SourceEventHandler(FileSystemEventHandler):
    """
    Translates watchdog events for relevant source files into ChangeEvents
    and pushes them to the debouncer. With only set (a single-file root
    watched through its parent directory), every other path is dropped.
    """

    def __init__(
        self,
        debouncer: ChangeDebouncer,
        root: Path,
        scanner: Optional[SourceScanner] = None,
        only: Optional[Path] = None,
    ) -> None:
        super().__init__()
        self._debouncer = debouncer
        self._root = Path(root)
        self._scanner = scanner or SourceScanner()
        self._only = Path(only).resolve() if only is not None else None

    def _is_relevant(self, src_path: str) -> bool:
        if self._only is not None and Path(src_path).resolve() != self._only:
            return False
        return self._scanner.is_watched_file(src_path, self._root)

    def _forward(self, src_path: str, kind: ChangeKind) -> None:
        if not self._is_relevant(src_path):
            return
        logger.debug("Change event: %s %s (analysis after debounce)", kind.value, src_path)
        self._debouncer.push(ChangeEvent(file_path=str(Path(src_path).resolve()), kind=kind))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path, ChangeKind.CREATED)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path, ChangeKind.MODIFIED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path, ChangeKind.DELETED)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._forward(event.src_path, ChangeKind.DELETED)
        self._forward(event.dest_path, ChangeKind.CREATED)


def create_observer() -> Observer:
    """Observer thread; targets are scheduled on it with schedule_target()."""
    observer = Observer()
    observer.daemon = True
    return observer


def schedule_target(
    observer: Observer,
    target: WatchTarget,
    handler: FileSystemEventHandler,
) -> object:
    """
    Schedule one recursive watch. Returns the watchdog watch handle (pass it
    to observer.unschedule()). Raises WatchError when the OS refuses the
    watch (missing permission, inotify limits).
    """
    dir_str = str(Path(target.path).resolve())
    try:
        watch = observer.schedule(handler, dir_str, recursive=target.recursive)
    except OSError as e:
        raise WatchError("Cannot watch %s: %s" % (dir_str, e), file_path=dir_str) from e
    logger.info("Watchdog observing %s (recursive=%s)", dir_str, target.recursive)
    return watch
