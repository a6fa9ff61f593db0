"""
Baseline Watch - Real-time monitoring engine.

Pipeline:  watcher/poller → debounce → change cache → analyzer
           → alert evaluator → alert system → notification channels

Native watchdog notifications and a periodic mtime poll run side by side and
share one relevance filter. The analysis pipeline is serialized by a lock,
so the change caches, analysis records and alert state see one change at a
time even though watchdog, the debounce timer and the poller are separate
threads.
"""

import contextlib
import logging
import sys
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

from baseline_watch.core.alerts import AlertSystem
from baseline_watch.core.analyzer import AnalyzerLike, LocalPatternAnalyzer, run_analyzer
from baseline_watch.core.change_cache import ChangeCache
from baseline_watch.core.errors import AnalysisError, MonitorError, WatchError
from baseline_watch.core.events import (
    EventBus,
    EventKind,
    FileAnalyzed,
    FileDeleted,
    MonitorErrorEvent,
    Started,
    Stopped,
)
from baseline_watch.core.hashing import HashEngine
from baseline_watch.core.models import AnalysisRecord, ChangeEvent, ChangeKind, WatchTarget
from baseline_watch.core.notifier import build_channels
from baseline_watch.core.poller import ChangePoller
from baseline_watch.core.scanner import SourceScanner
from baseline_watch.core.thresholds import AlertEvaluator, ThresholdConfig
from baseline_watch.core.watchdog_handler import (
    ChangeDebouncer,
    SourceEventHandler,
    create_observer,
    schedule_target,
)

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _suppress_stderr_logging():
    stderr_handlers = [
        h for h in logging.root.handlers
        if getattr(h, "stream", None) is sys.stderr
    ]
    flag = [True]

    class _Filter(logging.Filter):
        def filter(self, record: logging.LogRecord) -> bool:
            return not flag[0]

    added: list[tuple[logging.Handler, logging.Filter]] = []
    for h in stderr_handlers:
        f = _Filter()
        h.addFilter(f)
        added.append((h, f))
    try:
        yield
    finally:
        flag[0] = False
        for h, f in added:
            h.removeFilter(f)


def _use_rich_dashboard(config: dict[str, Any]) -> bool:
    if not config.get("dashboard_interactive", True):
        return False
    return sys.stderr.isatty()


def build_alert_system(config: dict[str, Any], events: Optional[EventBus] = None) -> AlertSystem:
    """AlertSystem wired with the configured history file, rules and channels."""
    return AlertSystem(
        history_path=config["history_path"],
        max_history_size=config["max_history_size"],
        escalation_rules=config.get("escalation_rules"),
        channels=build_channels(config.get("channels", ["console"]), config),
        events=events,
    )


class RealtimeMonitor:
    """
    Watches configured roots, re-analyzes changed source files and feeds
    threshold violations to the alert system. Instances are independent;
    start() acquires the watcher, debounce timer and poller, stop() releases
    them.
    """

    def __init__(
        self,
        config: dict[str, Any],
        analyzer: Optional[AnalyzerLike] = None,
        alert_system: Optional[AlertSystem] = None,
        events: Optional[EventBus] = None,
        scanner: Optional[SourceScanner] = None,
    ) -> None:
        self.config = config
        self.events = events or (alert_system.events if alert_system is not None else EventBus())
        self.analyzer = analyzer or LocalPatternAnalyzer()
        self.alert_system = alert_system or build_alert_system(config, self.events)
        self.scanner = scanner or SourceScanner(extra_ignored=config.get("ignored_directories"))
        self.evaluator = AlertEvaluator(
            ThresholdConfig(
                risk_threshold=config.get("risk_threshold", 70.0),
                compatibility_threshold=config.get("compatibility_threshold", 60.0),
            )
        )
        self.hash_engine = HashEngine()
        self.watch_paths = [Path(p) for p in config.get("watch_paths", ["."])]
        self.native_watch = bool(config.get("native_watch", True))

        self._content_cache = ChangeCache()
        self._mtime_cache = ChangeCache()
        self._records: dict[str, AnalysisRecord] = {}
        self._pipeline_lock = threading.RLock()
        self._state_lock = threading.Lock()
        self._is_running = False
        self._start_time: Optional[float] = None
        self._targets: dict[str, WatchTarget] = {}
        self._observer: Optional[Any] = None
        self._debouncer = ChangeDebouncer(
            self.handle_changes, delay_seconds=config.get("debounce_seconds", 0.5)
        )
        self._poller = ChangePoller(
            roots=[],
            mtime_cache=self._mtime_cache,
            on_change=self._on_poll_change,
            on_delete=self.handle_file_deleted,
            scanner=self.scanner,
            interval_seconds=config.get("poll_interval_seconds", 1.0),
            on_error=lambda e: self._emit_error(e),
        )
        self._total_alerts = 0
        self._recent_alerts: list[dict[str, Any]] = []

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def watched_paths(self) -> list[str]:
        return list(self._targets)

    @property
    def poller(self) -> ChangePoller:
        return self._poller

    def start(self) -> None:
        with self._state_lock:
            if self._is_running:
                logger.warning("Monitoring is already running")
                return
            self._is_running = True
            self._start_time = time.monotonic()
            if self._debouncer is None:
                self._debouncer = ChangeDebouncer(
                    self.handle_changes, delay_seconds=self.config.get("debounce_seconds", 0.5)
                )
        logger.info("Starting real-time monitoring (%d path(s))", len(self.watch_paths))
        self.events.emit(EventKind.STARTED, Started(watch_paths=[str(p) for p in self.watch_paths]))

        if self.native_watch:
            self._observer = create_observer()
            try:
                self._observer.start()
            except (OSError, RuntimeError) as e:
                logger.warning("Native file watching unavailable, polling only: %s", e)
                self._emit_error(WatchError("Observer failed to start: %s" % e))
                self._observer = None

        for path in self.watch_paths:
            self.watch_path(path)
        self._poller.start()
        logger.info("Monitoring %d path(s)", len(self._targets))

    def stop(self) -> None:
        with self._state_lock:
            if not self._is_running:
                return
            self._is_running = False
            debouncer, self._debouncer = self._debouncer, None
            observer, self._observer = self._observer, None
        logger.info("Stopping real-time monitoring")
        if debouncer is not None:
            debouncer.cancel()
        self._poller.stop()
        if observer is not None:
            try:
                observer.stop()
                observer.join(timeout=5.0)
            except RuntimeError as e:
                logger.warning("Observer did not stop cleanly: %s", e)
        self._targets.clear()
        uptime = time.monotonic() - (self._start_time or time.monotonic())
        self.events.emit(EventKind.STOPPED, Stopped(uptime_seconds=uptime))
        logger.info("Monitoring stopped")

    def watch_path(self, path: Union[str, Path]) -> bool:
        """
        Register a root: native watch (when enabled), poll fallback and an
        initial analysis of every relevant file. Returns False for missing or
        already watched paths.
        """
        resolved = Path(path).resolve()
        if not resolved.exists():
            logger.warning("Path does not exist: %s", resolved)
            return False
        key = str(resolved)
        if key in self._targets:
            logger.info("Already watching: %s", resolved)
            return False
        target = WatchTarget(path=key, recursive=True)
        self._targets[key] = target

        if self._observer is not None and self._debouncer is not None:
            if resolved.is_dir():
                watch_root, only = resolved, None
            else:
                watch_root, only = resolved.parent, resolved
            handler = SourceEventHandler(self._debouncer, watch_root, scanner=self.scanner, only=only)
            try:
                schedule_target(self._observer, WatchTarget(path=str(watch_root)), handler)
            except WatchError as e:
                logger.warning("%s; relying on polling", e)
                self._emit_error(e, key)
        self._poller.add_root(resolved)
        self.analyze_path(resolved)
        return True

    def analyze_path(
        self, root: Union[str, Path], raise_alerts: Optional[bool] = None
    ) -> list[AnalysisRecord]:
        """Analyze every relevant file under root."""
        records = []
        for file_path in self.scanner.iter_relevant_files(root):
            record = self.analyze_file(file_path, raise_alerts=raise_alerts)
            if record is not None:
                records.append(record)
        return records

    def handle_changes(self, changes: list[ChangeEvent]) -> None:
        """Debounced burst from the native watcher."""
        for change in changes:
            path = Path(change.file_path)
            if change.kind == ChangeKind.DELETED and not path.exists():
                self.handle_file_deleted(str(path))
                continue
            root = self._root_for(path)
            if root is not None and self.scanner.is_watched_file(path, root):
                self.analyze_file(path)

    def _root_for(self, path: Path) -> Optional[Path]:
        for key in self._targets:
            root = Path(key)
            if path == root or root in path.parents:
                return root
        return None

    def _on_poll_change(self, file_path: str) -> None:
        # The poller already saw a new mtime; that is the change signature here.
        self.analyze_file(file_path, force=True)

    def analyze_file(
        self,
        file_path: Union[str, Path],
        raise_alerts: Optional[bool] = None,
        force: bool = False,
    ) -> Optional[AnalysisRecord]:
        """
        Analyze one file if its content changed since the last analysis, or
        unconditionally with force (the content signature is still recorded).
        Read and analyzer failures are logged and emitted as error events.
        Alerts are raised only while the monitor runs unless raise_alerts
        says otherwise, so results landing after stop() are dropped.
        """
        path = Path(file_path).resolve()
        key = str(path)
        with self._pipeline_lock:
            try:
                content = path.read_bytes()
                mtime = path.stat().st_mtime
            except OSError as e:
                logger.warning("Failed to read %s: %s", path, e)
                self._emit_error(AnalysisError("Failed to read %s: %s" % (path, e), file_path=key), key)
                return None

            self._mtime_cache.record_and_check(key, mtime)
            signature = self.hash_engine.compute_content_hash(content)
            if not self._content_cache.record_and_check(key, signature) and not force:
                return None

            logger.debug("Analyzing: %s", path)
            try:
                result = run_analyzer(self.analyzer, content.decode("utf-8", errors="replace"), key)
            except Exception as e:
                logger.error("Failed to analyze %s: %s", path, e, exc_info=True)
                self._content_cache.evict(key)
                self._emit_error(AnalysisError("Failed to analyze %s: %s" % (path, e), file_path=key), key)
                return None

            record = AnalysisRecord(
                file_path=key,
                risk_score=result.risk_score,
                compatibility_score=result.compatibility_score,
                recommendations=list(result.recommendations),
                computed_at=time.time(),
            )
            self._records[key] = record

            should_alert = self._is_running if raise_alerts is None else raise_alerts
            if should_alert:
                self._raise_alerts(record)
            logger.info(
                "Analyzed: %s (Risk: %s%%, Compat: %s%%)",
                path.name,
                record.risk_score,
                record.compatibility_score,
            )
        self.events.emit(EventKind.FILE_ANALYZED, FileAnalyzed(record=record))
        return record

    def _raise_alerts(self, record: AnalysisRecord) -> None:
        for raw in self.evaluator.evaluate(record):
            try:
                alert = self.alert_system.process_alert(raw)
            except Exception as e:
                logger.exception("Alert processing failed for %s: %s", record.file_path, e)
                self._emit_error(MonitorError(str(e), file_path=record.file_path), record.file_path)
                continue
            self._total_alerts += 1
            self._recent_alerts.append(alert.to_dict())
            del self._recent_alerts[:-10]

    def handle_file_deleted(self, file_path: str) -> None:
        key = str(Path(file_path))
        with self._pipeline_lock:
            self._content_cache.evict(key)
            self._mtime_cache.evict(key)
            self._records.pop(key, None)
        logger.info("Deleted: %s", key)
        self.events.emit(EventKind.FILE_DELETED, FileDeleted(file_path=key))

    def _emit_error(self, error: Exception, file_path: Optional[str] = None) -> None:
        self.events.emit(EventKind.ERROR, MonitorErrorEvent(error=error, file_path=file_path))

    def get_record(self, file_path: Union[str, Path]) -> Optional[AnalysisRecord]:
        with self._pipeline_lock:
            return self._records.get(str(Path(file_path).resolve()))

    def get_records(self) -> list[AnalysisRecord]:
        with self._pipeline_lock:
            return list(self._records.values())

    def get_stats(self) -> dict[str, Any]:
        uptime = 0.0
        if self._is_running and self._start_time is not None:
            uptime = time.monotonic() - self._start_time
        return {
            "isRunning": self._is_running,
            "watchedPaths": len(self._targets),
            "totalFiles": len(self._content_cache),
            "cachedAnalyses": len(self._records),
            "totalAlerts": self._total_alerts,
            "recentAlerts": list(self._recent_alerts),
            "uptime": uptime,
        }

    def get_analysis_summary(self) -> dict[str, Any]:
        records = self.get_records()
        if not records:
            return {"message": "No analyses available"}
        count = len(records)
        return {
            "totalFiles": count,
            "averageRiskScore": round(sum(r.risk_score for r in records) / count),
            "averageCompatibilityScore": round(sum(r.compatibility_score for r in records) / count),
            "totalRecommendations": sum(len(r.recommendations) for r in records),
            "criticalIssues": sum(1 for r in records if r.risk_score > self.evaluator.config.risk_threshold),
            "lastUpdated": max(r.computed_at for r in records),
        }

    def run(self, stop_event: Callable[[], bool], refresh_seconds: float = 1.0) -> None:
        """
        Blocking loop for the CLI: start, refresh the dashboard until
        stop_event() is true, then stop.
        """
        from baseline_watch.core.dashboard import Dashboard
        from baseline_watch.core.rich_dashboard import RichDashboard, create_live_dashboard

        self.start()
        try:
            if _use_rich_dashboard(self.config):
                rich_dash = RichDashboard(history_size=self.config.get("dashboard_history_size", 60))
                unsubscribe = rich_dash.attach(self.events)
                live = create_live_dashboard(rich_dash)
                try:
                    with _suppress_stderr_logging(), live:
                        while not stop_event():
                            rich_dash.update(
                                self.get_stats(),
                                self.alert_system.get_stats(),
                                self.alert_system.get_active_alerts(),
                                self.get_analysis_summary(),
                            )
                            live.update(rich_dash.get_renderable(), refresh=True)
                            time.sleep(refresh_seconds)
                finally:
                    unsubscribe()
            else:
                dashboard = Dashboard()
                last_render = None
                while not stop_event():
                    snapshot = (self.alert_system.get_stats(), self.get_analysis_summary())
                    if snapshot != last_render:
                        dashboard.update(self.get_stats(), snapshot[0], snapshot[1])
                        dashboard.render()
                        last_render = snapshot
                    time.sleep(refresh_seconds)
        finally:
            self.stop()
