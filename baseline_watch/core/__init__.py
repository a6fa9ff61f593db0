"""
Baseline Watch - Monitoring Core Module.

Provides scanning, change detection, analysis, threshold evaluation,
alerting with escalation, and notification channels.
"""

from baseline_watch.core.alerts import AlertSystem
from baseline_watch.core.analyzer import LocalPatternAnalyzer
from baseline_watch.core.change_cache import ChangeCache
from baseline_watch.core.dashboard import Dashboard
from baseline_watch.core.events import EventBus, EventKind
from baseline_watch.core.hashing import HashEngine
from baseline_watch.core.monitor import RealtimeMonitor
from baseline_watch.core.rich_dashboard import RichDashboard
from baseline_watch.core.scanner import SourceScanner
from baseline_watch.core.thresholds import AlertEvaluator

__all__ = [
    "AlertEvaluator",
    "AlertSystem",
    "ChangeCache",
    "Dashboard",
    "EventBus",
    "EventKind",
    "HashEngine",
    "LocalPatternAnalyzer",
    "RealtimeMonitor",
    "RichDashboard",
    "SourceScanner",
]
