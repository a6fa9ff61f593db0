#!/usr/bin/env python3
"""
Baseline Watch - CLI entry point.

Exposed as the 'baseline-watch' console command via pyproject.toml.
"""

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Optional

DEFAULT_CONFIG = Path(__file__).resolve().parent / "config" / "config.yaml"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s - %(message)s"

logger = logging.getLogger("baseline_watch")


def setup_logging(verbose: bool = False) -> None:
    """All diagnostics go to stderr; stdout is reserved for command output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def get_config(config_arg: str) -> dict:
    """Load config; relative paths in it resolve against the working directory."""
    from baseline_watch.core.config_loader import load_config

    cwd = Path.cwd().resolve()
    return load_config(cwd / Path(config_arg), cwd)


def _write_reports(monitor: Any, config: dict) -> None:
    from baseline_watch.core.report import write_json_report, write_session_report

    report_dir = Path(config["report_dir"])
    data = (
        monitor.get_stats(),
        monitor.alert_system.get_stats(),
        monitor.get_analysis_summary(),
        monitor.alert_system.get_active_alerts(),
    )
    write_session_report(report_dir / "session-summary.md", *data)
    write_json_report(report_dir / "session-summary.json", *data)


def cmd_monitor(config: dict, args: argparse.Namespace) -> int:
    """Watch until SIGINT/SIGTERM, then write the session summary."""
    from baseline_watch.core.monitor import RealtimeMonitor

    if args.paths:
        config["watch_paths"] = [Path(p).resolve() for p in args.paths]
    if args.poll_only:
        config["native_watch"] = False

    shutdown = threading.Event()
    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, lambda *_: shutdown.set())

    monitor = RealtimeMonitor(config)
    monitor.run(shutdown.is_set)
    if not args.no_report:
        _write_reports(monitor, config)
    return 0


def cmd_scan(config: dict, args: argparse.Namespace) -> int:
    """One-shot analysis; exit code 2 when a critical alert was raised."""
    from baseline_watch.core.events import EventKind
    from baseline_watch.core.models import Severity
    from baseline_watch.core.monitor import RealtimeMonitor

    config["native_watch"] = False
    monitor = RealtimeMonitor(config)
    critical = []
    monitor.events.subscribe(
        EventKind.ALERT,
        lambda e: critical.append(e.alert) if e.alert.severity == Severity.CRITICAL else None,
    )
    paths = [Path(p) for p in args.paths] or list(config["watch_paths"])
    for path in paths:
        if not path.exists():
            logger.warning("Path does not exist: %s", path)
            continue
        monitor.analyze_path(path, raise_alerts=True)

    summary = monitor.get_analysis_summary()
    if args.json:
        payload = {
            "summary": summary,
            "records": [r.to_dict() for r in monitor.get_records()],
            "alerts": [a.to_dict() for a in monitor.alert_system.get_active_alerts()],
        }
        print(json.dumps(payload, indent=2))
    else:
        print("Files analyzed: %s" % summary.get("totalFiles", 0))
        if "averageRiskScore" in summary:
            print("Average risk: %s%%" % summary["averageRiskScore"])
            print("Average compatibility: %s%%" % summary["averageCompatibilityScore"])
        print("Active alerts: %d" % len(monitor.alert_system.get_active_alerts()))
    return 2 if critical else 0


def cmd_alerts(config: dict, args: argparse.Namespace) -> int:
    """Show or clear the persisted alert history."""
    from baseline_watch.core.alerts import AlertSystem

    system = AlertSystem(
        history_path=config["history_path"],
        max_history_size=config["max_history_size"],
        escalation_rules=config.get("escalation_rules"),
    )
    if args.clear:
        ok = system.clear_history()
        logger.info("Alert history cleared: %s", system.history_path)
        return 0 if ok else 1
    stats = system.get_stats()
    recent = system.get_history()[: args.limit]
    if args.json:
        print(json.dumps({"stats": stats, "history": [a.to_dict() for a in recent]}, indent=2))
        return 0
    print("Alert history: %s" % system.history_path)
    print("  Total: %d  Last 24h: %d  Last hour: %d  Escalated: %d" % (
        stats["total"], stats["last24h"], stats["last1h"], stats["escalated"]
    ))
    print("  By severity: " + ", ".join("%s=%d" % kv for kv in stats["bySeverity"].items()))
    if stats["byType"]:
        print("  By type: " + ", ".join("%s=%d" % kv for kv in sorted(stats["byType"].items())))
    for alert in recent:
        print("  [%s] %s %s: %s" % (alert.severity.value.upper(), alert.type.value, alert.file_path, alert.message))
    return 0


COMMANDS = {
    "monitor": cmd_monitor,
    "scan": cmd_scan,
    "alerts": cmd_alerts,
}


def build_parser() -> argparse.ArgumentParser:
    # Shared options sit on a parent parser so they work on either side of
    # the subcommand; SUPPRESS stops the subparser from resetting a value
    # given before it.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=argparse.SUPPRESS,
        help="Path to config.yaml, absolute or relative to the working directory "
        "(default: the packaged config)",
    )
    common.add_argument(
        "-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Debug logging"
    )

    parser = argparse.ArgumentParser(
        prog="baseline-watch",
        description="Real-time web-compatibility monitoring with alerting.",
        parents=[common],
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_monitor = sub.add_parser(
        "monitor", parents=[common], help="Watch source files and alert on threshold violations"
    )
    p_monitor.add_argument("paths", nargs="*", help="Paths to watch (default: monitoring.watch_paths)")
    p_monitor.add_argument("--poll-only", action="store_true", help="Disable native notifications")
    p_monitor.add_argument("--no-report", action="store_true", help="Skip the session summary report")

    p_scan = sub.add_parser("scan", parents=[common], help="Analyze files once and process alerts")
    p_scan.add_argument("paths", nargs="*", help="Files or directories (default: monitoring.watch_paths)")
    p_scan.add_argument("--json", action="store_true", help="Print JSON instead of text")

    p_alerts = sub.add_parser("alerts", parents=[common], help="Show alert statistics from the history file")
    p_alerts.add_argument("--json", action="store_true", help="Print JSON instead of text")
    p_alerts.add_argument("--clear", action="store_true", help="Empty the alert history file")
    p_alerts.add_argument("--limit", type=int, default=20, help="History entries to show")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbose=getattr(args, "verbose", False))

    try:
        config = get_config(getattr(args, "config", str(DEFAULT_CONFIG)))
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 1
    except Exception as e:
        logger.exception("Failed to load config: %s", e)
        return 1

    return COMMANDS[args.command](config, args)


def cli() -> None:
    """Entry point for the baseline-watch console command."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
