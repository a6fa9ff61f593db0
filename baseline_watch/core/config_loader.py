"""
Baseline Watch - Configuration loader.

Loads and validates config.yaml; resolves paths relative to project root.
Webhook URLs and the email sender may also come from environment variables,
which take precedence over YAML.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from baseline_watch.core.thresholds import (
    DEFAULT_COMPATIBILITY_THRESHOLD,
    DEFAULT_RISK_THRESHOLD,
)

logger = logging.getLogger(__name__)

ENV_WEBHOOK_URL = "BASELINE_WATCH_WEBHOOK_URL"
ENV_CHAT_WEBHOOK_URL = "BASELINE_WATCH_CHAT_WEBHOOK_URL"
ENV_EMAIL_FROM = "BASELINE_WATCH_EMAIL_FROM"

KNOWN_CHANNELS = ("console", "file", "webhook", "email", "chat")


def _env_or(name: str, fallback: Any) -> Optional[str]:
    value = os.environ.get(name, "").strip()
    if value:
        return value
    if fallback is None:
        return None
    return str(fallback).strip() or None


def _parse_escalation(raw: Any) -> dict[str, dict[str, float]]:
    rules: dict[str, dict[str, float]] = {}
    if not isinstance(raw, dict):
        return rules
    for severity, rule in raw.items():
        if not isinstance(rule, dict):
            logger.warning("Ignoring malformed escalation rule for %r", severity)
            continue
        parsed: dict[str, float] = {}
        if "max_count" in rule:
            parsed["max_count"] = max(1, int(rule["max_count"]))
        if "time_window_seconds" in rule:
            parsed["time_window_seconds"] = max(0.0, float(rule["time_window_seconds"]))
        rules[str(severity).lower()] = parsed
    return rules


def build_config(raw: dict[str, Any], root: Path) -> dict[str, Any]:
    """Apply defaults and clamps to a raw YAML mapping."""
    monitoring = raw.get("monitoring") or {}
    watch_paths = monitoring.get("watch_paths") or ["."]
    if isinstance(watch_paths, str):
        watch_paths = [watch_paths]
    poll_interval = float(monitoring.get("poll_interval_seconds", 1.0))
    debounce = float(monitoring.get("debounce_seconds", 0.5))
    native_watch = bool(monitoring.get("native_watch", True))
    extra_ignored = list(monitoring.get("ignored_directories", []))

    thresholds_raw = raw.get("thresholds") or {}
    risk_threshold = float(thresholds_raw.get("risk_score", DEFAULT_RISK_THRESHOLD))
    compatibility_threshold = float(
        thresholds_raw.get("compatibility_score", DEFAULT_COMPATIBILITY_THRESHOLD)
    )

    escalation_rules = _parse_escalation(raw.get("escalation"))

    alerts_raw = raw.get("alerts") or {}
    history_path = alerts_raw.get("history_path", "./alert-history.json")
    max_history_size = int(alerts_raw.get("max_history_size", 1000))
    channels = alerts_raw.get("channels", ["console"])
    if isinstance(channels, str):
        channels = [channels]
    channels = [str(c).strip().lower() for c in channels]
    for name in channels:
        if name not in KNOWN_CHANNELS:
            logger.warning("Unknown notification channel %r in config", name)
    log_dir = alerts_raw.get("log_dir", "./logs")
    console_color = bool(alerts_raw.get("console_color", True))

    dashboard_raw = raw.get("dashboard") or {}
    dashboard_interactive = bool(dashboard_raw.get("interactive", True))
    dashboard_history_size = int(dashboard_raw.get("history_size", 60))

    reports_raw = raw.get("reports") or {}
    report_dir = reports_raw.get("dir", "./logs")

    def resolve(p: str) -> Path:
        path_obj = Path(p)
        return (root / path_obj).resolve() if not path_obj.is_absolute() else path_obj.resolve()

    return {
        "project_root": root,
        "watch_paths": [resolve(p) for p in watch_paths],
        "poll_interval_seconds": max(0.1, poll_interval),
        "debounce_seconds": max(0.0, debounce),
        "native_watch": native_watch,
        "ignored_directories": extra_ignored,
        "risk_threshold": max(0.0, min(100.0, risk_threshold)),
        "compatibility_threshold": max(0.0, min(100.0, compatibility_threshold)),
        "escalation_rules": escalation_rules,
        "history_path": resolve(history_path),
        "max_history_size": max(1, max_history_size),
        "channels": channels,
        "alert_log_dir": resolve(log_dir),
        "console_color": console_color,
        "webhook_url": _env_or(ENV_WEBHOOK_URL, alerts_raw.get("webhook_url")),
        "chat_webhook_url": _env_or(ENV_CHAT_WEBHOOK_URL, alerts_raw.get("chat_webhook_url")),
        "email_to": (str(alerts_raw.get("email_to") or "").strip() or None),
        "email_from": _env_or(ENV_EMAIL_FROM, alerts_raw.get("email_from")),
        "dashboard_interactive": dashboard_interactive,
        "dashboard_history_size": max(10, min(100, dashboard_history_size)),
        "report_dir": resolve(report_dir),
    }


def default_config(project_root: Optional[Path] = None, **overrides: Any) -> dict[str, Any]:
    """Config with every default applied, without reading a file."""
    root = (project_root or Path.cwd()).resolve()
    config = build_config({}, root)
    config.update(overrides)
    return config


def load_config(config_path: Path, project_root: Optional[Path] = None) -> dict[str, Any]:
    """
    Load YAML config and resolve paths relative to project_root.

    Args:
        config_path: Path to config.yaml.
        project_root: Base for relative paths; defaults to the current directory.

    Returns:
        Config dict with resolved paths and defaults applied.
    """
    path = Path(config_path).resolve()
    if not path.is_file():
        raise FileNotFoundError(f"Config not found: {path}")

    root = (project_root or Path.cwd()).resolve()
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config {path} must be a mapping, got {type(raw).__name__}")
    return build_config(raw, root)
