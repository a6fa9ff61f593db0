"""
Baseline Watch - Notification channels.

A channel is any callable (alert, kind) -> None, kind being "alert" or
"escalation". Console and file channels deliver locally; webhook, email and
chat channels build their payload and log it. Delivery over the network is
left to whoever consumes those payloads.

Uses colorama for cross-platform (Linux/Windows) colored console alerts.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Callable, Optional, TextIO

import colorama
from colorama import Fore, Style

from baseline_watch.core.models import Alert, Severity

logger = logging.getLogger(__name__)

NotificationChannel = Callable[[Alert, str], None]

KIND_ALERT = "alert"
KIND_ESCALATION = "escalation"

_SEVERITY_COLORS = {
    Severity.CRITICAL: Fore.RED + Style.BRIGHT,
    Severity.HIGH: Fore.RED,
    Severity.MEDIUM: Fore.YELLOW,
    Severity.LOW: Fore.GREEN,
}

# Chat attachment colors keyed by severity.
_CHAT_COLORS = {
    Severity.CRITICAL: "danger",
    Severity.HIGH: "warning",
    Severity.MEDIUM: "good",
    Severity.LOW: "#36a64f",
}

# Lazy init of colorama (once per process)
_colorama_init_done = False


def _ensure_colorama() -> None:
    global _colorama_init_done
    if not _colorama_init_done:
        colorama.init(autoreset=True)
        _colorama_init_done = True


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts or 0, tz=timezone.utc).isoformat()


class ConsoleChannel:
    """Prints a colored, structured alert block to stderr."""

    name = "console"

    def __init__(self, stream: Optional[TextIO] = None, color: bool = True) -> None:
        self._stream = stream
        self._color = color

    def format(self, alert: Alert, kind: str) -> str:
        ts = datetime.fromtimestamp(alert.last_seen or alert.first_seen or 0).strftime("%H:%M:%S")
        title = "ESCALATED ALERT" if kind == KIND_ESCALATION else "ALERT"
        lines = [
            "[%s] %s %s" % (alert.severity.value.upper(), title, ts),
            "   Type: %s" % alert.type.value,
            "   Severity: %s" % alert.severity.value.upper(),
            "   File: %s" % alert.file_path,
            "   Message: %s" % alert.message,
        ]
        if alert.count > 1:
            lines.append("   Count: %d occurrences" % alert.count)
        if alert.escalated and alert.original_severity is not None:
            lines.append(
                "   Escalated from: %s (%d occurrences)"
                % (alert.original_severity.value.upper(), alert.escalation_count)
            )
        return "\n".join(lines)

    def __call__(self, alert: Alert, kind: str) -> None:
        stream = self._stream or sys.stderr
        text = self.format(alert, kind)
        if self._color:
            _ensure_colorama()
            text = "%s%s%s" % (_SEVERITY_COLORS.get(alert.severity, ""), text, Style.RESET_ALL)
        print(text, file=stream)


class FileChannel:
    """Appends one JSON line per notification to alerts-YYYY-MM-DD.log."""

    name = "file"

    def __init__(self, log_dir: Path, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.log_dir = Path(log_dir)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def log_path(self) -> Path:
        return self.log_dir / ("alerts-%s.log" % self._clock().strftime("%Y-%m-%d"))

    def __call__(self, alert: Alert, kind: str) -> None:
        record = {
            "timestamp": _iso(alert.last_seen or alert.first_seen),
            "type": kind,
            "alert": alert.to_dict(),
        }
        path = self.log_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")


class WebhookChannel:
    """Builds a generic webhook payload; skipped when no URL is configured."""

    name = "webhook"

    def __init__(self, url: Optional[str]) -> None:
        self.url = url

    def build_payload(self, alert: Alert, kind: str) -> dict[str, Any]:
        return {
            "text": "Baseline Watch %s" % ("escalation" if kind == KIND_ESCALATION else "alert"),
            "attachments": [
                {
                    "color": _CHAT_COLORS.get(alert.severity, "#36a64f"),
                    "fields": [
                        {"title": "Type", "value": alert.type.value, "short": True},
                        {"title": "Severity", "value": alert.severity.value, "short": True},
                        {"title": "File", "value": alert.file_path, "short": False},
                        {"title": "Message", "value": alert.message, "short": False},
                    ],
                    "ts": alert.last_seen or alert.first_seen,
                }
            ],
        }

    def __call__(self, alert: Alert, kind: str) -> None:
        if not self.url:
            return
        payload = self.build_payload(alert, kind)
        logger.info("[WEBHOOK] %s -> %s", self.url, json.dumps(payload))


class EmailChannel:
    """Builds a plain-text alert email; skipped without a recipient."""

    name = "email"

    def __init__(self, email_to: Optional[str], email_from: Optional[str] = None) -> None:
        self.email_to = email_to
        self.email_from = email_from or "baseline-watch@localhost"

    def build_message(self, alert: Alert, kind: str) -> EmailMessage:
        prefix = "ESCALATED " if kind == KIND_ESCALATION else ""
        msg = EmailMessage()
        msg["Subject"] = "Baseline Watch %sAlert: %s - %s" % (
            prefix,
            alert.severity.value.upper(),
            alert.type.value,
        )
        msg["From"] = self.email_from
        msg["To"] = self.email_to or ""
        body = [
            "Baseline Watch Alert",
            "",
            "Type:     %s" % alert.type.value,
            "Severity: %s" % alert.severity.value,
            "File:     %s" % alert.file_path,
            "Message:  %s" % alert.message,
            "Time:     %s" % _iso(alert.last_seen or alert.first_seen),
            "Count:    %d" % alert.count,
        ]
        msg.set_content("\n".join(body) + "\n")
        return msg

    def __call__(self, alert: Alert, kind: str) -> None:
        if not self.email_to:
            return
        msg = self.build_message(alert, kind)
        logger.info("[EMAIL] %s -> %s", msg["Subject"], self.email_to)


class ChatChannel:
    """Builds a chat (Slack-style) message; skipped without a webhook URL."""

    name = "chat"

    def __init__(self, webhook_url: Optional[str]) -> None:
        self.webhook_url = webhook_url

    def build_message(self, alert: Alert, kind: str) -> dict[str, Any]:
        title = "%s: %s" % (alert.severity.value.upper(), alert.type.value)
        if kind == KIND_ESCALATION:
            title = "ESCALATED " + title
        return {
            "text": "*Baseline Watch Alert*",
            "attachments": [
                {
                    "color": _CHAT_COLORS.get(alert.severity, "#36a64f"),
                    "title": title,
                    "text": alert.message,
                    "fields": [
                        {"title": "File", "value": alert.file_path, "short": True},
                        {"title": "Time", "value": _iso(alert.last_seen or alert.first_seen), "short": True},
                    ],
                }
            ],
        }

    def __call__(self, alert: Alert, kind: str) -> None:
        if not self.webhook_url:
            return
        message = self.build_message(alert, kind)
        logger.info("[CHAT] %s", json.dumps(message))


def build_channels(names: list[str], config: dict[str, Any]) -> dict[str, NotificationChannel]:
    """
    Instantiate the named channels from config. Unknown names are logged and
    skipped; order of names is preserved.
    """
    factories: dict[str, Callable[[], NotificationChannel]] = {
        "console": lambda: ConsoleChannel(color=bool(config.get("console_color", True))),
        "file": lambda: FileChannel(Path(config.get("alert_log_dir", "./logs"))),
        "webhook": lambda: WebhookChannel(config.get("webhook_url")),
        "email": lambda: EmailChannel(config.get("email_to"), config.get("email_from")),
        "chat": lambda: ChatChannel(config.get("chat_webhook_url")),
    }
    channels: dict[str, NotificationChannel] = {}
    for name in names:
        key = str(name).strip().lower()
        factory = factories.get(key)
        if factory is None:
            logger.warning("Unknown notification channel %r; skipping", name)
            continue
        channels[key] = factory()
    return channels
