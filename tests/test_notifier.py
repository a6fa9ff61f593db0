"""Tests for notification channels."""

import io
import json
from datetime import datetime, timezone
from pathlib import Path

from baseline_watch.core.models import Alert, AlertType, Severity
from baseline_watch.core.notifier import (
    KIND_ALERT,
    KIND_ESCALATION,
    ChatChannel,
    ConsoleChannel,
    EmailChannel,
    FileChannel,
    WebhookChannel,
    build_channels,
)


def _alert(**kwargs) -> Alert:
    defaults = dict(
        type=AlertType.RISK,
        severity=Severity.HIGH,
        message="High risk score detected: 85%",
        file_path="/p/a.js",
        id="abc",
        first_seen=1_700_000_000.0,
        last_seen=1_700_000_000.0,
    )
    defaults.update(kwargs)
    return Alert(**defaults)


class TestConsoleChannel:
    def test_format_fields(self) -> None:
        text = ConsoleChannel().format(_alert(), KIND_ALERT)
        assert text.startswith("[HIGH] ALERT")
        assert "Type: risk" in text
        assert "File: /p/a.js" in text
        assert "Message: High risk score detected: 85%" in text
        assert "Count" not in text

    def test_format_count_and_escalation(self) -> None:
        alert = _alert(
            severity=Severity.CRITICAL,
            count=4,
            escalated=True,
            escalation_count=10,
            original_severity=Severity.HIGH,
        )
        text = ConsoleChannel().format(alert, KIND_ESCALATION)
        assert "ESCALATED ALERT" in text
        assert "Count: 4 occurrences" in text
        assert "Escalated from: HIGH (10 occurrences)" in text

    def test_writes_to_stream(self) -> None:
        stream = io.StringIO()
        ConsoleChannel(stream=stream, color=False)(_alert(), KIND_ALERT)
        assert "[HIGH] ALERT" in stream.getvalue()


class TestFileChannel:
    def test_appends_daily_json_lines(self, tmp_path: Path) -> None:
        day = datetime(2026, 3, 1, tzinfo=timezone.utc)
        channel = FileChannel(tmp_path / "logs", clock=lambda: day)
        channel(_alert(), KIND_ALERT)
        channel(_alert(), KIND_ESCALATION)
        path = tmp_path / "logs" / "alerts-2026-03-01.log"
        assert channel.log_path() == path
        lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
        assert [line["type"] for line in lines] == ["alert", "escalation"]
        assert lines[0]["alert"]["id"] == "abc"
        assert lines[0]["timestamp"].startswith("2023-11-14T22:13:20")


class TestRemoteChannels:
    def test_webhook_payload(self) -> None:
        payload = WebhookChannel("https://hooks.example/x").build_payload(_alert(), KIND_ESCALATION)
        assert payload["text"] == "Baseline Watch escalation"
        fields = {f["title"]: f["value"] for f in payload["attachments"][0]["fields"]}
        assert fields["File"] == "/p/a.js"
        assert payload["attachments"][0]["color"] == "warning"

    def test_email_message(self) -> None:
        msg = EmailChannel("dev@example.com").build_message(_alert(), KIND_ALERT)
        assert msg["Subject"] == "Baseline Watch Alert: HIGH - risk"
        assert msg["To"] == "dev@example.com"
        assert "File:     /p/a.js" in msg.get_content()

    def test_chat_message(self) -> None:
        message = ChatChannel("https://chat.example/x").build_message(
            _alert(severity=Severity.CRITICAL), KIND_ESCALATION
        )
        attachment = message["attachments"][0]
        assert attachment["title"] == "ESCALATED CRITICAL: risk"
        assert attachment["color"] == "danger"

    def test_unconfigured_channels_are_noops(self) -> None:
        WebhookChannel(None)(_alert(), KIND_ALERT)
        EmailChannel(None)(_alert(), KIND_ALERT)
        ChatChannel("")(_alert(), KIND_ALERT)


class TestBuildChannels:
    def test_known_and_unknown_names(self, tmp_path: Path) -> None:
        channels = build_channels(
            ["console", "File", "pager", "webhook"],
            {"alert_log_dir": tmp_path, "webhook_url": "https://hooks.example/x"},
        )
        assert list(channels) == ["console", "file", "webhook"]
        assert isinstance(channels["file"], FileChannel)
        assert channels["webhook"].url == "https://hooks.example/x"
