"""Tests for YAML config loading and defaults."""

from pathlib import Path

import pytest

from baseline_watch.core.config_loader import (
    ENV_EMAIL_FROM,
    ENV_WEBHOOK_URL,
    default_config,
    load_config,
)
from baseline_watch.main import DEFAULT_CONFIG


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml", tmp_path)

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            load_config(_write(tmp_path, "- a\n- b\n"), tmp_path)

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, ""), tmp_path)
        assert config["watch_paths"] == [tmp_path.resolve()]
        assert config["risk_threshold"] == 70.0
        assert config["compatibility_threshold"] == 60.0
        assert config["channels"] == ["console"]
        assert config["history_path"] == tmp_path.resolve() / "alert-history.json"
        assert config["native_watch"] is True

    def test_values_resolved_and_clamped(self, tmp_path: Path) -> None:
        text = (
            "monitoring:\n"
            "  watch_paths: src\n"
            "  poll_interval_seconds: 0.01\n"
            "  ignored_directories: [vendor]\n"
            "thresholds:\n"
            "  risk_score: 150\n"
            "  compatibility_score: 40\n"
            "escalation:\n"
            "  LOW: {max_count: 3, time_window_seconds: 60}\n"
            "  high: not-a-mapping\n"
            "alerts:\n"
            "  channels: [Console, file]\n"
            "  log_dir: out/logs\n"
        )
        config = load_config(_write(tmp_path, text), tmp_path)
        assert config["watch_paths"] == [(tmp_path / "src").resolve()]
        assert config["poll_interval_seconds"] == 0.1
        assert config["ignored_directories"] == ["vendor"]
        assert config["risk_threshold"] == 100.0
        assert config["compatibility_threshold"] == 40.0
        assert config["escalation_rules"] == {"low": {"max_count": 3, "time_window_seconds": 60.0}}
        assert config["channels"] == ["console", "file"]
        assert config["alert_log_dir"] == (tmp_path / "out" / "logs").resolve()

    def test_environment_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_WEBHOOK_URL, "https://env.example/hook")
        monkeypatch.setenv(ENV_EMAIL_FROM, "env@example.com")
        text = "alerts:\n  webhook_url: https://yaml.example/hook\n  email_to: dev@example.com\n"
        config = load_config(_write(tmp_path, text), tmp_path)
        assert config["webhook_url"] == "https://env.example/hook"
        assert config["email_from"] == "env@example.com"
        assert config["email_to"] == "dev@example.com"
        assert config["chat_webhook_url"] is None

    def test_packaged_config_loads(self, tmp_path: Path) -> None:
        config = load_config(DEFAULT_CONFIG, tmp_path)
        assert config["watch_paths"] == [(tmp_path / "src").resolve()]
        assert config["channels"] == ["console", "file"]
        assert config["escalation_rules"]["critical"] == {"max_count": 5, "time_window_seconds": 300.0}


class TestDefaultConfig:
    def test_overrides(self, tmp_path: Path) -> None:
        config = default_config(tmp_path, native_watch=False)
        assert config["native_watch"] is False
        assert config["project_root"] == tmp_path.resolve()
        assert config["max_history_size"] == 1000
