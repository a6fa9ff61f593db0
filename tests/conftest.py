"""Shared fixtures."""

from pathlib import Path

import pytest

from baseline_watch.core.config_loader import default_config
from tests.helpers import FakeClock, RecordingChannel


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    (src / "app.js").write_text("const a = 1;\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def config(project: Path) -> dict:
    return default_config(
        project,
        watch_paths=[project / "src"],
        native_watch=False,
        channels=[],
        debounce_seconds=0.05,
        poll_interval_seconds=0.1,
        dashboard_interactive=False,
    )
