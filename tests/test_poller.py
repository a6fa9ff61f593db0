"""Tests for the mtime polling fallback."""

import os
import time
from pathlib import Path

from baseline_watch.core.change_cache import ChangeCache
from baseline_watch.core.poller import ChangePoller


def _poller(root: Path, cache: ChangeCache, changed: list, deleted: list, **kwargs) -> ChangePoller:
    return ChangePoller(
        roots=[root],
        mtime_cache=cache,
        on_change=changed.append,
        on_delete=deleted.append,
        **kwargs,
    )


class TestChangePoller:
    def test_first_poll_reports_every_file(self, project: Path) -> None:
        changed, deleted = [], []
        poller = _poller(project, ChangeCache(), changed, deleted)
        result = poller.poll_once()
        assert [Path(p).name for p in changed] == ["app.js"]
        assert result == (changed, [])

    def test_unchanged_files_not_reported(self, project: Path) -> None:
        changed, deleted = [], []
        poller = _poller(project, ChangeCache(), changed, deleted)
        poller.poll_once()
        assert poller.poll_once() == ([], [])

    def test_mtime_change_reported(self, project: Path) -> None:
        changed, deleted = [], []
        poller = _poller(project, ChangeCache(), changed, deleted)
        poller.poll_once()
        path = project / "src" / "app.js"
        stat = path.stat()
        os.utime(path, (stat.st_atime, stat.st_mtime + 10))
        assert poller.poll_once()[0] == [str(path.resolve())]

    def test_deleted_file_reported(self, project: Path) -> None:
        changed, deleted = [], []
        poller = _poller(project, ChangeCache(), changed, deleted)
        poller.poll_once()
        path = project / "src" / "app.js"
        path.unlink()
        poller.poll_once()
        assert deleted == [str(path.resolve())]

    def test_missing_root_reports_cached_files_deleted(self, project: Path) -> None:
        changed, deleted = [], []
        path = project / "src" / "app.js"
        poller = _poller(path, ChangeCache(), changed, deleted)
        poller.poll_once()
        path.unlink()
        assert poller.poll_once() == ([], [str(path.resolve())])

    def test_ignored_directories_skipped(self, project: Path) -> None:
        (project / "node_modules").mkdir()
        (project / "node_modules" / "lib.js").write_text("x", encoding="utf-8")
        changed, deleted = [], []
        _poller(project, ChangeCache(), changed, deleted).poll_once()
        assert [Path(p).name for p in changed] == ["app.js"]

    def test_add_root_is_idempotent(self, tmp_path: Path) -> None:
        poller = _poller(tmp_path, ChangeCache(), [], [])
        poller.add_root(tmp_path)
        other = tmp_path / "other"
        other.mkdir()
        (other / "x.ts").write_text("x", encoding="utf-8")
        poller.add_root(other)
        changed, _ = poller.poll_once()
        assert changed == [str((other / "x.ts").resolve())]

    def test_background_thread_polls_until_stopped(self, project: Path) -> None:
        changed, deleted = [], []
        poller = _poller(project, ChangeCache(), changed, deleted, interval_seconds=0.05)
        poller.start()
        assert poller.is_running
        deadline = time.monotonic() + 2.0
        while not changed and time.monotonic() < deadline:
            time.sleep(0.02)
        poller.stop()
        assert not poller.is_running
        assert len(changed) == 1

    def test_poll_errors_reported(self, project: Path) -> None:
        errors = []

        def broken(_path: str) -> None:
            raise RuntimeError("boom")

        poller = ChangePoller(
            roots=[project],
            mtime_cache=ChangeCache(),
            on_change=broken,
            on_delete=lambda _p: None,
            interval_seconds=0.05,
            on_error=errors.append,
        )
        poller.start()
        deadline = time.monotonic() + 2.0
        while not errors and time.monotonic() < deadline:
            time.sleep(0.02)
        poller.stop()
        assert isinstance(errors[0], RuntimeError)
