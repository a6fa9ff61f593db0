"""
Baseline Watch - Alert history persistence.

The history is a most-recent-first JSON array of alert snapshots. Every save
rewrites the whole file; writes are serialized and atomic (temp file then
os.replace), so a reader never sees a half-written file.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from baseline_watch.core.models import Alert

logger = logging.getLogger(__name__)


class AlertHistoryStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._write_lock = threading.Lock()

    def load(self) -> list[Alert]:
        """Load history; a missing or unreadable file yields an empty list."""
        if not self.path.is_file():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to load alert history %s: %s", self.path, e)
            return []
        if not isinstance(data, list):
            logger.warning("Alert history %s is not a list; ignoring", self.path)
            return []
        alerts: list[Alert] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            try:
                alerts.append(Alert.from_dict(item))
            except (TypeError, ValueError) as e:
                logger.debug("Skipping malformed history entry %r: %s", item, e)
        return alerts

    def save(self, alerts: list[Alert]) -> bool:
        """
        Persist the full history. Returns False (after logging) when the
        write fails; the caller's in-memory state is unaffected.
        """
        payload = [a.to_dict() for a in alerts]
        with self._write_lock:
            tmp_name = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=".%s." % self.path.name, suffix=".tmp", dir=str(self.path.parent)
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                os.replace(tmp_name, self.path)
                tmp_name = None
                return True
            except OSError as e:
                logger.exception("Failed to save alert history to %s: %s", self.path, e)
                return False
            finally:
                if tmp_name is not None:
                    try:
                        os.unlink(tmp_name)
                    except OSError:
                        pass

    def clear(self) -> bool:
        return self.save([])
