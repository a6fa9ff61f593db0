"""
Baseline Watch - Hashing module.

SHA256 content signatures for change detection and deterministic alert
identity keys.
"""

import hashlib

IDENTITY_KEY_LENGTH = 16


class HashEngine:
    """Content signatures for the change cache."""

    ALGORITHM = "sha256"

    def compute_content_hash(self, content: bytes) -> str:
        """Hex SHA256 of an in-memory buffer."""
        return hashlib.new(self.ALGORITHM, content).hexdigest()


def identity_key(alert_type: str, file_path: str, message: str) -> str:
    """
    Deterministic alert fingerprint. Fields are NUL-separated so that
    ("a-b", "c") and ("a", "b-c") never collide by concatenation.
    """
    kind = getattr(alert_type, "value", alert_type)
    raw = "\0".join((str(kind), str(file_path), str(message)))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:IDENTITY_KEY_LENGTH]
