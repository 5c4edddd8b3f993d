"""Statistics for the telemetry receiver."""

from __future__ import annotations

import threading
from typing import Dict


class ReceiverStats:
    """Estadísticas del receptor MQTT."""

    def __init__(self):
        self.received = 0
        self.processed = 0
        self.failed = 0
        self.ignored = 0
        self.last_message_at: float = 0
        self.by_topic: Dict[str, int] = {}
        self._lock = threading.Lock()

    def record_received(self, kind: str, at: float) -> None:
        with self._lock:
            self.received += 1
            self.last_message_at = at
            self.by_topic[kind] = self.by_topic.get(kind, 0) + 1

    def record(self, outcome: str) -> None:
        """outcome: processed | failed | ignored"""
        with self._lock:
            setattr(self, outcome, getattr(self, outcome) + 1)

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} processed={self.processed} "
            f"failed={self.failed} ignored={self.ignored}"
        )

    def to_dict(self) -> dict:
        """Convert stats to dictionary."""
        with self._lock:
            return {
                "received": self.received,
                "processed": self.processed,
                "failed": self.failed,
                "ignored": self.ignored,
                "last_message_at": self.last_message_at,
                "by_topic": dict(self.by_topic),
            }
