"""Persistencia en PostgreSQL: lecturas, eventos y esquema."""

from .event_log import EventLogRepository
from .schema import ensure_schema
from .sensor_repository import (
    HistoryWindow,
    SensorDataRepository,
    resolve_history_window,
    sample_to_row,
)

__all__ = [
    "EventLogRepository",
    "ensure_schema",
    "HistoryWindow",
    "SensorDataRepository",
    "resolve_history_window",
    "sample_to_row",
]
