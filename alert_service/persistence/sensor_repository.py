"""Almacenamiento de lecturas de sensores y consultas históricas."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from common.db import get_engine

from ..alerts.models import SideEffectOutcome, to_finite_float

logger = logging.getLogger(__name__)

# Columna de sensor_data → clave del payload sensor/state
SENSOR_COLUMNS = {
    "temperature": "temp_c",
    "humidity": "hum_pct",
    "gas": "gas",
    "pressure": "pressure",
    "lux": "lux",
}

HISTORY_RANGES = ("1h", "24h", "7d", "30d")
DEFAULT_HISTORY_RANGE = "24h"


@dataclass(frozen=True)
class HistoryWindow:
    range: str
    bucket: str  # unidad de DATE_TRUNC
    start: datetime
    end: datetime


def resolve_history_window(range_key: Optional[str], base_time: datetime) -> HistoryWindow:
    """Calcula la ventana y el tamaño de bucket para /api/history.

    - 1h:  buckets por minuto, última hora
    - 24h: buckets por hora, últimas 24 horas (default)
    - 7d:  buckets por día, últimos 7 días
    - 30d: buckets por día, mes calendario (UTC) que contiene base_time
    """
    if base_time.tzinfo is None:
        base_time = base_time.replace(tzinfo=timezone.utc)
    else:
        base_time = base_time.astimezone(timezone.utc)

    if range_key == "1h":
        return HistoryWindow("1h", "minute", base_time - timedelta(hours=1), base_time)

    if range_key == "7d":
        return HistoryWindow("7d", "day", base_time - timedelta(days=7), base_time)

    if range_key == "30d":
        start = datetime(base_time.year, base_time.month, 1, tzinfo=timezone.utc)
        last_day = calendar.monthrange(base_time.year, base_time.month)[1]
        end = datetime(
            base_time.year, base_time.month, last_day, 23, 59, 59, 999000,
            tzinfo=timezone.utc,
        )
        return HistoryWindow("30d", "day", start, end)

    return HistoryWindow(DEFAULT_HISTORY_RANGE, "hour", base_time - timedelta(hours=24), base_time)


def sample_to_row(sample: Mapping[str, Any]) -> Dict[str, Optional[float]]:
    """Mapea un payload sensor/state a las columnas de sensor_data.

    Valores ausentes o no numéricos quedan como NULL.
    """
    return {
        column: to_finite_float(sample.get(key))
        for column, key in SENSOR_COLUMNS.items()
    }


class SensorDataRepository:
    """Lecturas en la tabla sensor_data."""

    HISTORY_QUERY = """
        SELECT
            DATE_TRUNC(:bucket, timestamp AT TIME ZONE 'UTC') AS time_bucket,
            AVG(temperature) AS avg_temp,
            AVG(humidity) AS avg_hum,
            AVG(gas) AS avg_gas,
            AVG(lux) AS avg_lux
        FROM sensor_data
        WHERE timestamp BETWEEN :start AND :end
        GROUP BY time_bucket
        ORDER BY time_bucket ASC
    """

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine or get_engine()

    def insert_reading(self, sample: Mapping[str, Any]) -> SideEffectOutcome:
        """Inserta una lectura. No lanza: reporta el fallo."""
        row = sample_to_row(sample)
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    text(
                        """
                        INSERT INTO sensor_data (temperature, humidity, gas, pressure, lux)
                        VALUES (:temperature, :humidity, :gas, :pressure, :lux)
                        """
                    ),
                    row,
                )
        except Exception as e:
            logger.error("[DB] Error saving sensor data: %s", e)
            return SideEffectOutcome.failure(type(e).__name__)

        logger.debug("[DB] Sensor data saved")
        return SideEffectOutcome.success()

    def history(self, window: HistoryWindow) -> List[Dict[str, Any]]:
        """Promedios por bucket. Propaga errores de BD al endpoint."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(self.HISTORY_QUERY),
                {
                    # timestamp es TIMESTAMPTZ: límites con zona, buckets en UTC
                    "bucket": window.bucket,
                    "start": window.start,
                    "end": window.end,
                },
            ).mappings().all()

        return [_history_row(r) for r in rows]


def _history_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    bucket = row.get("time_bucket")
    return {
        "time_bucket": bucket.isoformat() if isinstance(bucket, datetime) else bucket,
        "avg_temp": _as_float(row.get("avg_temp")),
        "avg_hum": _as_float(row.get("avg_hum")),
        "avg_gas": _as_float(row.get("avg_gas")),
        "avg_lux": _as_float(row.get("avg_lux")),
    }


def _as_float(value: Any) -> Optional[float]:
    # AVG en PostgreSQL puede venir como Decimal
    return float(value) if value is not None else None
