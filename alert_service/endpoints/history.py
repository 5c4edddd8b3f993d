"""API de datos históricos para el dashboard."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..persistence.sensor_repository import SensorDataRepository, resolve_history_window
from ..runtime import get_runtime
from ..schemas import HistoryPoint

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["history"])


def get_sensor_repository() -> SensorDataRepository:
    runtime = get_runtime()
    if runtime is not None:
        return runtime.sensor_repository
    return SensorDataRepository()


@router.get("/history", response_model=List[HistoryPoint])
def history(
    range_: str = Query("24h", alias="range"),
    time: Optional[datetime] = Query(None),
    repo: SensorDataRepository = Depends(get_sensor_repository),
):
    """Promedios por bucket de temperatura, humedad, gas y luz.

    range: 1h | 24h | 7d | 30d (otro valor → 24h)
    time: instante de referencia ISO 8601 (default: ahora)
    """
    base_time = time or datetime.now(timezone.utc)
    window = resolve_history_window(range_, base_time)

    logger.info(
        "[API] /api/history range=%s start=%s end=%s",
        window.range, window.start.isoformat(), window.end.isoformat(),
    )

    try:
        rows = repo.history(window)
    except Exception:
        logger.exception("[API] Error fetching history for range '%s'", range_)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch historical data"})

    logger.info("[API] Sent %d records for range '%s'", len(rows), window.range)
    return rows
