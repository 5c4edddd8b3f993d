"""Health, readiness and status endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.engine import Engine

from common.db import check_connection, get_engine

from ..runtime import get_runtime
from ..schemas import ServiceStatus

router = APIRouter(tags=["health"])


def get_db_engine() -> Engine:
    runtime = get_runtime()
    return runtime.engine if runtime is not None else get_engine()


@router.get("/health")
def health():
    """Liveness probe: ok while the process is running."""
    return {"status": "ok"}


@router.get("/ready")
def ready(engine: Engine = Depends(get_db_engine)):
    """Readiness probe: checks DB connectivity."""
    if not check_connection(engine):
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}


@router.get("/api/status", response_model=ServiceStatus)
def status():
    """Estadísticas del receptor, evaluador y dispatcher."""
    runtime = get_runtime()
    if runtime is None:
        raise HTTPException(status_code=503, detail="alert runtime not started")
    return runtime.status()
