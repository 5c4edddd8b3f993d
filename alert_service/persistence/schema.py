"""Esquema de PostgreSQL del servicio.

Crea las tablas si no existen. Seguro de llamar múltiples veces.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS sensor_data (
        id SERIAL PRIMARY KEY,
        timestamp TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        temperature DOUBLE PRECISION,
        humidity DOUBLE PRECISION,
        gas DOUBLE PRECISION,
        pressure DOUBLE PRECISION,
        lux DOUBLE PRECISION
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        id SERIAL PRIMARY KEY,
        timestamp TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        type VARCHAR(64) NOT NULL,
        details JSONB
    )
    """,
)


def ensure_schema(engine: Engine) -> bool:
    """Crea sensor_data y events si faltan.

    Returns:
        True si el esquema quedó listo, False si falló (se loguea)
    """
    try:
        with engine.begin() as conn:
            for statement in SCHEMA_STATEMENTS:
                conn.execute(text(statement))
        logger.info("[DB] Schema ready (sensor_data, events)")
        return True
    except Exception:
        logger.exception("[DB] Schema setup FAILED")
        return False
