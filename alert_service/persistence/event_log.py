"""Event Log - registro de auditoría de alertas y eventos del dispositivo.

Escribe a la tabla events (type, details). Solo escritura desde el
evaluador; un fallo se reporta en el SideEffectOutcome y no se reintenta.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from common.db import get_engine

from ..alerts.models import SideEffectOutcome
from ..alerts.sinks import EventLog

logger = logging.getLogger(__name__)


class EventLogRepository(EventLog):
    """Persistencia de eventos en PostgreSQL."""

    def __init__(self, engine: Optional[Engine] = None):
        """Inicializa el repositorio.

        Args:
            engine: Engine SQLAlchemy (opcional, usa el singleton si no se provee)
        """
        self._engine = engine or get_engine()

    def append(self, event_type: str, details: Dict[str, Any]) -> SideEffectOutcome:
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    text("INSERT INTO events (type, details) VALUES (:type, :details)"),
                    {
                        "type": event_type,
                        "details": json.dumps(details, default=str),
                    },
                )
        except Exception as e:
            logger.error("[EVENT_LOG] Error saving event '%s': %s", event_type, e)
            return SideEffectOutcome.failure(type(e).__name__)

        logger.info("[EVENT_LOG] Event '%s' saved", event_type)
        return SideEffectOutcome.success()
