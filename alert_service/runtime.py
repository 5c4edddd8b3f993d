"""Wiring del servicio: configuración → evaluador → receptor.

build_runtime() valida las señales antes de tocar el broker: una
ConfigurationError aborta el arranque sin aceptar ninguna muestra.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from common.config import Settings, get_settings
from common.db import get_engine

from .alerts.dispatcher import create_dispatcher
from .alerts.evaluator import AlertEvaluator
from .alerts.notifier import TelegramNotifier
from .alerts.signal_config import load_signal_specs
from .mqtt.command_publisher import MQTTCommandPublisher
from .mqtt.message_handler import TelemetryMessageHandler
from .mqtt.receiver import TelemetryReceiver
from .persistence.event_log import EventLogRepository
from .persistence.schema import ensure_schema
from .persistence.sensor_repository import SensorDataRepository

logger = logging.getLogger(__name__)


@dataclass
class AlertRuntime:
    settings: Settings
    engine: Engine
    dispatcher: object
    evaluator: AlertEvaluator
    handler: TelemetryMessageHandler
    receiver: TelemetryReceiver
    sensor_repository: SensorDataRepository

    def start(self) -> bool:
        ensure_schema(self.engine)
        self.dispatcher.start()
        return self.receiver.start()

    def stop(self) -> None:
        self.receiver.stop()
        self.dispatcher.stop(drain=True)

    def status(self) -> dict:
        return {
            "receiver": self.receiver.stats,
            "evaluator": self.evaluator.stats,
            "dispatcher": self.dispatcher.metrics,
        }


def build_runtime(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> AlertRuntime:
    settings = settings or get_settings()
    specs = load_signal_specs(settings)

    engine = engine or get_engine()
    dispatcher = create_dispatcher(settings)
    sensor_repository = SensorDataRepository(engine)

    receiver = TelemetryReceiver.from_settings(settings)
    evaluator = AlertEvaluator(
        specs,
        notifier=TelegramNotifier.from_settings(settings),
        command_publisher=MQTTCommandPublisher(receiver, settings.cmd_topic),
        event_log=EventLogRepository(engine),
        dispatcher=dispatcher,
    )
    handler = TelemetryMessageHandler(
        settings.topic_ns,
        evaluator,
        dispatcher,
        sensor_repository=sensor_repository,
    )
    receiver.set_message_handler(handler)

    return AlertRuntime(
        settings=settings,
        engine=engine,
        dispatcher=dispatcher,
        evaluator=evaluator,
        handler=handler,
        receiver=receiver,
        sensor_repository=sensor_repository,
    )


# Singleton
_runtime: Optional[AlertRuntime] = None


def get_runtime() -> Optional[AlertRuntime]:
    """Obtiene el runtime singleton."""
    return _runtime


def start_runtime(settings: Optional[Settings] = None) -> AlertRuntime:
    """Construye e inicia el runtime. Propaga ConfigurationError."""
    global _runtime

    if _runtime is not None:
        return _runtime

    runtime = build_runtime(settings)
    if not runtime.start():
        logger.warning("[RUNTIME] MQTT not connected yet - alerts start once the broker is reachable")
    _runtime = runtime
    logger.info("[RUNTIME] IoT alert service running, signals=%s", runtime.evaluator.signals)
    return runtime


def stop_runtime() -> None:
    """Detiene el runtime."""
    global _runtime

    if _runtime is not None:
        _runtime.stop()
        _runtime = None
