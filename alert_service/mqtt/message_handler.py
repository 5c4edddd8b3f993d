"""Handler de mensajes MQTT: decodifica y enruta por topic.

Flujo:
  <ns>/sensor/state  → SensorDataRepository (vía dispatcher) + AlertEvaluator.process_sample
  <ns>/sys/online    → AlertEvaluator.handle_online_status
  <ns>/device/state  → AlertEvaluator.handle_device_state
  <ns>/device/cmd    → ignorado (comandos propios)
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..alerts.evaluator import AlertEvaluator
from ..persistence.sensor_repository import SensorDataRepository
from .receiver_stats import ReceiverStats
from .validators import decode_payload

logger = logging.getLogger(__name__)

SENSOR_STATE = "sensor/state"
SYS_ONLINE = "sys/online"
DEVICE_STATE = "device/state"

STATS_LOG_EVERY = 50


class TelemetryMessageHandler:
    """Procesa un mensaje MQTT. Nunca lanza hacia el loop de paho."""

    def __init__(
        self,
        topic_ns: str,
        evaluator: AlertEvaluator,
        dispatcher,
        sensor_repository: Optional[SensorDataRepository] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._ns = topic_ns.rstrip("/")
        self._evaluator = evaluator
        self._dispatcher = dispatcher
        self._sensor_repository = sensor_repository
        self._clock = clock
        self.stats = ReceiverStats()

    def topic_kind(self, topic: str) -> Optional[str]:
        prefix = f"{self._ns}/"
        if not topic.startswith(prefix):
            return None
        kind = topic[len(prefix):]
        if kind in (SENSOR_STATE, SYS_ONLINE, DEVICE_STATE):
            return kind
        return None

    def handle(self, topic: str, payload: bytes) -> bool:
        """Procesa un mensaje.

        Returns:
            True si se procesó, False si se ignoró o falló
        """
        now = self._clock()
        kind = self.topic_kind(topic)
        if kind is None:
            self.stats.record("ignored")
            logger.debug("[MQTT] Ignored topic %s", topic)
            return False

        self.stats.record_received(kind, now)

        try:
            result = decode_payload(payload)
            if not result.valid:
                logger.warning("[MQTT] %s (topic=%s)", result.error, topic)
                self.stats.record("failed")
                return False

            data = result.data
            if kind == SENSOR_STATE:
                if self._sensor_repository is not None:
                    repo = self._sensor_repository
                    self._dispatcher.submit(
                        "sensor_store", "sensor_data",
                        lambda: repo.insert_reading(data),
                    )
                self._evaluator.process_sample(data, now)
            elif kind == SYS_ONLINE:
                self._evaluator.handle_online_status(data)
            else:
                self._evaluator.handle_device_state(data)

        except Exception as e:
            logger.exception("[MQTT] Processing error on %s: %s", topic, e)
            self.stats.record("failed")
            return False

        self.stats.record("processed")
        if self.stats.processed % STATS_LOG_EVERY == 0:
            logger.info("[MQTT] %s", self.stats)
        return True
