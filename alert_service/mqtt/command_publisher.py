"""Publicación de comandos al actuador por MQTT (<ns>/device/cmd)."""

from __future__ import annotations

import json
import logging
from typing import Dict

from ..alerts.models import SideEffectOutcome
from ..alerts.sinks import CommandPublisher

logger = logging.getLogger(__name__)


class MQTTCommandPublisher(CommandPublisher):
    """Publica comandos JSON con QoS 1 usando el cliente del receptor."""

    def __init__(self, receiver, cmd_topic: str):
        self._receiver = receiver
        self._cmd_topic = cmd_topic

    def publish_command(self, command: Dict[str, str]) -> SideEffectOutcome:
        payload = json.dumps(command)
        try:
            published = self._receiver.publish(self._cmd_topic, payload, qos=1)
        except Exception as e:
            logger.error("[MQTT] Command %s failed: %s", payload, e)
            return SideEffectOutcome.failure(type(e).__name__)

        if not published:
            return SideEffectOutcome.failure("not published", topic=self._cmd_topic)

        logger.info("[MQTT] Command sent to %s: %s", self._cmd_topic, payload)
        return SideEffectOutcome.success(topic=self._cmd_topic)
