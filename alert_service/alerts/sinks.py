"""Abstract interfaces for alert side effects.

This decouples the evaluator from Telegram, MQTT and PostgreSQL details.
Implementations must report failures through SideEffectOutcome instead of
raising.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from .models import SideEffectOutcome


class Notifier(ABC):
    """Outbound notification transport.

    Implementations:
    - TelegramNotifier: Telegram Bot API sendMessage
    """

    @abstractmethod
    def notify(self, title: str, body: str) -> SideEffectOutcome:
        pass


class CommandPublisher(ABC):
    """Actuator command channel.

    Implementations:
    - MQTTCommandPublisher: JSON on <ns>/device/cmd
    """

    @abstractmethod
    def publish_command(self, command: Dict[str, str]) -> SideEffectOutcome:
        pass


class EventLog(ABC):
    """Write-only audit log of fired events.

    Implementations:
    - EventLogRepository: events table in PostgreSQL
    """

    @abstractmethod
    def append(self, event_type: str, details: Dict[str, Any]) -> SideEffectOutcome:
        pass
