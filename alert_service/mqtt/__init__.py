"""MQTT para el servicio de alertas.

Estructura modular:
- validators.py: decodificación de payloads
- message_handler.py: enrutamiento por topic al evaluador
- receiver.py: receptor paho-mqtt
- command_publisher.py: comandos al actuador
- receiver_stats.py: estadísticas del receptor
"""

from .command_publisher import MQTTCommandPublisher
from .message_handler import TelemetryMessageHandler
from .receiver import TelemetryReceiver
from .receiver_stats import ReceiverStats
from .validators import ValidationResult, decode_payload

__all__ = [
    "MQTTCommandPublisher",
    "TelemetryMessageHandler",
    "TelemetryReceiver",
    "ReceiverStats",
    "ValidationResult",
    "decode_payload",
]
