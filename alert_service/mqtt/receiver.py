"""Receptor MQTT de telemetría usando paho-mqtt.

Suscribe a <ns>/# y delega cada mensaje al TelemetryMessageHandler.
La reconexión la maneja paho (reconnect_delay_set).
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import paho.mqtt.client as mqtt

from common.config import Settings

from .message_handler import TelemetryMessageHandler

logger = logging.getLogger(__name__)

CONNECT_WAIT_SECONDS = 5.0


class TelemetryReceiver:
    """Cliente MQTT para telemetría y comandos.

    Responsabilidades:
    - Conexión/desconexión al broker (TCP o WebSockets, TLS opcional)
    - Suscripción a <ns>/#
    - Delegación de mensajes al handler
    - Publicación de comandos (QoS 1)
    """

    def __init__(
        self,
        topic_ns: str,
        broker_host: str = "localhost",
        broker_port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        transport: str = "tcp",
        use_tls: bool = False,
        client_id: str = "iot-alert-service",
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.username = username
        self.password = password
        self.transport = transport
        self.use_tls = use_tls
        self.client_id = f"{client_id}-{int(time.time())}"
        self.topic = f"{topic_ns.rstrip('/')}/#"

        self._handler: Optional[TelemetryMessageHandler] = None
        self._client: Optional[mqtt.Client] = None
        self._running = False
        self._connected = False
        self._reconnect_count = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelemetryReceiver":
        return cls(
            topic_ns=settings.topic_ns,
            broker_host=settings.mqtt_host,
            broker_port=settings.mqtt_port,
            username=settings.mqtt_username,
            password=settings.mqtt_password,
            transport=settings.mqtt_transport,
            use_tls=settings.mqtt_tls,
        )

    def set_message_handler(self, handler: TelemetryMessageHandler):
        """Configura el handler de mensajes."""
        self._handler = handler

    def _build_client(self) -> mqtt.Client:
        client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            protocol=mqtt.MQTTv311,
            transport=self.transport,
        )
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message

        if self.transport == "websockets":
            client.ws_set_options(path="/mqtt")
        if self.use_tls:
            client.tls_set()
        if self.username and self.password:
            client.username_pw_set(self.username, self.password)

        client.reconnect_delay_set(min_delay=1, max_delay=30)
        return client

    def start(self) -> bool:
        """Inicia el receptor. Retorna False si no conecta a tiempo."""
        try:
            self._client = self._build_client()

            logger.info(
                "[MQTT] Connecting to %s:%d (%s%s)",
                self.broker_host,
                self.broker_port,
                self.transport,
                "+tls" if self.use_tls else "",
            )
            self._client.connect_async(self.broker_host, self.broker_port, keepalive=60)
            self._client.loop_start()
            self._running = True

            # Esperar conexión
            deadline = time.monotonic() + CONNECT_WAIT_SECONDS
            while time.monotonic() < deadline:
                if self._connected:
                    logger.info("[MQTT] Started successfully")
                    return True
                time.sleep(0.1)

            # paho sigue reintentando en background
            logger.error("[MQTT] Connection timeout, retrying in background")
            return False

        except Exception as e:
            logger.exception("[MQTT] Start failed: %s", e)
            return False

    def stop(self):
        """Detiene el receptor."""
        self._running = False

        if self._client:
            try:
                self._client.loop_stop()
                self._client.disconnect()
            except Exception as e:
                logger.warning("[MQTT] Error stopping: %s", e)

        self._connected = False
        logger.info("[MQTT] Stopped. %s", self._handler.stats if self._handler else "")

    def publish(self, topic: str, payload: str, qos: int = 1) -> bool:
        if self._client is None or not self._connected:
            logger.warning("[MQTT] Not connected, cannot publish to %s", topic)
            return False

        info = self._client.publish(topic, payload, qos=qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning("[MQTT] Publish to %s failed rc=%s", topic, info.rc)
            return False
        return True

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de conexión."""
        if reason_code == 0:
            self._connected = True
            logger.info("[MQTT] Connected to broker")
            client.subscribe(self.topic, qos=1)
            logger.info("[MQTT] Subscribed to %s", self.topic)
        else:
            self._connected = False
            logger.error("[MQTT] Connection failed: rc=%s", reason_code)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de desconexión."""
        self._connected = False
        if self._running:
            self._reconnect_count += 1
            logger.warning("[MQTT] Disconnected (rc=%s), reconnecting...", reason_code)
        else:
            logger.info("[MQTT] Disconnected")

    def _on_message(self, client, userdata, msg):
        """Callback de mensaje - delega al handler."""
        if self._handler:
            self._handler.handle(msg.topic, msg.payload)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def stats(self) -> dict:
        return {
            "running": self._running,
            "connected": self._connected,
            "broker": f"{self.broker_host}:{self.broker_port}",
            "topic": self.topic,
            "reconnect_count": self._reconnect_count,
            **(self._handler.stats.to_dict() if self._handler else {}),
        }

    def health_check(self) -> dict:
        return {
            "healthy": self._running and self._connected,
            "running": self._running,
            "connected": self._connected,
            "reconnect_count": self._reconnect_count,
        }
