"""Evaluador de alertas.

Orquesta un SignalDebouncer por señal configurada y decide los efectos
de cada FIRE:
1. Evento de auditoría (EventLog)
2. Notificación (Notifier)
3. Comando al actuador, si la señal lo define (CommandPublisher)

También procesa los mensajes de control del dispositivo (online y estado
de actuadores), que no pasan por debounce.

Los efectos se envían al dispatcher y nunca modifican el estado de debounce.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .debouncer import SignalDebouncer
from .dispatcher import InlineDispatcher
from .errors import ConfigurationError
from .models import Decision, DecisionKind, SignalSpec, to_finite_float
from .sinks import CommandPublisher, EventLog, Notifier

logger = logging.getLogger(__name__)

DEFAULT_TRACKED_ACTUATORS = ("light", "fan")
ACTUATOR_VALUES = ("on", "off")

DEVICE_ONLINE = "DEVICE_ONLINE"
DEVICE_OFFLINE = "DEVICE_OFFLINE"

ONLINE_TITLE = "✅ DEVICE ONLINE"
ONLINE_MESSAGE = "The IoT device is back online!"
OFFLINE_TITLE = "🛑 DEVICE OFFLINE"
OFFLINE_MESSAGE = "The IoT device went offline!\nLast Will Testament was triggered."


class AlertEvaluator:
    """Motor de alertas por muestra.

    Reglas:
    - Señal ausente en la muestra → se omite (no cuenta como normal ni como breach)
    - Valor no numérico → se omite solo esa señal y se loguea
    - FIRE → evento + notificación (+ comando)
    """

    def __init__(
        self,
        specs: Sequence[SignalSpec],
        notifier: Notifier,
        command_publisher: CommandPublisher,
        event_log: EventLog,
        dispatcher=None,
        tracked_actuators: Iterable[str] = DEFAULT_TRACKED_ACTUATORS,
    ):
        self._debouncers: Dict[str, SignalDebouncer] = {}
        for spec in specs:
            if spec.name in self._debouncers:
                raise ConfigurationError(f"duplicate signal name {spec.name!r}")
            self._debouncers[spec.name] = SignalDebouncer(spec)

        self._notifier = notifier
        self._command_publisher = command_publisher
        self._event_log = event_log
        self._dispatcher = dispatcher if dispatcher is not None else InlineDispatcher()

        self._online: Optional[bool] = None
        self._actuator_states: Dict[str, Optional[str]] = {
            name: None for name in tracked_actuators
        }
        self._control_lock = threading.Lock()

        self._stats_lock = threading.Lock()
        self._stats = {
            "samples": 0,
            "fired": 0,
            "suppressed": 0,
            "malformed": 0,
            "online_events": 0,
            "actuator_events": 0,
        }

    @property
    def signals(self) -> List[str]:
        return list(self._debouncers)

    def debouncer(self, name: str) -> SignalDebouncer:
        return self._debouncers[name]

    # ------------------------------------------------------------------
    # Telemetría
    # ------------------------------------------------------------------

    def process_sample(self, sample: Mapping[str, Any], now: float) -> Dict[str, Decision]:
        """Evalúa una muestra completa.

        Args:
            sample: Mapa señal → valor (ya decodificado)
            now: Tiempo de llegada en segundos

        Returns:
            Decisión por señal evaluada (las señales omitidas no aparecen)
        """
        self._incr("samples")
        decisions: Dict[str, Decision] = {}

        for name, debouncer in self._debouncers.items():
            spec = debouncer.spec

            if spec.sample_key not in sample:
                logger.debug("[ALERT] %s absent from sample, skipped", spec.sample_key)
                continue

            value = to_finite_float(sample[spec.sample_key])
            if value is None:
                self._incr("malformed")
                logger.warning(
                    "[ALERT] Malformed value for %s: %r (signal %s skipped)",
                    spec.sample_key,
                    sample[spec.sample_key],
                    name,
                )
                continue

            decision = debouncer.evaluate(value, now)
            decisions[name] = decision
            self._log_decision(spec, value, decision)

            if decision.kind is DecisionKind.FIRE:
                self._incr("fired")
                self._fire(spec, value)
            elif decision.kind is DecisionKind.SUPPRESSED:
                self._incr("suppressed")

        return decisions

    def _log_decision(self, spec: SignalSpec, value: float, decision: Decision) -> None:
        if decision.kind is DecisionKind.BREACH_BELOW_STREAK:
            logger.info(
                "[ALERT] %s breach value=%s (streak %d/%d)",
                spec.name, value, decision.streak, spec.streak_required,
            )
        elif decision.kind is DecisionKind.SUPPRESSED:
            logger.debug(
                "[ALERT] %s suppressed value=%s reason=%s",
                spec.name, value, decision.reason,
            )
        elif decision.kind is DecisionKind.FIRE:
            logger.warning("[ALERT] %s FIRE value=%s", spec.name, value)

    def _fire(self, spec: SignalSpec, value: float) -> None:
        details = {spec.details_key: value}
        title = spec.title

        self._dispatcher.submit(
            "event_log", spec.event_type,
            lambda: self._event_log.append(spec.event_type, details),
        )
        # El render corre dentro de la tarea: un fallo cuenta como efecto fallido
        self._dispatcher.submit(
            "notify", title,
            lambda: self._notifier.notify(title, spec.render_message(value)),
        )

        if spec.drives_command:
            command = dict(spec.drives_command)
            logger.info("[ALERT] %s → command %s", spec.name, command)
            self._dispatcher.submit(
                "command", spec.name,
                lambda: self._command_publisher.publish_command(command),
            )

    # ------------------------------------------------------------------
    # Control del dispositivo
    # ------------------------------------------------------------------

    def handle_online_status(self, payload: Mapping[str, Any]) -> Optional[str]:
        """Procesa {online: bool}. Dispara solo en transiciones.

        Returns:
            Tipo de evento emitido, o None si no hubo cambio
        """
        online = payload.get("online")
        if not isinstance(online, bool):
            self._incr("malformed")
            logger.warning("[ALERT] Malformed online payload: %r", dict(payload))
            return None

        with self._control_lock:
            if self._online is online:
                logger.debug("[ALERT] Device online=%s unchanged", online)
                return None
            self._online = online

        event_type = DEVICE_ONLINE if online else DEVICE_OFFLINE
        title, body = (ONLINE_TITLE, ONLINE_MESSAGE) if online else (OFFLINE_TITLE, OFFLINE_MESSAGE)
        details = dict(payload)

        self._incr("online_events")
        logger.warning("[ALERT] %s", event_type)

        self._dispatcher.submit(
            "event_log", event_type,
            lambda: self._event_log.append(event_type, details),
        )
        self._dispatcher.submit(
            "notify", title,
            lambda: self._notifier.notify(title, body),
        )
        return event_type

    def handle_device_state(self, payload: Mapping[str, Any]) -> List[str]:
        """Procesa {<actuador>: "on"|"off"}. Un evento por cambio de estado.

        Returns:
            Tipos de evento emitidos (ej: ["LIGHT_ON"])
        """
        emitted: List[str] = []

        for actuator in self._actuator_states:
            if actuator not in payload:
                continue

            new_state = payload[actuator]
            if new_state not in ACTUATOR_VALUES:
                self._incr("malformed")
                logger.warning("[ALERT] Malformed %s state: %r", actuator, new_state)
                continue

            with self._control_lock:
                if self._actuator_states[actuator] == new_state:
                    continue
                self._actuator_states[actuator] = new_state

            event_type = f"{actuator.upper()}_{new_state.upper()}"
            self._submit_actuator_event(event_type, new_state)
            emitted.append(event_type)

        return emitted

    def _submit_actuator_event(self, event_type: str, state: str) -> None:
        self._incr("actuator_events")
        logger.info("[ALERT] %s", event_type)
        self._dispatcher.submit(
            "event_log", event_type,
            lambda: self._event_log.append(event_type, {"state": state}),
        )

    # ------------------------------------------------------------------

    def _incr(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    @property
    def stats(self) -> dict:
        with self._stats_lock:
            stats = dict(self._stats)
        with self._control_lock:
            stats["device_online"] = self._online
            stats["actuators"] = dict(self._actuator_states)
        stats["signals"] = {}
        for name, debouncer in self._debouncers.items():
            state = debouncer.state
            stats["signals"][name] = {
                "streak": state.consecutive_breach_count,
                "last_fire_time": state.last_fire_time,
            }
        return stats
