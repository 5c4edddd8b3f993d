"""Debouncer de una señal: streak de lecturas consecutivas + cooldown.

Reglas:
- Lectura fuera de umbral → incrementa el streak
- Lectura normal → streak a 0, siempre (incluso durante cooldown)
- FIRE solo si streak >= streak_required y el cooldown expiró
- Tras FIRE, el streak vuelve a 0 solo si resets_streak_after_fire
"""

from __future__ import annotations

import threading

from .models import (
    COOLDOWN_ACTIVE,
    DebounceState,
    Decision,
    DecisionKind,
    SignalSpec,
)


class SignalDebouncer:
    """Máquina de estado por señal. Sin I/O, sin reloj propio."""

    def __init__(self, spec: SignalSpec):
        self._spec = spec
        self._state = DebounceState()
        self._lock = threading.Lock()

    @property
    def spec(self) -> SignalSpec:
        return self._spec

    @property
    def state(self) -> DebounceState:
        """Copia del estado actual (solo lectura)."""
        with self._lock:
            return DebounceState(
                consecutive_breach_count=self._state.consecutive_breach_count,
                last_fire_time=self._state.last_fire_time,
            )

    def evaluate(self, value: float, now: float) -> Decision:
        """Evalúa una lectura.

        Args:
            value: Valor numérico ya validado
            now: Tiempo de llegada en segundos

        Returns:
            Decision con el tipo y el streak resultante
        """
        spec = self._spec

        with self._lock:
            state = self._state

            if not spec.comparator.breached(value, spec.threshold):
                state.consecutive_breach_count = 0
                return Decision(DecisionKind.NO_BREACH, 0)

            state.consecutive_breach_count += 1
            count = state.consecutive_breach_count

            if count < spec.streak_required:
                return Decision(DecisionKind.BREACH_BELOW_STREAK, count)

            if (
                state.last_fire_time is not None
                and now - state.last_fire_time < spec.cooldown_seconds
            ):
                return Decision(DecisionKind.SUPPRESSED, count, reason=COOLDOWN_ACTIVE)

            # now < last_fire_time cae en el cooldown: last_fire_time nunca retrocede
            state.last_fire_time = now
            if spec.resets_streak_after_fire:
                state.consecutive_breach_count = 0

            return Decision(DecisionKind.FIRE, state.consecutive_breach_count)
