"""Modelos del motor de alertas.

- SignalSpec: configuración estática por señal (inmutable)
- DebounceState: estado mutable del debouncer de una señal
- Decision: resultado de evaluar una lectura
- SideEffectOutcome: resultado de notificación / comando / evento
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .errors import ConfigurationError


class Comparator(str, Enum):
    """Operador de umbral."""
    GTE = ">="
    LTE = "<="

    def breached(self, value: float, threshold: float) -> bool:
        if self is Comparator.GTE:
            return value >= threshold
        return value <= threshold


class DecisionKind(str, Enum):
    NO_BREACH = "no_breach"
    BREACH_BELOW_STREAK = "breach_below_streak"
    SUPPRESSED = "suppressed"
    FIRE = "fire"


COOLDOWN_ACTIVE = "cooldown_active"


@dataclass(frozen=True)
class Decision:
    """Decisión del debouncer para una lectura.

    streak es el contador de lecturas consecutivas tras la evaluación
    (0 después de un FIRE si la señal resetea el streak).
    """
    kind: DecisionKind
    streak: int
    reason: Optional[str] = None

    @property
    def fired(self) -> bool:
        return self.kind is DecisionKind.FIRE


@dataclass
class DebounceState:
    consecutive_breach_count: int = 0
    last_fire_time: Optional[float] = None


@dataclass(frozen=True)
class SignalSpec:
    """Configuración de una señal monitoreada.

    Example:
        SignalSpec(
            name="gas",
            comparator=Comparator.GTE,
            threshold=1800,
            streak_required=5,
            cooldown_seconds=10,
            drives_command={"trigger_alert": "blink"},
        )
    """
    name: str
    comparator: Comparator
    threshold: float
    streak_required: int
    cooldown_seconds: float
    resets_streak_after_fire: bool = True
    drives_command: Optional[Dict[str, str]] = None
    sample_key: str = ""
    event_type: str = ""
    details_key: str = ""
    title: str = ""
    message: str = "{value}"

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigurationError("signal name is required")

        try:
            comparator = Comparator(self.comparator)
        except ValueError:
            raise ConfigurationError(
                f"[{self.name}] unknown comparator {self.comparator!r}"
            ) from None

        if isinstance(self.streak_required, bool) or not isinstance(self.streak_required, int):
            raise ConfigurationError(f"[{self.name}] streak_required must be an integer")
        if self.streak_required < 1:
            raise ConfigurationError(
                f"[{self.name}] streak_required must be >= 1 (got {self.streak_required})"
            )

        if not _is_finite_number(self.threshold):
            raise ConfigurationError(f"[{self.name}] threshold must be a finite number")
        if not _is_finite_number(self.cooldown_seconds) or self.cooldown_seconds < 0:
            raise ConfigurationError(
                f"[{self.name}] cooldown_seconds must be a finite number >= 0"
            )

        if not isinstance(self.resets_streak_after_fire, bool):
            raise ConfigurationError(
                f"[{self.name}] resets_streak_after_fire must be true or false "
                f"(got {self.resets_streak_after_fire!r})"
            )

        if not isinstance(self.message, str):
            raise ConfigurationError(f"[{self.name}] message must be a string")
        try:
            self.message.format(value=0.0, threshold=float(self.threshold))
        except (KeyError, IndexError, ValueError, AttributeError) as e:
            raise ConfigurationError(
                f"[{self.name}] invalid message template {self.message!r}: {e!r}"
            ) from None

        if self.drives_command is not None:
            if not self.drives_command or not all(
                isinstance(k, str) and isinstance(v, str)
                for k, v in self.drives_command.items()
            ):
                raise ConfigurationError(
                    f"[{self.name}] drives_command must be a non-empty mapping of strings"
                )

        # Frozen: normalizar vía object.__setattr__
        object.__setattr__(self, "comparator", comparator)
        object.__setattr__(self, "threshold", float(self.threshold))
        object.__setattr__(self, "cooldown_seconds", float(self.cooldown_seconds))
        if self.drives_command is not None:
            object.__setattr__(self, "drives_command", dict(self.drives_command))
        if not self.sample_key:
            object.__setattr__(self, "sample_key", self.name)
        if not self.event_type:
            object.__setattr__(self, "event_type", f"ALERT_{self.name.upper()}")
        if not self.details_key:
            object.__setattr__(self, "details_key", self.sample_key)
        if not self.title:
            object.__setattr__(
                self, "title", f"{self.name} {comparator.value} {self.threshold:g}"
            )

    def render_message(self, value: float) -> str:
        return self.message.format(value=value, threshold=self.threshold)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignalSpec":
        try:
            return cls(
                name=data["name"],
                comparator=data["comparator"],
                threshold=data["threshold"],
                streak_required=data["streak_required"],
                cooldown_seconds=data["cooldown_seconds"],
                resets_streak_after_fire=data.get("resets_streak_after_fire", True),
                drives_command=data.get("drives_command"),
                sample_key=data.get("sample_key", ""),
                event_type=data.get("event_type", ""),
                details_key=data.get("details_key", ""),
                title=data.get("title", ""),
                message=data.get("message", "{value}"),
            )
        except KeyError as e:
            raise ConfigurationError(f"signal definition missing field {e.args[0]!r}") from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "comparator": self.comparator.value,
            "threshold": self.threshold,
            "streak_required": self.streak_required,
            "cooldown_seconds": self.cooldown_seconds,
            "resets_streak_after_fire": self.resets_streak_after_fire,
            "drives_command": self.drives_command,
            "sample_key": self.sample_key,
            "event_type": self.event_type,
        }


@dataclass
class SideEffectOutcome:
    """Resultado de un efecto externo. Los sinks lo retornan, nunca lanzan."""
    ok: bool
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, **details: Any) -> "SideEffectOutcome":
        return cls(ok=True, details=details)

    @classmethod
    def failure(cls, error: str, **details: Any) -> "SideEffectOutcome":
        return cls(ok=False, error=error, details=details)


def to_finite_float(value: Any) -> Optional[float]:
    """Retorna el valor como float, o None si no es un número finito.

    bool se rechaza aunque sea subclase de int.
    """
    if not _is_finite_number(value):
        return None
    return float(value)


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
