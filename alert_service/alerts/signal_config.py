"""Carga de la configuración de señales.

Por defecto: temperatura, gas y luz desde las variables de entorno
(TEMP_HIGH_C, GAS_RAW_HIGH, LUX_LOW, ALERT_STREAK_NEEDED,
ALERT_COOLDOWN_SECONDS).

ALERT_SIGNALS_FILE reemplaza los defaults con una lista JSON:
[
    {
        "name": "gas",
        "comparator": ">=",
        "threshold": 1800,
        "streak_required": 5,
        "cooldown_seconds": 10,
        "resets_streak_after_fire": true,
        "drives_command": {"trigger_alert": "blink"}
    }
]

Cualquier error es ConfigurationError (fatal en el arranque).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

from common.config import Settings

from .errors import ConfigurationError
from .models import Comparator, SignalSpec

logger = logging.getLogger(__name__)


def default_signal_specs(settings: Settings) -> List[SignalSpec]:
    streak = settings.streak_needed
    cooldown = settings.cooldown_seconds

    return [
        SignalSpec(
            name="temperature",
            sample_key="temp_c",
            comparator=Comparator.GTE,
            threshold=settings.temp_high_c,
            streak_required=streak,
            cooldown_seconds=cooldown,
            event_type="ALERT_TEMP_HIGH",
            details_key="temperature",
            title="🔥 HIGH TEMPERATURE ALERT",
            message="Temperature: {value:g}°C. Threshold exceeded!",
        ),
        SignalSpec(
            name="gas",
            sample_key="gas",
            comparator=Comparator.GTE,
            threshold=settings.gas_raw_high,
            streak_required=streak,
            cooldown_seconds=cooldown,
            drives_command={"trigger_alert": "blink"},
            event_type="ALERT_GAS_HIGH",
            details_key="gas_level",
            title="☠️ GAS LEAK ALERT",
            message="Gas level: {value:g}. Dangerous gas concentration detected!",
        ),
        # Luz baja: no resetea el streak al disparar, vuelve a disparar
        # apenas expira el cooldown mientras siga oscuro.
        SignalSpec(
            name="lux",
            sample_key="lux",
            comparator=Comparator.LTE,
            threshold=settings.lux_low,
            streak_required=streak,
            cooldown_seconds=cooldown,
            resets_streak_after_fire=False,
            drives_command={"auto_light": "on"},
            event_type="EVENT_AUTO_LIGHT",
            details_key="lux",
            title="🤖 Auto Light Mode",
            message="Auto light mode enabled because it is dark.",
        ),
    ]


def parse_signal_specs(raw: Any) -> List[SignalSpec]:
    """Valida una lista de definiciones de señal."""
    if not isinstance(raw, list) or not raw:
        raise ConfigurationError("signal configuration must be a non-empty list")

    specs: List[SignalSpec] = []
    seen = set()
    for item in raw:
        if not isinstance(item, dict):
            raise ConfigurationError(f"signal definition must be an object, got {item!r}")
        spec = SignalSpec.from_dict(item)
        if spec.name in seen:
            raise ConfigurationError(f"duplicate signal name {spec.name!r}")
        seen.add(spec.name)
        specs.append(spec)
    return specs


def load_signal_specs(settings: Settings) -> List[SignalSpec]:
    if not settings.signals_file:
        specs = default_signal_specs(settings)
    else:
        path = Path(settings.signals_file)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"cannot read {path}: {e}") from e
        specs = parse_signal_specs(raw)

    for spec in specs:
        logger.info(
            "[CONFIG] Signal %s: %s %s %g streak=%d cooldown=%gs reset_on_fire=%s command=%s",
            spec.name,
            spec.sample_key,
            spec.comparator.value,
            spec.threshold,
            spec.streak_required,
            spec.cooldown_seconds,
            spec.resets_streak_after_fire,
            spec.drives_command,
        )
    return specs
