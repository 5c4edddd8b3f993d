"""Decodificación de payloads MQTT.

Los tres topics usan JSON con un objeto en la raíz:
- <ns>/sensor/state  → {"temp_c": 36.1, "hum_pct": 40, "gas": 900, "pressure": 1012, "lux": 320}
- <ns>/sys/online    → {"online": true}
- <ns>/device/state  → {"light": "on", "fan": "off"}

La validación por campo la hace el evaluador (una señal malformada no
invalida el resto de la muestra).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ValidationResult:
    """Resultado de decodificar un payload."""
    valid: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


def decode_payload(raw: bytes) -> ValidationResult:
    """Decodifica bytes MQTT a un dict JSON."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        return ValidationResult(valid=False, error=f"Invalid UTF-8: {e}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return ValidationResult(valid=False, error=f"Invalid JSON: {e}")

    if not isinstance(data, dict):
        return ValidationResult(
            valid=False, error=f"Payload must be a JSON object, got {type(data).__name__}",
        )

    warnings = []
    if not data:
        warnings.append("empty payload")

    return ValidationResult(valid=True, data=data, warnings=warnings)
