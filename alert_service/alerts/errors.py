"""Errores del motor de alertas."""

from __future__ import annotations


class AlertServiceError(Exception):
    """Base para errores del servicio de alertas."""


class ConfigurationError(AlertServiceError):
    """Configuración de señal inválida. Fatal en el arranque."""


class SideEffectError(AlertServiceError):
    """Falla de notificación, comando o escritura de evento.

    Se registra y se descarta: nunca detiene la evaluación.
    """

    def __init__(self, kind: str, message: str):
        super().__init__(f"{kind}: {message}")
        self.kind = kind
        self.message = message
