"""Motor de alertas.

Estructura:
    alerts/
    ├── models.py         → SignalSpec, DebounceState, Decision
    ├── debouncer.py      → SignalDebouncer (streak + cooldown)
    ├── evaluator.py      → AlertEvaluator (señales + control del dispositivo)
    ├── dispatcher.py     → efectos fire-and-forget
    ├── sinks.py          → interfaces Notifier / CommandPublisher / EventLog
    ├── notifier.py       → TelegramNotifier
    └── signal_config.py  → carga y validación de señales
"""

from .models import (
    Comparator,
    DebounceState,
    Decision,
    DecisionKind,
    SideEffectOutcome,
    SignalSpec,
)
from .errors import AlertServiceError, ConfigurationError, SideEffectError
from .debouncer import SignalDebouncer
from .evaluator import AlertEvaluator
from .dispatcher import InlineDispatcher, SideEffectDispatcher, create_dispatcher
from .sinks import CommandPublisher, EventLog, Notifier

__all__ = [
    "Comparator",
    "DebounceState",
    "Decision",
    "DecisionKind",
    "SideEffectOutcome",
    "SignalSpec",
    "AlertServiceError",
    "ConfigurationError",
    "SideEffectError",
    "SignalDebouncer",
    "AlertEvaluator",
    "InlineDispatcher",
    "SideEffectDispatcher",
    "create_dispatcher",
    "CommandPublisher",
    "EventLog",
    "Notifier",
]
