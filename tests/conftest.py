"""Fixtures compartidas."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from alert_service.alerts.dispatcher import InlineDispatcher
from alert_service.alerts.evaluator import AlertEvaluator
from alert_service.alerts.models import Comparator, SideEffectOutcome, SignalSpec
from alert_service.persistence.schema import ensure_schema


def make_spec(**overrides) -> SignalSpec:
    fields = {
        "name": "temperature",
        "sample_key": "temp_c",
        "comparator": Comparator.GTE,
        "threshold": 35.0,
        "streak_required": 5,
        "cooldown_seconds": 10.0,
    }
    fields.update(overrides)
    return SignalSpec(**fields)


def gas_spec() -> SignalSpec:
    return make_spec(
        name="gas",
        sample_key="gas",
        threshold=1800,
        drives_command={"trigger_alert": "blink"},
        event_type="ALERT_GAS_HIGH",
        details_key="gas_level",
        title="☠️ GAS LEAK ALERT",
    )


def lux_spec() -> SignalSpec:
    return make_spec(
        name="lux",
        sample_key="lux",
        comparator=Comparator.LTE,
        threshold=500,
        resets_streak_after_fire=False,
        drives_command={"auto_light": "on"},
        event_type="EVENT_AUTO_LIGHT",
    )


@pytest.fixture
def notifier():
    sink = MagicMock()
    sink.notify.return_value = SideEffectOutcome.success()
    return sink


@pytest.fixture
def command_publisher():
    sink = MagicMock()
    sink.publish_command.return_value = SideEffectOutcome.success()
    return sink


@pytest.fixture
def event_log():
    sink = MagicMock()
    sink.append.return_value = SideEffectOutcome.success()
    return sink


@pytest.fixture
def dispatcher():
    return InlineDispatcher()


@pytest.fixture
def make_evaluator(notifier, command_publisher, event_log, dispatcher):
    def _make(specs=None):
        return AlertEvaluator(
            specs if specs is not None else [make_spec(), gas_spec(), lux_spec()],
            notifier=notifier,
            command_publisher=command_publisher,
            event_log=event_log,
            dispatcher=dispatcher,
        )
    return _make


@pytest.fixture
def sqlite_engine():
    """SQLite en memoria compartida entre conexiones."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    assert ensure_schema(engine) is True
    yield engine
    engine.dispose()
