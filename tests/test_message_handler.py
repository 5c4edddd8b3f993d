"""Tests del handler de mensajes MQTT (enrutamiento por topic)."""

import json
from unittest.mock import MagicMock

import pytest

from alert_service.alerts.dispatcher import InlineDispatcher
from alert_service.alerts.models import SideEffectOutcome
from alert_service.mqtt.message_handler import TelemetryMessageHandler
from alert_service.mqtt.validators import decode_payload

NS = "lstiot/lab/room1"


@pytest.fixture
def evaluator():
    return MagicMock()


@pytest.fixture
def sensor_repository():
    repo = MagicMock()
    repo.insert_reading.return_value = SideEffectOutcome.success()
    return repo


@pytest.fixture
def handler(evaluator, sensor_repository):
    return TelemetryMessageHandler(
        topic_ns=NS,
        evaluator=evaluator,
        dispatcher=InlineDispatcher(),
        sensor_repository=sensor_repository,
        clock=lambda: 1000.0,
    )


def _payload(data):
    return json.dumps(data).encode("utf-8")


# =============================================================================
# ENRUTAMIENTO
# =============================================================================

class TestRouting:

    def test_sensor_state_is_stored_and_evaluated(self, handler, evaluator, sensor_repository):
        sample = {"temp_c": 24.1, "gas": 950, "lux": 300}

        assert handler.handle(f"{NS}/sensor/state", _payload(sample)) is True

        sensor_repository.insert_reading.assert_called_once_with(sample)
        evaluator.process_sample.assert_called_once_with(sample, 1000.0)

    def test_online_status(self, handler, evaluator):
        handler.handle(f"{NS}/sys/online", _payload({"online": True}))

        evaluator.handle_online_status.assert_called_once_with({"online": True})

    def test_device_state(self, handler, evaluator):
        handler.handle(f"{NS}/device/state", _payload({"light": "on", "fan": "off"}))

        evaluator.handle_device_state.assert_called_once_with({"light": "on", "fan": "off"})

    @pytest.mark.parametrize("topic", [
        f"{NS}/device/cmd",
        "other/ns/sensor/state",
        f"{NS}/sensor/state/extra",
    ])
    def test_other_topics_are_ignored(self, handler, evaluator, topic):
        assert handler.handle(topic, _payload({"temp_c": 40})) is False

        evaluator.process_sample.assert_not_called()
        assert handler.stats.ignored == 1
        assert handler.stats.received == 0

    def test_without_repository_only_evaluates(self, evaluator):
        handler = TelemetryMessageHandler(NS, evaluator, InlineDispatcher(), clock=lambda: 5.0)

        assert handler.handle(f"{NS}/sensor/state", _payload({"gas": 10})) is True
        evaluator.process_sample.assert_called_once_with({"gas": 10}, 5.0)


# =============================================================================
# PAYLOADS INVÁLIDOS Y ERRORES
# =============================================================================

class TestInvalidMessages:

    @pytest.mark.parametrize("raw", [b"not json", b"\xff\xfe", b"[1, 2]", b'"text"'])
    def test_invalid_payload_is_counted_and_skipped(self, handler, evaluator, raw):
        assert handler.handle(f"{NS}/sensor/state", raw) is False

        evaluator.process_sample.assert_not_called()
        assert handler.stats.failed == 1

    def test_evaluator_error_does_not_escape(self, handler, evaluator):
        evaluator.process_sample.side_effect = RuntimeError("boom")

        assert handler.handle(f"{NS}/sensor/state", _payload({"gas": 1})) is False
        assert handler.stats.failed == 1

    def test_stats_track_topics(self, handler):
        handler.handle(f"{NS}/sensor/state", _payload({"gas": 1}))
        handler.handle(f"{NS}/sensor/state", _payload({"gas": 2}))
        handler.handle(f"{NS}/sys/online", _payload({"online": True}))

        stats = handler.stats.to_dict()
        assert stats["processed"] == 3
        assert stats["by_topic"] == {"sensor/state": 2, "sys/online": 1}
        assert stats["last_message_at"] == 1000.0


class TestDecodePayload:

    def test_valid_object(self):
        result = decode_payload(b'{"temp_c": 22.5}')

        assert result.valid is True
        assert result.data == {"temp_c": 22.5}

    def test_empty_object_warns(self):
        result = decode_payload(b"{}")

        assert result.valid is True
        assert result.warnings
