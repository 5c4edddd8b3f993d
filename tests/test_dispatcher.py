"""Tests del dispatcher de efectos (fire-and-forget)."""

import threading

from alert_service.alerts.dispatcher import (
    InlineDispatcher,
    SideEffectDispatcher,
    create_dispatcher,
)
from alert_service.alerts.models import SideEffectOutcome


class TestInlineDispatcher:

    def test_runs_task_immediately(self):
        dispatcher = InlineDispatcher()
        calls = []

        dispatcher.submit("notify", "title", lambda: calls.append(1) or SideEffectOutcome.success())

        assert calls == [1]
        assert dispatcher.metrics["succeeded"] == 1

    def test_exception_is_captured(self):
        dispatcher = InlineDispatcher()

        def boom():
            raise ConnectionError("broker gone")

        assert dispatcher.submit("command", "gas", boom) is True
        assert dispatcher.metrics["failed"] == 1

    def test_failed_outcome_is_counted(self):
        dispatcher = InlineDispatcher()

        dispatcher.submit("event_log", "X", lambda: SideEffectOutcome.failure("db down"))

        assert dispatcher.metrics == {
            "mode": "inline", "submitted": 1, "dropped": 0, "succeeded": 0, "failed": 1,
        }


class TestSideEffectDispatcher:

    def test_workers_run_tasks_off_the_caller_thread(self):
        dispatcher = SideEffectDispatcher(max_queue_size=10, num_workers=1)
        dispatcher.start()
        seen = []

        def task():
            seen.append(threading.current_thread().name)
            return SideEffectOutcome.success()

        dispatcher.submit("notify", "t", task)
        dispatcher.stop(drain=True)

        assert seen == ["side-effect-worker-0"]
        assert dispatcher.metrics["succeeded"] == 1

    def test_submit_does_not_block_on_slow_task(self):
        dispatcher = SideEffectDispatcher(max_queue_size=10, num_workers=1)
        dispatcher.start()
        release = threading.Event()

        dispatcher.submit("notify", "slow", lambda: release.wait(5) and None)
        accepted = dispatcher.submit("notify", "next", lambda: None)

        assert accepted is True
        release.set()
        dispatcher.stop(drain=True)
        assert dispatcher.metrics["succeeded"] == 2

    def test_full_queue_drops(self):
        # Sin workers: nada consume la cola
        dispatcher = SideEffectDispatcher(max_queue_size=1, num_workers=1)

        assert dispatcher.submit("notify", "a", lambda: None) is True
        assert dispatcher.submit("notify", "b", lambda: None) is False
        assert dispatcher.metrics["dropped"] == 1

    def test_failing_task_does_not_kill_worker(self):
        dispatcher = SideEffectDispatcher(max_queue_size=10, num_workers=1)
        dispatcher.start()

        def boom():
            raise RuntimeError("x")

        dispatcher.submit("notify", "bad", boom)
        dispatcher.submit("notify", "good", lambda: SideEffectOutcome.success())
        dispatcher.stop(drain=True)

        metrics = dispatcher.metrics
        assert metrics["failed"] == 1
        assert metrics["succeeded"] == 1


class TestFactory:

    def test_flag_selects_dispatcher(self, monkeypatch, tmp_path):
        from common.config import get_settings

        monkeypatch.setenv("IOT_ENV_FILE", str(tmp_path / "missing.env"))
        monkeypatch.setenv("ALERT_ASYNC_SIDE_EFFECTS", "false")
        assert isinstance(create_dispatcher(get_settings()), InlineDispatcher)

        monkeypatch.setenv("ALERT_ASYNC_SIDE_EFFECTS", "true")
        monkeypatch.setenv("ALERT_QUEUE_SIZE", "7")
        dispatcher = create_dispatcher(get_settings())
        assert isinstance(dispatcher, SideEffectDispatcher)
        assert dispatcher.metrics["queue_max"] == 7
