"""Side-effect dispatcher: decouples alert evaluation from network I/O.

The paho network thread evaluates a sample and enqueues the resulting
notification / command / event-log calls (~0.01ms); worker threads execute
them. Delivery is best effort and at-most-once: a full queue drops the task,
a failed task is logged and never retried.

Feature flag: ALERT_ASYNC_SIDE_EFFECTS (default True). When disabled the
InlineDispatcher runs tasks synchronously on the caller's thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from common.config import Settings

from .errors import SideEffectError
from .models import SideEffectOutcome

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000
DEFAULT_NUM_WORKERS = 2


@dataclass
class SideEffectTask:
    kind: str  # notify | command | event_log | sensor_store
    label: str
    action: Callable[[], Optional[SideEffectOutcome]]


class _DispatchMetrics:
    def __init__(self):
        self.submitted = 0
        self.dropped = 0
        self.succeeded = 0
        self.failed = 0
        self._lock = threading.Lock()

    def incr(self, name: str) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "submitted": self.submitted,
                "dropped": self.dropped,
                "succeeded": self.succeeded,
                "failed": self.failed,
            }


class InlineDispatcher:
    """Runs each task immediately. Used when async side effects are disabled."""

    def __init__(self):
        self._metrics = _DispatchMetrics()

    def start(self) -> None:
        pass

    def stop(self, drain: bool = True) -> None:
        pass

    def submit(self, kind: str, label: str, action: Callable[[], Optional[SideEffectOutcome]]) -> bool:
        self._metrics.incr("submitted")
        _execute(SideEffectTask(kind, label, action), self._metrics)
        return True

    @property
    def metrics(self) -> dict:
        return {"mode": "inline", **self._metrics.to_dict()}


class SideEffectDispatcher:
    """Bounded queue + worker threads for fire-and-forget side effects.

    - submit() never blocks; returns False when the queue is full
    - Workers run tasks and log their outcome
    """

    def __init__(
        self,
        max_queue_size: int = DEFAULT_QUEUE_SIZE,
        num_workers: int = DEFAULT_NUM_WORKERS,
    ):
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._num_workers = num_workers
        self._stop_event = threading.Event()
        self._metrics = _DispatchMetrics()
        self._workers: list[threading.Thread] = []

    def start(self) -> None:
        """Start worker threads."""
        if self._workers:
            return
        self._stop_event.clear()
        for i in range(self._num_workers):
            t = threading.Thread(
                target=self._worker_loop,
                args=(i,),
                daemon=True,
                name=f"side-effect-worker-{i}",
            )
            t.start()
            self._workers.append(t)
        logger.info(
            "[DISPATCH] Started workers=%d queue_max=%d",
            self._num_workers, self._queue.maxsize,
        )

    def stop(self, drain: bool = True) -> None:
        """Stop workers. If drain=True, run remaining tasks first."""
        if drain and self._workers:
            self._queue.join()
        self._stop_event.set()
        for t in self._workers:
            t.join(timeout=5.0)
        self._workers.clear()
        logger.info("[DISPATCH] Stopped. %s", self.metrics)

    def submit(self, kind: str, label: str, action: Callable[[], Optional[SideEffectOutcome]]) -> bool:
        """Enqueue a side effect. Returns False if dropped."""
        try:
            self._queue.put_nowait(SideEffectTask(kind, label, action))
            self._metrics.incr("submitted")
            return True
        except queue.Full:
            self._metrics.incr("dropped")
            logger.warning("[DISPATCH] Queue full, dropped %s (%s)", kind, label)
            return False

    def _worker_loop(self, worker_id: int) -> None:
        while not self._stop_event.is_set():
            try:
                task = self._queue.get(timeout=1.0)
            except queue.Empty:
                continue

            try:
                _execute(task, self._metrics)
            finally:
                self._queue.task_done()

    @property
    def metrics(self) -> dict:
        return {
            "mode": "async",
            "queue_depth": self._queue.qsize(),
            "queue_max": self._queue.maxsize,
            "workers": len(self._workers),
            **self._metrics.to_dict(),
        }


def _execute(task: SideEffectTask, metrics: _DispatchMetrics) -> None:
    try:
        outcome = task.action()
    except Exception as e:
        metrics.incr("failed")
        err = SideEffectError(task.kind, str(e) or type(e).__name__)
        logger.error("[DISPATCH] %s failed (%s): %s", task.kind, task.label, err)
        return

    if outcome is not None and not outcome.ok:
        metrics.incr("failed")
        logger.warning(
            "[DISPATCH] %s not delivered (%s): %s", task.kind, task.label, outcome.error,
        )
        return

    metrics.incr("succeeded")
    logger.debug("[DISPATCH] %s ok (%s)", task.kind, task.label)


def create_dispatcher(settings: Settings):
    """Factory: dispatcher from settings.

    Returns an InlineDispatcher if ALERT_ASYNC_SIDE_EFFECTS is disabled.
    """
    if not settings.async_side_effects:
        logger.info("[DISPATCH] Async disabled by ALERT_ASYNC_SIDE_EFFECTS=false")
        return InlineDispatcher()

    return SideEffectDispatcher(
        max_queue_size=settings.queue_size,
        num_workers=settings.num_workers,
    )
