"""Reusable worker threads for yieldable signals.

A :class:`CallbackScheduler` lets ``Signal.fire`` hand a callback to another
thread of control and move on immediately. Creating a thread per callback is
wasteful, so the scheduler keeps a single pooled slot holding at most one idle
worker. A dispatch claims that worker when it is free and spawns a new one
otherwise, e.g. while the previous worker is still stuck inside a blocking
callback. When a worker finishes its callback it takes the slot back; any
worker already idle there is retired, so the slot always tracks the newest
available worker.

No ordering is promised between dispatched callbacks.
"""

from __future__ import annotations

import itertools
import queue
import threading
from typing import Any, Callable, Optional, Tuple

from .exceptions import SchedulerClosedError
from .logging import get_logger
from .telemetry import MetricsCollector

LOGGER = get_logger("scheduler")

_Job = Tuple[Callable[..., Any], Tuple[Any, ...]]


class _Worker(threading.Thread):
    """Thread that runs one job at a time and then offers itself for reuse."""

    def __init__(self, scheduler: "CallbackScheduler", name: str) -> None:
        super().__init__(name=name, daemon=True)
        self._scheduler = scheduler
        self._inbox: "queue.SimpleQueue[Optional[_Job]]" = queue.SimpleQueue()

    def submit(self, callback: Callable[..., Any], args: Tuple[Any, ...]) -> None:
        self._inbox.put((callback, args))

    def retire(self) -> None:
        self._inbox.put(None)

    def run(self) -> None:
        while True:
            job = self._inbox.get()
            if job is None:
                LOGGER.debug("Worker retired", extra={"worker": self.name})
                return
            callback, args = job
            try:
                callback(*args)
            except Exception:
                self._scheduler.metrics.increment("callbacks_failed")
                LOGGER.exception(
                    "Unhandled error in dispatched callback %s",
                    getattr(callback, "__name__", repr(callback)),
                    extra={"worker": self.name},
                )
            self._scheduler._release(self)


class CallbackScheduler:
    """Runs callbacks on recycled daemon threads without waiting for them."""

    def __init__(self, name: str = "signal-worker") -> None:
        self.name = name
        self.metrics = MetricsCollector()
        self._lock = threading.Lock()
        self._idle: _Worker | None = None
        self._closed = False
        self._ids = itertools.count(1)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_idle_worker(self) -> bool:
        with self._lock:
            return self._idle is not None

    def dispatch(self, callback: Callable[..., Any], *args: Any) -> None:
        """Run ``callback(*args)`` on a worker thread and return immediately."""

        with self._lock:
            if self._closed:
                raise SchedulerClosedError(f"Scheduler {self.name} has been shut down")
            worker = self._idle
            self._idle = None

        if worker is None:
            worker = self._spawn()
        else:
            self.metrics.increment("workers_reused")
        worker.submit(callback, args)

    def _spawn(self) -> _Worker:
        worker = _Worker(self, f"{self.name}-{next(self._ids)}")
        worker.start()
        self.metrics.increment("workers_spawned")
        LOGGER.debug("Worker spawned", extra={"worker": worker.name})
        return worker

    def _release(self, worker: _Worker) -> None:
        # Called by the worker itself once its callback has fully returned.
        with self._lock:
            if self._closed:
                displaced = worker
            else:
                displaced = self._idle
                self._idle = worker
        if displaced is not None:
            self.metrics.increment("workers_retired")
            displaced.retire()

    def shutdown(self) -> None:
        """Retire the idle worker and refuse further dispatches.

        Workers still running a callback retire as soon as it returns.
        """

        with self._lock:
            self._closed = True
            worker = self._idle
            self._idle = None
        if worker is not None:
            self.metrics.increment("workers_retired")
            worker.retire()

    def __enter__(self) -> "CallbackScheduler":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


_default_scheduler: CallbackScheduler | None = None
_default_lock = threading.Lock()


def get_default_scheduler() -> CallbackScheduler:
    """Return the process-wide scheduler shared by signals built without one."""

    global _default_scheduler
    with _default_lock:
        if _default_scheduler is None or _default_scheduler.closed:
            _default_scheduler = CallbackScheduler()
        return _default_scheduler


def set_default_scheduler(scheduler: CallbackScheduler | None) -> None:
    """Replace the process-wide scheduler. ``None`` resets to a lazily built one."""

    global _default_scheduler
    with _default_lock:
        _default_scheduler = scheduler


__all__ = ["CallbackScheduler", "get_default_scheduler", "set_default_scheduler"]
