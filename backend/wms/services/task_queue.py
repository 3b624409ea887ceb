# Overview: In-process background task queue consumed by a single worker thread.

"""
Fire-and-forget deferred work (search-vector regeneration).

The request path only enqueues; a daemon worker drains the queue, running
every task inside a fresh application context with its own session. A task
failure is logged and never reaches the caller whose write scheduled it.

With TASKS_EAGER the task runs inline right after being scheduled, which is
what tests and one-shot CLI commands use.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field

from ..extensions import db


@dataclass(frozen=True)
class TaskDescriptor:
    name: str
    kwargs: dict = field(default_factory=dict)


class TaskQueue:
    def __init__(self, app=None):
        self.app = None
        self.eager = False
        self._handlers: dict = {}
        self._queue: queue.Queue = queue.Queue()
        self._worker: threading.Thread | None = None
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        self.app = app
        self.eager = bool(app.config.get("TASKS_EAGER", False))
        app.extensions["wms.tasks"] = self

    def task(self, name: str):
        """Register a handler under a task name."""
        def decorator(func):
            self._handlers[name] = func
            return func
        return decorator

    def run_async(self, name: str, **kwargs) -> TaskDescriptor:
        if name not in self._handlers:
            raise KeyError(f"Unknown task: {name}")
        descriptor = TaskDescriptor(name=name, kwargs=kwargs)
        if self.eager:
            self._execute(descriptor)
        else:
            self._ensure_worker()
            self._queue.put(descriptor)
        return descriptor

    def join(self) -> None:
        """Block until every queued task has been processed."""
        self._queue.join()

    def shutdown(self) -> None:
        with self._lock:
            if self._worker is None:
                return
            self._queue.put(None)
            self._worker.join()
            self._worker = None

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is not None and self._worker.is_alive():
                return
            self._worker = threading.Thread(target=self._run, name="wms-task-worker", daemon=True)
            self._worker.start()

    def _run(self) -> None:
        while True:
            descriptor = self._queue.get()
            try:
                if descriptor is None:
                    return
                with self.app.app_context():
                    self._execute(descriptor)
            finally:
                self._queue.task_done()

    def _execute(self, descriptor: TaskDescriptor) -> None:
        handler = self._handlers[descriptor.name]
        try:
            handler(**descriptor.kwargs)
        except Exception:
            db.session.rollback()
            self.app.logger.exception("Background task %s failed (%r)", descriptor.name, descriptor.kwargs)


tasks = TaskQueue()
