"""Core BatchReporter class, the main entry point for the library."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from loguru import logger

from batch_reporter.actor import _DRAIN, _STOP, batch_actor
from batch_reporter.config import ReporterConfig, get_name
from batch_reporter.errors import ReporterClosedError, SinkFailure
from batch_reporter.state import ReporterState

if TYPE_CHECKING:
    from batch_reporter.state import ReportFn


class BatchReporter:
    """Handle to a batching actor.

    Events pushed with :meth:`enqueue` are collected by an actor task and
    handed to *report_fn* as one list, oldest first. The first event of a
    cycle schedules the report; ``config.batch_time`` seconds later every
    event received so far is reported in a single call.

    The actor is started lazily on the first :meth:`enqueue` (or explicitly
    with :meth:`start`) and is bound to that event loop. :meth:`enqueue` is
    safe to call from other threads once the reporter is bound.

    If *report_fn* raises, the actor terminates and the failure is logged.
    The next :meth:`enqueue` starts a fresh actor; anything that was still
    buffered is lost.

    Args:
        report_fn: Called with each batch. May be a plain function or a
            coroutine function; the actor waits for it either way.
        config: Batch time and name, see :class:`ReporterConfig`.
    """

    __slots__ = (
        "_closed",
        "_config",
        "_inbox",
        "_last_failure",
        "_loop",
        "_report_fn",
        "_restarts",
        "_task",
    )

    def __init__(self, report_fn: ReportFn, *, config: ReporterConfig | None = None) -> None:
        if not callable(report_fn):
            raise TypeError(f"report_fn must be callable, got {type(report_fn).__name__}")
        self._report_fn = report_fn
        self._config = config or ReporterConfig()
        self._inbox: asyncio.Queue[Any] | None = None
        self._task: asyncio.Task[None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False
        self._restarts = 0
        self._last_failure: BaseException | None = None

    @property
    def config(self) -> ReporterConfig:
        return self._config

    @property
    def name(self) -> str:
        return get_name(self._config)

    @property
    def batch_time(self) -> float:
        return self._config.batch_time

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def restarts(self) -> int:
        """How many times the actor was started again after a crash."""
        return self._restarts

    @property
    def last_failure(self) -> BaseException | None:
        """The exception that terminated the actor most recently, if any."""
        return self._last_failure

    def start(self) -> BatchReporter:
        """Start the actor on the running event loop (idempotent)."""
        self._ensure_open()
        self._ensure_task()
        return self

    def enqueue(self, event: Any) -> None:
        """Hand *event* to the actor without waiting.

        Raises:
            ReporterClosedError: The reporter has been closed.
            RuntimeError: The reporter was never started and no event loop
                is running in this thread.
        """
        self._ensure_open()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if self._loop is None or running is self._loop:
            self._deliver(event)
        else:
            self._loop.call_soon_threadsafe(self._deliver, event)

    async def close(self, *, flush: bool = False) -> None:
        """Stop the actor.

        Buffered events are discarded unless *flush* is true, in which case
        they are reported first and a failure of that last report is raised.
        """
        if self._closed:
            return
        self._closed = True

        task, inbox = self._task, self._inbox
        if task is None or inbox is None or task.done():
            logger.info("Closed {}", self.name)
            return

        inbox.put_nowait(_DRAIN if flush else _STOP)
        try:
            await task
        except SinkFailure:
            if flush:
                raise
        finally:
            logger.info("Closed {}", self.name)

    def close_threaded(self, *, flush: bool = False, timeout: float | None = None) -> None:
        """Close from a thread other than the one running the reporter's loop."""
        if self._loop is None:
            self._closed = True
            return
        future = asyncio.run_coroutine_threadsafe(self.close(flush=flush), self._loop)
        future.result(timeout)

    def _deliver(self, event: Any) -> None:
        if self._closed:
            logger.debug("{} is closed, dropping event delivered after close", self.name)
            return
        inbox = self._ensure_task()
        inbox.put_nowait(event)

    def _ensure_task(self) -> asyncio.Queue[Any]:
        """Start the actor task if not already running."""
        if self._task is not None and not self._task.done() and self._inbox is not None:
            return self._inbox

        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                raise RuntimeError(f"{self.name} must be started from a running event loop") from None

        if self._task is None:
            logger.info("Starting {} (batch_time={}s)", self.name, self.batch_time)
        else:
            self._restarts += 1
            logger.info("Restarting {} with fresh state", self.name)

        inbox: asyncio.Queue[Any] = asyncio.Queue()
        state = ReporterState(report_fn=self._report_fn, batch_time=self._config.batch_time)
        self._inbox = inbox
        self._task = self._loop.create_task(batch_actor(inbox, state, self.name))
        self._task.add_done_callback(self._on_actor_done)
        return inbox

    def _on_actor_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        self._last_failure = exc
        logger.opt(exception=exc).error("{} crashed, unreported events were lost", self.name)

    def _ensure_open(self) -> None:
        if self._closed:
            raise ReporterClosedError(f"{self.name} is closed")

    async def __aenter__(self) -> BatchReporter:
        return self.start()

    async def __aexit__(self, exc_type: type[BaseException] | None, *_: Any) -> None:
        if exc_type is None:
            await self.close(flush=True)
            return

        # The body's exception wins over a failed final report.
        try:
            await self.close(flush=True)
        except SinkFailure:
            logger.opt(exception=True).error("Final report of {} failed during exceptional exit", self.name)

    def __repr__(self) -> str:
        return (
            f"BatchReporter(name={self.name!r}, "
            f"batch_time={self.batch_time}, "
            f"running={self.running}, "
            f"closed={self._closed})"
        )


def start(report_fn: ReportFn, batch_time: float = 0.0, *, name: str | None = None) -> BatchReporter:
    """Create a reporter and start its actor on the running event loop."""
    config = ReporterConfig(batch_time=batch_time, reporter_name=name)
    return BatchReporter(report_fn, config=config).start()


def enqueue(reporter: BatchReporter, event: Any) -> None:
    """Fire-and-forget *event* to *reporter*."""
    reporter.enqueue(event)
