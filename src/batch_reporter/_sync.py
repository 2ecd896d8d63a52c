"""Background host for reporters used from synchronous code.

Producers in plain threads enqueue on reporters that live on a host; their
actors run on one daemon thread with its own event loop.
"""

import asyncio
import threading

from loguru import logger

from batch_reporter.config import ReporterConfig
from batch_reporter.core import BatchReporter
from batch_reporter.errors import SinkFailure
from batch_reporter.state import ReportFn


class ReporterHost:
    """Daemon thread running an event loop that owns a set of reporters.

    The thread is started by the first :meth:`add`. :meth:`shutdown` closes
    every hosted reporter on the loop before stopping it.

    Example::

        host = ReporterHost()
        reporter = host.add(write_points, ReporterConfig(batch_time=1.0))
        reporter.enqueue({"measurement": "cpu", "value": 0.4})
        host.shutdown(flush=True)
    """

    __slots__ = ("_lock", "_loop", "_ready", "_reporters", "_thread", "thread_name")

    def __init__(self, thread_name: str = "batch-reporter-host") -> None:
        self.thread_name = thread_name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()
        self._lock = threading.Lock()
        self._reporters: list[BatchReporter] = []

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def reporters(self) -> list[BatchReporter]:
        """Reporters started on this host and not yet shut down."""
        with self._lock:
            return list(self._reporters)

    def add(self, report_fn: ReportFn, config: ReporterConfig | None = None, timeout: float = 5.0) -> BatchReporter:
        """Start a reporter whose actor runs on the host loop.

        *report_fn* is called on the host thread.
        """
        loop = self._ensure_thread()
        reporter = BatchReporter(report_fn, config=config)

        async def _start_on_host() -> None:
            reporter.start()

        asyncio.run_coroutine_threadsafe(_start_on_host(), loop).result(timeout)
        with self._lock:
            self._reporters.append(reporter)
        logger.debug("{} hosted on {}", reporter.name, self.thread_name)
        return reporter

    def shutdown(self, *, flush: bool = False, timeout: float = 5.0) -> None:
        """Close all hosted reporters, then stop the loop and join the thread.

        Raises:
            SinkFailure: A final report failed; raised after the thread stopped.
        """
        with self._lock:
            reporters, self._reporters = self._reporters, []
            loop, thread = self._loop, self._thread

        if loop is None or thread is None:
            return

        failures: list[BaseException] = []
        if reporters:
            future = asyncio.run_coroutine_threadsafe(_close_reporters(reporters, flush), loop)
            failures = future.result(timeout)

        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        with self._lock:
            self._loop = None
            self._thread = None
            self._ready.clear()
        logger.debug("{} stopped after closing {} reporters", self.thread_name, len(reporters))

        if failures:
            raise failures[0]

    def _ensure_thread(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._thread is None:
                self._thread = threading.Thread(target=self._run, name=self.thread_name, daemon=True)
                self._thread.start()
        self._ready.wait()
        assert self._loop is not None
        return self._loop

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._ready.set()
        try:
            loop.run_forever()
        finally:
            loop.close()


async def _close_reporters(reporters: list[BatchReporter], flush: bool) -> list[BaseException]:
    results = await asyncio.gather(*(r.close(flush=flush) for r in reporters), return_exceptions=True)
    failures: list[BaseException] = []
    for result in results:
        if isinstance(result, SinkFailure):
            failures.append(result)
        elif isinstance(result, BaseException):
            raise result
    return failures


# Module-level shared host for start_threaded
_shared_host = ReporterHost()


def get_shared_host() -> ReporterHost:
    """Return the host used by :func:`start_threaded` by default."""
    return _shared_host


def start_threaded(
    report_fn: ReportFn,
    batch_time: float = 0.0,
    *,
    name: str | None = None,
    host: ReporterHost | None = None,
) -> BatchReporter:
    """Start a reporter on a background host so synchronous code can use it.

    Close it with :meth:`BatchReporter.close_threaded`, or close the whole
    host with :meth:`ReporterHost.shutdown`.
    """
    config = ReporterConfig(batch_time=batch_time, reporter_name=name)
    return (host or _shared_host).add(report_fn, config)
