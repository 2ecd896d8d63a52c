"""Thread-safe registry of named batch reporters."""

import threading
from typing import Any

from loguru import logger

from batch_reporter.config import ReporterConfig, get_name
from batch_reporter.core import BatchReporter
from batch_reporter.errors import SinkFailure
from batch_reporter.state import ReportFn


class ReporterRegistry:
    """Holds one :class:`BatchReporter` per reporter name.

    Lets producers address a reporter by name instead of passing the handle
    around, e.g. one reporter per telemetry backend.

    Example::

        async with ReporterRegistry() as registry:
            registry.register(write_points, ReporterConfig(batch_time=1.0, reporter_name="influx"))
            registry.enqueue("influx", {"measurement": "cpu", "value": 0.4})
    """

    __slots__ = ("_lock", "_reporters")

    def __init__(self) -> None:
        self._reporters: dict[str, BatchReporter] = {}
        self._lock = threading.Lock()

    @property
    def names(self) -> list[str]:
        """Registration names of all reporters, in registration order."""
        with self._lock:
            return list(self._reporters)

    def __len__(self) -> int:
        with self._lock:
            return len(self._reporters)

    def __contains__(self, reporter_name: object) -> bool:
        if not isinstance(reporter_name, str):
            return False
        with self._lock:
            return get_name(reporter_name) in self._reporters

    def register(self, report_fn: ReportFn, config: ReporterConfig) -> BatchReporter:
        """Create a reporter for *config* and start it on the running loop.

        Raises:
            ValueError: The config has no name, or the name is taken.
        """
        if not config.reporter_name:
            raise ValueError("registered reporters need a reporter_name")

        key = get_name(config)
        with self._lock:
            if key in self._reporters:
                raise ValueError(f"reporter {key!r} is already registered")
            reporter = BatchReporter(report_fn, config=config).start()
            self._reporters[key] = reporter

        logger.debug("Registered {}", key)
        return reporter

    def get(self, reporter_name: str) -> BatchReporter:
        """Return the reporter registered as *reporter_name*.

        Raises:
            KeyError: Nothing is registered under that name.
        """
        key = get_name(reporter_name)
        with self._lock:
            try:
                return self._reporters[key]
            except KeyError:
                raise KeyError(f"no reporter registered as {key!r}") from None

    def enqueue(self, reporter_name: str, event: Any) -> None:
        """Fire-and-forget *event* to the reporter named *reporter_name*."""
        self.get(reporter_name).enqueue(event)

    async def unregister(self, reporter_name: str, *, flush: bool = False) -> None:
        """Remove and close the reporter named *reporter_name*."""
        key = get_name(reporter_name)
        with self._lock:
            reporter = self._reporters.pop(key, None)
        if reporter is None:
            raise KeyError(f"no reporter registered as {key!r}")
        await reporter.close(flush=flush)

    async def close(self, *, flush: bool = False) -> None:
        """Close every registered reporter and clear the registry.

        Every reporter is closed even if some final reports fail; the first
        :class:`SinkFailure` is raised once all of them are closed.
        """
        with self._lock:
            reporters = list(self._reporters.values())
            self._reporters.clear()

        failures: list[SinkFailure] = []
        for reporter in reporters:
            try:
                await reporter.close(flush=flush)
            except SinkFailure as exc:
                logger.error("Final report of {} failed while closing the registry", reporter.name)
                failures.append(exc)

        if failures:
            raise failures[0]

    async def __aenter__(self) -> "ReporterRegistry":
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, *_: Any) -> None:
        if exc_type is None:
            await self.close(flush=True)
            return

        try:
            await self.close(flush=True)
        except SinkFailure:
            logger.opt(exception=True).error("Final reports failed during exceptional registry exit")
