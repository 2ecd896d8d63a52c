"""Batch reporter: debounced batching of events for expensive sinks.

Many producers enqueue events; one actor task collects them and hands them
to a report function as a single ordered batch, at most ``batch_time``
seconds after the first event of the batch.

Basic usage:

    from batch_reporter import start

    reporter = start(write_points, batch_time=1.0)

    reporter.enqueue({"measurement": "cpu", "value": 0.4})
    reporter.enqueue({"measurement": "cpu", "value": 0.5})
    # ~1s later: write_points([{... 0.4}, {... 0.5}])

Decorator usage:

    from batch_reporter import batched

    @batched(batch_time=1.0)
    async def write_points(points: list[dict]) -> None:
        await client.write(points)
"""

from loguru import logger

from batch_reporter._sync import ReporterHost, start_threaded
from batch_reporter.config import ReporterConfig, get_name
from batch_reporter.core import BatchReporter, enqueue, start
from batch_reporter.decorator import batched
from batch_reporter.errors import BatchReporterError, ReporterClosedError, SinkFailure
from batch_reporter.logging_config import setup_logging
from batch_reporter.registry import ReporterRegistry

logger.disable("batch_reporter")

__all__ = [
    "BatchReporter",
    "BatchReporterError",
    "ReporterClosedError",
    "ReporterConfig",
    "ReporterHost",
    "ReporterRegistry",
    "SinkFailure",
    "batched",
    "enqueue",
    "get_name",
    "setup_logging",
    "start",
    "start_threaded",
]

__version__ = "0.1.0"
