"""Exceptions raised by the batch reporter."""


class BatchReporterError(Exception):
    """Base class for all batch reporter errors."""


class SinkFailure(BatchReporterError):
    """The report function raised while handling a batch.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, event_count: int) -> None:
        super().__init__(f"report function failed on a batch of {event_count} events")
        self.event_count = event_count


class ReporterClosedError(BatchReporterError, RuntimeError):
    """Raised when enqueueing on a reporter that has been closed."""
