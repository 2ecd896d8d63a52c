"""Configuration types for the batch reporter."""

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ReporterConfig:
    """Configuration for a BatchReporter instance.

    Attributes:
        batch_time: Seconds to wait between the first event of a cycle and
                    the report. ``0`` reports on the next turn of the actor,
                    after any events already waiting in its inbox.
        reporter_name: Optional name used for registration and in log lines.
    """

    batch_time: float = 0.0
    reporter_name: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.batch_time, bool) or not isinstance(self.batch_time, int | float):
            raise ValueError(f"batch_time must be a number of seconds, got {self.batch_time!r}")

        if not math.isfinite(self.batch_time):
            raise ValueError(f"batch_time must be finite, got {self.batch_time}")

        if self.batch_time < 0:
            raise ValueError(f"batch_time must be non-negative, got {self.batch_time}")

        if self.reporter_name is not None and not self.reporter_name:
            raise ValueError("reporter_name must be a non-empty string or None")


DEFAULT_NAME = "batch_reporter"


def get_name(config: ReporterConfig | str) -> str:
    """Return the registration name for a reporter.

    ``get_name("influx")`` and ``get_name(ReporterConfig(reporter_name="influx"))``
    both give ``"influx_batch_reporter"``. Unnamed configs get ``"batch_reporter"``.
    """
    reporter_name = config if isinstance(config, str) else config.reporter_name
    if not reporter_name:
        return DEFAULT_NAME
    return f"{reporter_name}_{DEFAULT_NAME}"
