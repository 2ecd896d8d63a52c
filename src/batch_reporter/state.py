"""State owned by a single reporter actor."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

ReportFn = Callable[[list[Any]], Awaitable[None] | None]


@dataclass(slots=True)
class ReporterState:
    """Buffer and scheduling flag for one actor.

    Events are appended newest-last and ``pending_events`` counts them; a
    drain always returns them oldest first.
    """

    report_fn: ReportFn
    batch_time: float = 0.0
    report_scheduled: bool = False
    unreported_events: list[Any] = field(default_factory=list)

    @property
    def pending_events(self) -> int:
        return len(self.unreported_events)

    def enqueue_event(self, event: Any) -> None:
        self.unreported_events.append(event)

    def needs_schedule(self) -> bool:
        """True when a report should be scheduled for the buffered events."""
        return not self.report_scheduled and bool(self.unreported_events)

    def set_report_scheduled(self) -> None:
        self.report_scheduled = True

    def drain(self) -> list[Any]:
        """Return buffered events in enqueue order, leaving the buffer empty."""
        events, self.unreported_events = self.unreported_events, []
        return events

    def reset(self) -> None:
        self.unreported_events = []
        self.report_scheduled = False
