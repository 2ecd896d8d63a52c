"""The reporter actor: a single task that owns the batching state."""

import asyncio
import inspect
from typing import Any

from loguru import logger

from batch_reporter.errors import SinkFailure
from batch_reporter.state import ReporterState

_STOP = object()
_DRAIN = object()
_REPORT = object()


async def report_events(state: ReporterState) -> int:
    """Hand the buffered events to the report function and reset *state*.

    The reset runs even when the report function raises, so a failed report
    never leaves a flush marked as scheduled.

    Returns:
        The number of events reported.

    Raises:
        SinkFailure: The report function raised; the original is chained.
    """
    events = state.drain()
    try:
        result = state.report_fn(events)
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        raise SinkFailure(len(events)) from exc
    finally:
        state.reset()
    return len(events)


async def batch_actor(inbox: asyncio.Queue[Any], state: ReporterState, name: str = "batch_reporter") -> None:
    """Run a batching actor that reads events from *inbox*.

    Every message is handled to completion before the next one is read, so
    *state* needs no locking. The first event of a cycle schedules exactly one
    report message: after ``state.batch_time`` seconds through
    ``loop.call_later``, or straight to the back of *inbox* when the batch
    time is zero. Events that arrive while the report is pending join the
    same batch.

    Send :data:`_STOP` to shut down discarding buffered events, or
    :data:`_DRAIN` to report them first. A :class:`SinkFailure` from the
    report function terminates the actor.

    Args:
        inbox: Unbounded queue of events and control messages.
        state: Fresh state owned by this actor for its whole lifetime.
        name: Label used in log lines.
    """
    loop = asyncio.get_running_loop()
    timer: asyncio.TimerHandle | None = None

    try:
        while True:
            msg = await inbox.get()

            if msg is _REPORT:
                timer = None
                count = await report_events(state)
                logger.debug("{} reported {} events", name, count)
                continue

            if msg is _STOP:
                if state.pending_events:
                    logger.warning("{} stopped, discarding {} unreported events", name, state.pending_events)
                break

            if msg is _DRAIN:
                if state.pending_events:
                    count = await report_events(state)
                    logger.debug("{} drained {} events on stop", name, count)
                break

            state.enqueue_event(msg)

            if state.needs_schedule():
                if state.batch_time > 0:
                    timer = loop.call_later(state.batch_time, inbox.put_nowait, _REPORT)
                else:
                    inbox.put_nowait(_REPORT)
                state.set_report_scheduled()
                logger.debug("{} scheduled a report in {}s", name, state.batch_time)
    finally:
        if timer is not None:
            timer.cancel()
