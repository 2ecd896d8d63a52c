"""Decorator API for turning a report function into a batched producer."""

from collections.abc import Callable
from functools import wraps
from typing import Any, NamedTuple, overload

from batch_reporter.config import ReporterConfig
from batch_reporter.core import BatchReporter

F = Callable[..., Any]


class ExtractedEvent(NamedTuple):
    """Result of extracting the event from call arguments."""

    event: Any
    extra_args: tuple[Any, ...]
    extra_kwargs: dict[str, Any]


def _extract_event(
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> ExtractedEvent:
    if args:
        return ExtractedEvent(args[0], args[1:], kwargs)
    if "event" in kwargs:
        new_kwargs = dict(kwargs)
        event = new_kwargs.pop("event")
        return ExtractedEvent(event, (), new_kwargs)
    raise TypeError("Missing event argument")


@overload
def batched(
    func: F,
    /,
) -> Callable[..., None]: ...


@overload
def batched(
    *,
    batch_time: float = 0.0,
    name: str | None = None,
) -> Callable[[F], Callable[..., None]]: ...


def batched(
    func: F | None = None,
    /,
    *,
    batch_time: float = 0.0,
    name: str | None = None,
) -> Callable[..., None] | Callable[[F], Callable[..., None]]:
    """Decorator that batches calls to a report function.

    The decorated function's signature changes: each call enqueues a single
    event and returns ``None`` immediately. The original function is called
    later with the list of events, oldest first. It may be sync or async.

    Only the event is forwarded; any extra arguments raise ``TypeError`` so
    they are not silently lost.

    Args:
        func: The function to decorate (when used without parentheses).
        batch_time: Seconds to collect events before reporting.
        name: Reporter name used in log lines.

    Examples:
    ```python
        @batched(batch_time=1.0)
        async def write_points(points: list[dict]) -> None:
            await client.write(points)

        write_points({"measurement": "cpu", "value": 0.4})
    ```
    """
    config = ReporterConfig(batch_time=batch_time, reporter_name=name)

    def decorator(fn: F) -> Callable[..., None]:
        reporter = BatchReporter(fn, config=config)

        @wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> None:
            extracted = _extract_event(args, kwargs)
            if extracted.extra_args or extracted.extra_kwargs:
                raise TypeError(f"{fn.__name__}() takes a single event when batched")
            reporter.enqueue(extracted.event)

        wrapper.reporter = reporter  # type: ignore[attr-defined]
        wrapper.close = reporter.close  # type: ignore[attr-defined]

        return wrapper

    if func is not None:
        return decorator(func)

    return decorator
