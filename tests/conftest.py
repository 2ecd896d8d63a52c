"""Shared fixtures for batch reporter tests."""

import asyncio
import time
from typing import Any

import pytest
from loguru import logger


class RecordingSink:
    """Report function that remembers every batch it receives."""

    def __init__(self) -> None:
        self.batches: list[list[Any]] = []
        self.call_times: list[float] = []

    def __call__(self, events: list[Any]) -> None:
        self.batches.append(list(events))
        self.call_times.append(time.monotonic())

    @property
    def events(self) -> list[Any]:
        return [event for batch in self.batches for event in batch]

    async def wait_for_batches(self, count: int, timeout: float = 1.0) -> list[list[Any]]:
        await wait_until(lambda: len(self.batches) >= count, timeout=timeout)
        return self.batches


async def wait_until(predicate, timeout: float = 1.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def log_records():
    """Collect loguru records emitted by the package."""
    records: list[dict[str, Any]] = []
    logger.enable("batch_reporter")
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG", filter="batch_reporter")
    yield records
    logger.remove(handler_id)
    logger.disable("batch_reporter")
