"""Tests for logging setup."""

from loguru import logger

from batch_reporter import setup_logging, start


class TestSetupLogging:
    async def test_enables_package_logs(self, sink):
        lines: list[str] = []
        handler_id = setup_logging("DEBUG", sink=lines.append, colorize=False)
        try:
            reporter = start(sink, name="influx")
            reporter.enqueue("a")
            await sink.wait_for_batches(1)
            await reporter.close()
        finally:
            logger.remove(handler_id)
            logger.disable("batch_reporter")

        assert any("Starting influx_batch_reporter" in line for line in lines)
        assert any("influx_batch_reporter reported 1 events" in line for line in lines)
        assert any("| DEBUG    |" in line for line in lines)

    async def test_level_filters_debug(self, sink):
        lines: list[str] = []
        handler_id = setup_logging("INFO", sink=lines.append, colorize=False)
        try:
            reporter = start(sink)
            reporter.enqueue("a")
            await sink.wait_for_batches(1)
            await reporter.close()
        finally:
            logger.remove(handler_id)
            logger.disable("batch_reporter")

        assert lines
        assert not any("reported" in line for line in lines)

    async def test_disabled_by_default(self, sink):
        lines: list[str] = []
        handler_id = logger.add(lines.append, level="DEBUG")
        try:
            reporter = start(sink)
            reporter.enqueue("a")
            await sink.wait_for_batches(1)
            await reporter.close()
        finally:
            logger.remove(handler_id)

        assert not any("batch_reporter" in line for line in lines)
