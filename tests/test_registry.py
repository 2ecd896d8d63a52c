"""Tests for ReporterRegistry."""

import pytest

from batch_reporter.config import ReporterConfig
from batch_reporter.errors import SinkFailure
from batch_reporter.registry import ReporterRegistry


class TestReporterRegistryBasic:
    async def test_register_and_enqueue(self, sink):
        async with ReporterRegistry() as registry:
            registry.register(sink, ReporterConfig(reporter_name="influx"))
            registry.enqueue("influx", "cpu=0.4")
            await sink.wait_for_batches(1)
            assert sink.batches == [["cpu=0.4"]]

    async def test_independent_reporters(self, sink):
        from conftest import RecordingSink

        other = RecordingSink()
        async with ReporterRegistry() as registry:
            registry.register(sink, ReporterConfig(reporter_name="influx"))
            registry.register(other, ReporterConfig(reporter_name="statsd"))

            registry.enqueue("influx", "a")
            registry.enqueue("statsd", "b")

            await sink.wait_for_batches(1)
            await other.wait_for_batches(1)
            assert sink.batches == [["a"]]
            assert other.batches == [["b"]]

    async def test_names_and_membership(self, sink):
        async with ReporterRegistry() as registry:
            assert len(registry) == 0
            registry.register(sink, ReporterConfig(reporter_name="influx"))
            assert registry.names == ["influx_batch_reporter"]
            assert "influx" in registry
            assert "statsd" not in registry
            assert len(registry) == 1

    async def test_get_returns_registered_reporter(self, sink):
        async with ReporterRegistry() as registry:
            reporter = registry.register(sink, ReporterConfig(reporter_name="influx"))
            assert registry.get("influx") is reporter
            assert reporter.running


class TestReporterRegistryErrors:
    async def test_duplicate_name_raises(self, sink):
        async with ReporterRegistry() as registry:
            registry.register(sink, ReporterConfig(reporter_name="influx"))
            with pytest.raises(ValueError, match="already registered"):
                registry.register(sink, ReporterConfig(reporter_name="influx"))

    async def test_unnamed_config_raises(self, sink):
        registry = ReporterRegistry()
        with pytest.raises(ValueError, match="need a reporter_name"):
            registry.register(sink, ReporterConfig())

    def test_unknown_name_raises(self):
        registry = ReporterRegistry()
        with pytest.raises(KeyError, match="influx_batch_reporter"):
            registry.get("influx")

    async def test_unregister_unknown_raises(self):
        registry = ReporterRegistry()
        with pytest.raises(KeyError):
            await registry.unregister("influx")


class TestReporterRegistryClose:
    async def test_unregister_closes_reporter(self, sink):
        registry = ReporterRegistry()
        reporter = registry.register(sink, ReporterConfig(batch_time=10.0, reporter_name="influx"))
        registry.enqueue("influx", "a")

        await registry.unregister("influx", flush=True)
        assert reporter.closed
        assert "influx" not in registry
        assert sink.batches == [["a"]]

    async def test_close_clears_registry(self, sink):
        registry = ReporterRegistry()
        reporter = registry.register(sink, ReporterConfig(reporter_name="influx"))
        await registry.close()
        assert len(registry) == 0
        assert reporter.closed

    async def test_context_exit_flushes(self, sink):
        async with ReporterRegistry() as registry:
            registry.register(sink, ReporterConfig(batch_time=10.0, reporter_name="influx"))
            registry.enqueue("influx", "a")

        assert sink.batches == [["a"]]

    async def test_close_empty_registry(self):
        registry = ReporterRegistry()
        await registry.close()

    async def test_close_closes_all_when_a_final_report_fails(self, sink):
        def boom(events):
            raise ConnectionError("backend down")

        registry = ReporterRegistry()
        failing = registry.register(boom, ReporterConfig(batch_time=10.0, reporter_name="a"))
        healthy = registry.register(sink, ReporterConfig(batch_time=10.0, reporter_name="b"))
        registry.enqueue("a", "a-event")
        registry.enqueue("b", "b-event")

        with pytest.raises(SinkFailure):
            await registry.close(flush=True)

        assert failing.closed
        assert healthy.closed
        assert sink.batches == [["b-event"]]
        assert len(registry) == 0

    async def test_context_exit_keeps_body_exception(self, sink):
        def boom(events):
            raise ConnectionError("backend down")

        with pytest.raises(KeyError):
            async with ReporterRegistry() as registry:
                registry.register(boom, ReporterConfig(batch_time=10.0, reporter_name="a"))
                registry.register(sink, ReporterConfig(batch_time=10.0, reporter_name="b"))
                registry.enqueue("a", "a-event")
                registry.enqueue("b", "b-event")
                raise KeyError("body")

        assert sink.batches == [["b-event"]]
