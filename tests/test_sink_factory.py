import unittest

from config.config import Config
from core.influx_sink import InfluxMetricsSink
from core.memory_sink import MemoryMetricsSink
from core.sink_factory import SinkFactory


class InfluxConfig(Config):
    INFLUX_HOST = "influx"
    INFLUX_BUCKET = "pings"
    INFLUX_ORG = "lab"
    INFLUX_TOKEN = "secret"
    SINK_TYPE = "influx"


class TestSinkFactory(unittest.TestCase):
    def test_create_influx_sink(self):
        sink = SinkFactory.create_sink(config=InfluxConfig)
        self.assertIsInstance(sink, InfluxMetricsSink)
        self.assertEqual(sink.url, "http://influx:8086")
        self.assertEqual(sink.bucket, "pings")
        self.assertEqual(sink.org, "lab")
        self.assertEqual(sink.token, "secret")

    def test_create_memory_sink(self):
        sink = SinkFactory.create_sink("MEMORY", config=InfluxConfig)
        self.assertIsInstance(sink, MemoryMetricsSink)

    def test_unsupported_type(self):
        with self.assertRaises(ValueError):
            SinkFactory.create_sink("graphite", config=InfluxConfig)


class TestMemoryMetricsSink(unittest.IsolatedAsyncioTestCase):
    async def test_lifecycle(self):
        from contracts.outcome import Outcome, OutcomeStatus

        sink = MemoryMetricsSink()
        await sink.ensure_schema()
        self.assertTrue(sink.schema_ready)
        await sink.write_outcome(Outcome(status=OutcomeStatus.TIMEDOUT, duration_ms=1000))
        await sink.write_outcome(Outcome.not_listed())
        self.assertEqual(len(sink.outcomes), 2)
        self.assertEqual(len(sink.by_status(OutcomeStatus.TIMEDOUT)), 1)
        await sink.close()
        self.assertTrue(sink.closed)


if __name__ == "__main__":
    unittest.main()
