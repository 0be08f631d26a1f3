import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from influxdb_client.rest import ApiException

from contracts.outcome import Outcome, OutcomeStatus
from core.errors import SinkError, SinkWriteError
from core.influx_sink import InfluxMetricsSink


class TestInfluxMetricsSink(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.sink = InfluxMetricsSink(
            url="http://influx:8086", bucket="async_ping", org="asyncping", token="t"
        )

    def _mock_client(self, mock_client_cls, ping=True, existing_bucket=True):
        client = mock_client_cls.return_value
        client.ping.return_value = ping
        buckets_api = client.buckets_api.return_value
        buckets_api.find_bucket_by_name.return_value = MagicMock() if existing_bucket else None
        return client

    @patch("core.influx_sink.InfluxDBClient")
    async def test_ensure_schema_creates_missing_bucket(self, mock_client_cls):
        client = self._mock_client(mock_client_cls, existing_bucket=False)

        await self.sink.ensure_schema()

        mock_client_cls.assert_called_once_with(
            url="http://influx:8086", token="t", org="asyncping", timeout=10_000
        )
        client.buckets_api.return_value.create_bucket.assert_called_once_with(
            bucket_name="async_ping", org="asyncping"
        )
        client.write_api.assert_called_once()

    @patch("core.influx_sink.InfluxDBClient")
    async def test_ensure_schema_keeps_existing_bucket(self, mock_client_cls):
        client = self._mock_client(mock_client_cls)
        await self.sink.ensure_schema()
        client.buckets_api.return_value.create_bucket.assert_not_called()

    @patch("core.influx_sink.InfluxDBClient")
    async def test_ensure_schema_unreachable(self, mock_client_cls):
        client = self._mock_client(mock_client_cls, ping=False)
        with self.assertRaises(SinkError):
            await self.sink.ensure_schema()
        client.close.assert_called_once()

    @patch("core.influx_sink.InfluxDBClient")
    async def test_ensure_schema_wraps_client_errors(self, mock_client_cls):
        client = self._mock_client(mock_client_cls)
        client.buckets_api.return_value.find_bucket_by_name.side_effect = OSError("refused")
        with self.assertRaises(SinkError):
            await self.sink.ensure_schema()

    @patch("core.influx_sink.InfluxDBClient")
    async def test_ensure_schema_on_server_without_bucket_api(self, mock_client_cls):
        client = self._mock_client(mock_client_cls)
        buckets_api = client.buckets_api.return_value
        buckets_api.find_bucket_by_name.side_effect = ApiException(status=404, reason="Not Found")

        with self.assertLogs("core.influx_sink", level="WARNING"):
            await self.sink.ensure_schema()

        buckets_api.create_bucket.assert_not_called()
        client.write_api.assert_called_once()
        client.close.assert_not_called()

    @patch("core.influx_sink.InfluxDBClient")
    async def test_ensure_schema_bucket_api_errors_are_fatal(self, mock_client_cls):
        client = self._mock_client(mock_client_cls)
        client.buckets_api.return_value.find_bucket_by_name.side_effect = ApiException(
            status=401, reason="Unauthorized"
        )
        with self.assertRaises(SinkError):
            await self.sink.ensure_schema()
        client.close.assert_called_once()

    def test_point_layout(self):
        outcome = Outcome(
            status=OutcomeStatus.COMPLETED,
            duration_ms=512,
            recorded_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        line = self.sink.to_point(outcome).to_line_protocol()
        self.assertEqual(line, "roundtrips,status=completed duration=512i 1704067200000")

    @patch("core.influx_sink.InfluxDBClient")
    async def test_write_outcome(self, mock_client_cls):
        client = self._mock_client(mock_client_cls)
        await self.sink.ensure_schema()

        await self.sink.write_outcome(Outcome.not_listed())

        write = client.write_api.return_value.write
        write.assert_called_once()
        self.assertEqual(write.call_args.kwargs["bucket"], "async_ping")
        self.assertIn("status=not-listed", write.call_args.kwargs["record"].to_line_protocol())

    @patch("core.influx_sink.InfluxDBClient")
    async def test_write_failure_raises_sink_write_error(self, mock_client_cls):
        client = self._mock_client(mock_client_cls)
        client.write_api.return_value.write.side_effect = OSError("timeout")
        await self.sink.ensure_schema()

        with self.assertRaises(SinkWriteError):
            await self.sink.write_outcome(Outcome.not_listed())

    async def test_write_before_schema_raises(self):
        with self.assertRaises(SinkWriteError):
            await self.sink.write_outcome(Outcome.not_listed())

    @patch("core.influx_sink.InfluxDBClient")
    async def test_close(self, mock_client_cls):
        client = self._mock_client(mock_client_cls)
        await self.sink.ensure_schema()
        await self.sink.close()
        client.close.assert_called_once()
        # closing twice is harmless
        await self.sink.close()
        client.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
