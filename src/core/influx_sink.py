import asyncio
import logging
from typing import Optional

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS
from influxdb_client.rest import ApiException

from abstractions.metrics_sink import MetricsSink
from contracts.outcome import Outcome
from core.errors import SinkError, SinkWriteError
from core.profiler import Profiler

logger = logging.getLogger(__name__)

MEASUREMENT = "roundtrips"


class InfluxMetricsSink(MetricsSink):
    """
    Metrics sink writing one ``roundtrips`` point per outcome to InfluxDB.

    The client is synchronous; calls run in a worker thread so the event loop
    keeps serving callbacks while a write is in flight.
    """

    def __init__(
        self,
        url: str,
        bucket: str = "async_ping",
        org: str = "asyncping",
        token: str = "",
        timeout_ms: int = 10_000,
    ):
        """
        Initialize the InfluxMetricsSink. No connection is made until ensure_schema.

        Args:
            url (str): InfluxDB base URL, e.g. http://localhost:8086.
            bucket (str): Bucket (database) receiving the points.
            org (str): Organization owning the bucket.
            token (str): API token, or "user:password" against InfluxDB 1.8, which
                has no bucket API; there the database must already exist and
                ``bucket`` names it as "database/retention_policy".
            timeout_ms (int): HTTP timeout for every call to the server.
        """
        self.url = url
        self.bucket = bucket
        self.org = org
        self.token = token
        self.timeout_ms = timeout_ms
        self._client: Optional[InfluxDBClient] = None
        self._write_api = None
        logger.info(f"InfluxMetricsSink configured for {self.url}, bucket={self.bucket}")

    def _connect(self):
        client = InfluxDBClient(
            url=self.url, token=self.token, org=self.org, timeout=self.timeout_ms
        )
        try:
            if not client.ping():
                raise SinkError(f"InfluxDB at {self.url} did not answer ping")
            self._ensure_bucket(client)
        except Exception:
            client.close()
            raise
        self._client = client
        self._write_api = client.write_api(write_options=SYNCHRONOUS)

    def _ensure_bucket(self, client: InfluxDBClient):
        buckets_api = client.buckets_api()
        try:
            bucket = buckets_api.find_bucket_by_name(self.bucket)
        except ApiException as e:
            if e.status != 404:
                raise
            logger.warning(
                f"InfluxDB at {self.url} has no bucket API (1.x server); "
                f"expecting database {self.bucket} to exist"
            )
            return
        if bucket is None:
            logger.info(f"Creating bucket {self.bucket}")
            buckets_api.create_bucket(bucket_name=self.bucket, org=self.org)

    async def ensure_schema(self):
        try:
            await asyncio.to_thread(self._connect)
        except SinkError:
            raise
        except Exception as e:
            raise SinkError(f"Could not prepare InfluxDB bucket {self.bucket}: {e}") from e
        logger.info("InfluxDB connection established")

    def to_point(self, outcome: Outcome) -> Point:
        return (
            Point(MEASUREMENT)
            .tag("status", outcome.status.value)
            .field("duration", int(outcome.duration_ms))
            .time(outcome.recorded_at, WritePrecision.MS)
        )

    @Profiler.profile
    async def write_outcome(self, outcome: Outcome):
        if self._write_api is None:
            raise SinkWriteError("InfluxDB sink used before ensure_schema()")
        point = self.to_point(outcome)
        try:
            await asyncio.to_thread(
                self._write_api.write, bucket=self.bucket, org=self.org, record=point
            )
        except Exception as e:
            raise SinkWriteError(f"Failed to write {outcome!r} to InfluxDB: {e}") from e
        logger.debug(f"Wrote {outcome!r}")

    async def close(self):
        if self._client is None:
            return
        client, self._client, self._write_api = self._client, None, None
        await asyncio.to_thread(client.close)
        logger.info("InfluxDB connection closed")
