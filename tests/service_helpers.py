from unittest.mock import AsyncMock, MagicMock

import httpx
from prometheus_client import CollectorRegistry

from config.config import Config
from core.memory_sink import MemoryMetricsSink
from core.metrics_manager import MetricsManager
from core.ping_service import PingService


class ServiceTestConfig(Config):
    INFLUX_HOST = None
    OPENFAAS_GATEWAY = "http://gateway:8080"
    CALLBACK_URL = "http://pinger:3008/webhook"
    CALLBACK_PATH = "/webhook"
    FUNCTION_NAME = "echoit"
    SINK_TYPE = "memory"
    TIMEOUT_MS = 100
    INTERVAL_MS = 1000


def build_service(config=ServiceTestConfig, sink=None):
    """
    Build a PingService on an in-memory sink whose gateway accepts every probe.
    """
    client = MagicMock(spec=httpx.AsyncClient)
    client.post = AsyncMock(return_value=httpx.Response(202))
    client.aclose = AsyncMock()
    return PingService(
        config,
        sink=sink or MemoryMetricsSink(),
        client=client,
        metrics_manager=MetricsManager(registry=CollectorRegistry()),
    )
