import logging
from typing import Optional

import httpx
from prometheus_client import CollectorRegistry

from abstractions.metrics_sink import MetricsSink
from config.config import Config
from core.callback_matcher import CallbackMatcher
from core.clock import Clock
from core.gateway_client import GatewayClient
from core.metrics_manager import MetricsManager
from core.outstanding_registry import OutstandingRegistry
from core.prober import Prober
from core.sink_factory import SinkFactory
from core.timeout_reaper import TimeoutReaper

logger = logging.getLogger(__name__)


class PingService:
    """
    Owns the outstanding registry and wires it into the prober, the timeout
    reaper and the callback matcher. Also runs the startup checks and the
    orderly shutdown of the process.
    """

    def __init__(
        self,
        config,
        sink: MetricsSink,
        client: httpx.AsyncClient,
        metrics_manager: MetricsManager,
        clock: Optional[Clock] = None,
    ):
        self.config = config
        self.sink = sink
        self.client = client
        self.metrics_manager = metrics_manager
        self.clock = clock or Clock()

        self.registry = OutstandingRegistry(
            timeout_seconds=config.TIMEOUT_MS / 1000.0,
            clock=self.clock,
            metrics_manager=metrics_manager,
        )
        self.reaper = TimeoutReaper(
            self.registry, sink, clock=self.clock, metrics_manager=metrics_manager
        )
        self.matcher = CallbackMatcher(
            self.registry, sink, clock=self.clock, metrics_manager=metrics_manager
        )
        self.gateway = GatewayClient(
            client,
            gateway_url=config.OPENFAAS_GATEWAY or "",
            callback_url=config.CALLBACK_URL or "",
            function_name=config.FUNCTION_NAME,
            timeout_seconds=config.DISPATCH_TIMEOUT_SECONDS,
        )
        self.prober = Prober(
            self.registry,
            self.reaper,
            self.gateway,
            interval_seconds=config.INTERVAL_MS / 1000.0,
            clock=self.clock,
            metrics_manager=metrics_manager,
        )

    @classmethod
    def from_config(
        cls, config=Config, metrics_registry: Optional[CollectorRegistry] = None
    ) -> "PingService":
        """
        Build the service from configuration without touching the network.

        Args:
            config: Configuration class, ``Config`` by default.
            metrics_registry (Optional[CollectorRegistry]): Prometheus registry for the service metrics.

        Returns:
            PingService: A service ready to ``start``.
        """
        return cls(
            config,
            sink=SinkFactory.create_sink(config=config),
            client=httpx.AsyncClient(),
            metrics_manager=MetricsManager(registry=metrics_registry),
        )

    async def start(self):
        """
        Validate configuration, prepare the sink, then begin probing.

        Raises:
            ConfigError: If required configuration is missing.
            SinkError: If the metrics sink cannot be reached or prepared.
        """
        self.config.validate()
        await self.sink.ensure_schema()
        await self.prober.start()
        logger.info(
            f"Probing {self.gateway.function_url} every {self.prober.interval_seconds}s "
            f"with a {self.registry.timeout_seconds}s timeout"
        )

    async def stop(self):
        """
        Stop probing, let in-flight outcome writes finish and close connections.
        """
        await self.prober.stop()
        discarded = self.registry.clear()
        if discarded:
            logger.info(f"{discarded} probes were still outstanding at shutdown")
        await self.reaper.drain()
        await self.client.aclose()
        await self.sink.close()
        logger.info("Clean exit")
