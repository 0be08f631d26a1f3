import asyncio
import logging
import uuid
from typing import Callable, Optional, Set

from abstractions.registry import Registry
from core.clock import Clock
from core.errors import ProbeDispatchError
from core.gateway_client import GatewayClient
from core.metrics_manager import MetricsManager
from core.timeout_reaper import TimeoutReaper

logger = logging.getLogger(__name__)


def new_probe_id() -> str:
    return str(uuid.uuid4())


class Prober:
    """
    Emits a probe every interval: registers it as outstanding, then hands it to
    the gateway.
    """

    def __init__(
        self,
        registry: Registry,
        reaper: TimeoutReaper,
        gateway: GatewayClient,
        interval_seconds: float,
        clock: Optional[Clock] = None,
        metrics_manager: Optional[MetricsManager] = None,
        id_factory: Callable[[], str] = new_probe_id,
    ):
        """
        Initialize the Prober.

        Args:
            registry (Registry): Where sent probes wait for their callback.
            reaper (TimeoutReaper): Receives the deadline of every probe.
            gateway (GatewayClient): Transport to the compute endpoint.
            interval_seconds (float): Time between two probes.
            clock (Optional[Clock]): Time source for probe start times.
            metrics_manager (Optional[MetricsManager]): Counts dispatch failures.
            id_factory (Callable[[], str]): Generator of unique probe ids.
        """
        self.registry = registry
        self.reaper = reaper
        self.gateway = gateway
        self.interval_seconds = interval_seconds
        self.clock = clock or Clock()
        self.metrics_manager = metrics_manager
        self.id_factory = id_factory
        self._task = None
        self._sends: Set[asyncio.Task] = set()
        self._running = False
        logger.info(f"Prober initialized with interval_seconds={self.interval_seconds}")

    async def send_probe(self) -> str:
        """
        Register and dispatch one probe.

        A dispatch failure leaves the probe registered; it resolves through the
        normal timeout path.

        Returns:
            str: The id of the probe sent.
        """
        probe_id = self.id_factory()
        started_at = self.clock.now_ms()
        self.registry.register(probe_id, started_at, self.reaper.on_deadline)
        logger.info(f"Sending probe {probe_id}")
        try:
            await self.gateway.dispatch(probe_id)
        except ProbeDispatchError as e:
            logger.warning(f"{e}; leaving probe to time out")
            if self.metrics_manager:
                self.metrics_manager.observe_dispatch_failure()
        return probe_id

    async def start(self):
        """
        Start the probe loop as an asynchronous task.
        """
        self._running = True
        self._task = asyncio.create_task(self._probe_loop())
        logger.info("Probe loop started.")

    async def stop(self):
        """
        Stop the probe loop and cancel sends still in flight.
        """
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        # sends still waiting on the gateway are abandoned
        for task in list(self._sends):
            task.cancel()
        if self._sends:
            await asyncio.gather(*list(self._sends), return_exceptions=True)
        logger.info("Probe loop stopped.")

    @property
    def running(self) -> bool:
        return self._running

    async def _tick(self):
        try:
            await self.send_probe()
        except Exception as e:
            logger.exception(f"Probe tick failed: {e}")

    async def _probe_loop(self):
        # fixed rate: deadlines come from the loop start, not the previous send
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval_seconds
        while self._running:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            next_tick += self.interval_seconds
            task = asyncio.create_task(self._tick())
            self._sends.add(task)
            task.add_done_callback(self._sends.discard)
