import asyncio
import logging
import threading
from typing import Callable, Dict, Optional

from abstractions.registry import Registry
from contracts.probe import Probe
from core.clock import Clock
from core.metrics_manager import MetricsManager
from core.profiler import Profiler

logger = logging.getLogger(__name__)


class OutstandingRegistry(Registry):
    """
    In-memory registry of probes awaiting their callback.

    An id stays in the registry from ``register`` until the first ``take`` for
    it, which is the single point deciding whether the callback or the timeout
    resolves the probe.
    """

    def __init__(
        self,
        timeout_seconds: float,
        clock: Optional[Clock] = None,
        metrics_manager: Optional[MetricsManager] = None,
    ):
        """
        Initialize the OutstandingRegistry.

        Args:
            timeout_seconds (float): Delay after which an unanswered probe expires.
            clock (Optional[Clock]): Timer source used to arm deadlines.
            metrics_manager (Optional[MetricsManager]): Receives the outstanding count.
        """
        self.timeout_seconds = timeout_seconds
        self.clock = clock or Clock()
        self.metrics_manager = metrics_manager
        self._probes: Dict[str, Probe] = {}
        # threading.Lock: take() is safe from any thread; register() must run on the
        # loop thread because arming the deadline needs the running loop
        self._lock = threading.Lock()
        logger.info(
            f"OutstandingRegistry initialized with timeout_seconds={self.timeout_seconds}"
        )

    @Profiler.profile
    def register(
        self, probe_id: str, started_at: float, on_expire: Callable[[str], None]
    ) -> asyncio.TimerHandle:
        deadline = self.clock.call_later(self.timeout_seconds, on_expire, probe_id)
        probe = Probe(id=probe_id, started_at=started_at, deadline=deadline)
        with self._lock:
            previous = self._probes.get(probe_id)
            self._probes[probe_id] = probe
            size = len(self._probes)
        if previous is not None:
            logger.warning(
                f"Probe {probe_id} registered twice; replacing {previous} and cancelling its deadline"
            )
            previous.cancel_deadline()
        logger.debug(f"Registered {probe}; outstanding={size}")
        self._report_size(size)
        return deadline

    @Profiler.profile
    def take(self, probe_id: str) -> Optional[Probe]:
        with self._lock:
            probe = self._probes.pop(probe_id, None)
            size = len(self._probes)
        if probe is None:
            logger.debug(f"Probe {probe_id} not outstanding")
            return None
        logger.debug(f"Took {probe}; outstanding={size}")
        self._report_size(size)
        return probe

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._probes)

    def clear(self) -> int:
        with self._lock:
            probes = list(self._probes.values())
            self._probes.clear()
        for probe in probes:
            probe.cancel_deadline()
        if probes:
            logger.info(f"Discarded {len(probes)} outstanding probes")
        self._report_size(0)
        return len(probes)

    def __contains__(self, probe_id: str) -> bool:
        with self._lock:
            return probe_id in self._probes

    def _report_size(self, size: int):
        if self.metrics_manager:
            self.metrics_manager.set_outstanding(size)
