import asyncio
import logging
from typing import Optional, Set

from abstractions.metrics_sink import MetricsSink
from abstractions.registry import Registry
from contracts.outcome import Outcome, OutcomeStatus
from core.clock import Clock
from core.errors import SinkError
from core.metrics_manager import MetricsManager

logger = logging.getLogger(__name__)


class TimeoutReaper:
    """
    Resolves probes whose deadline elapsed before a callback arrived.
    """

    def __init__(
        self,
        registry: Registry,
        sink: MetricsSink,
        clock: Optional[Clock] = None,
        metrics_manager: Optional[MetricsManager] = None,
    ):
        self.registry = registry
        self.sink = sink
        self.clock = clock or Clock()
        self.metrics_manager = metrics_manager
        self._pending: Set[asyncio.Task] = set()

    def on_deadline(self, probe_id: str):
        """
        Timer callback armed by the registry. Schedules the reap as a task so
        the sink write does not run inside the timer.

        Args:
            probe_id (str): The probe whose deadline elapsed.
        """
        task = asyncio.get_running_loop().create_task(self.reap(probe_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def reap(self, probe_id: str) -> Optional[Outcome]:
        """
        Expire a probe if it is still outstanding and record the timeout.

        Returns:
            Optional[Outcome]: The timeout outcome, or None if the callback won the race.
        """
        probe = self.registry.take(probe_id)
        if probe is None:
            logger.debug(f"Deadline for {probe_id} fired after it was resolved")
            return None

        outcome = Outcome(
            status=OutcomeStatus.TIMEDOUT,
            duration_ms=self.clock.elapsed_ms(probe.started_at),
        )
        logger.info(f"Probe {probe_id} timed out after {outcome.duration_ms}ms")
        if self.metrics_manager:
            self.metrics_manager.observe_outcome(outcome)
        try:
            await self.sink.write_outcome(outcome)
        except SinkError as e:
            # No retry queue on this path: the outcome is dropped
            logger.error(f"Dropping timeout outcome for {probe_id}: {e}")
            if self.metrics_manager:
                self.metrics_manager.observe_sink_write_failure(outcome)
        return outcome

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def drain(self):
        """
        Wait for every in-flight timeout write to finish.
        """
        if self._pending:
            logger.info(f"Waiting for {len(self._pending)} timeout writes")
            await asyncio.gather(*list(self._pending), return_exceptions=True)
