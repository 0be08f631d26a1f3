import asyncio
import logging
from typing import List

from abstractions.metrics_sink import MetricsSink
from contracts.outcome import Outcome, OutcomeStatus

logger = logging.getLogger(__name__)


class MemoryMetricsSink(MetricsSink):
    """
    Metrics sink that keeps outcomes in process memory. Used for dry runs
    without a time-series database and in tests.
    """

    def __init__(self):
        self.outcomes: List[Outcome] = []
        self.schema_ready = False
        self.closed = False
        self._lock = asyncio.Lock()

    async def ensure_schema(self):
        self.schema_ready = True
        logger.info("In-memory metrics sink ready")

    async def write_outcome(self, outcome: Outcome):
        async with self._lock:
            self.outcomes.append(outcome)
        logger.debug(f"Stored {outcome!r}")

    async def close(self):
        self.closed = True

    def by_status(self, status: OutcomeStatus) -> List[Outcome]:
        return [o for o in self.outcomes if o.status == status]
