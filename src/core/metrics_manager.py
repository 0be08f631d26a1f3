import logging
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from contracts.outcome import Outcome, OutcomeStatus

logger = logging.getLogger(__name__)

# Round trips through a queued gateway are seconds, not milliseconds
ROUNDTRIP_BUCKETS = (0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


class MetricsManager:
    """
    Manager for the service's Prometheus metrics: outcome counts, round-trip
    latency and the number of probes still awaiting a callback.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize the MetricsManager and set up Prometheus metrics.

        Args:
            registry: Collector registry to register the metrics with. Defaults to
                the global prometheus_client registry; tests pass a fresh one so
                several managers can coexist.
        """
        self.registry = registry if registry is not None else REGISTRY
        self.OUTCOMES = Counter(
            "asyncping_outcomes_total",
            "Recorded probe outcomes by status",
            ["status"],
            registry=self.registry,
        )
        self.ROUNDTRIP = Histogram(
            "asyncping_roundtrip_seconds",
            "Elapsed time of completed and timed out probes",
            ["status"],
            buckets=ROUNDTRIP_BUCKETS,
            registry=self.registry,
        )
        self.OUTSTANDING = Gauge(
            "asyncping_outstanding_probes",
            "Probes sent and not yet matched or timed out",
            registry=self.registry,
        )
        self.DISPATCH_FAILURES = Counter(
            "asyncping_dispatch_failures_total",
            "Probes the compute gateway rejected or never received",
            registry=self.registry,
        )
        self.SINK_WRITE_FAILURES = Counter(
            "asyncping_sink_write_failures_total",
            "Outcomes that could not be written to the metrics sink",
            ["status"],
            registry=self.registry,
        )
        logger.info("MetricsManager initialized.")

    def observe_outcome(self, outcome: Outcome):
        """
        Count an outcome and, when it carries a duration, record it in the latency histogram.

        Args:
            outcome (Outcome): The outcome that was produced.
        """
        status = outcome.status.value
        self.OUTCOMES.labels(status=status).inc()
        if outcome.status != OutcomeStatus.NOT_LISTED:
            self.ROUNDTRIP.labels(status=status).observe(outcome.duration_ms / 1000.0)

    def observe_dispatch_failure(self):
        self.DISPATCH_FAILURES.inc()

    def observe_sink_write_failure(self, outcome: Outcome):
        self.SINK_WRITE_FAILURES.labels(status=outcome.status.value).inc()

    def set_outstanding(self, count: int):
        self.OUTSTANDING.set(count)

    def get_outstanding(self) -> float:
        return self.OUTSTANDING._value.get()

    def get_outcome_count(self, status: OutcomeStatus) -> float:
        """
        Get how many outcomes of the given status have been observed.

        Returns:
            float: The counter value.
        """
        return self.OUTCOMES.labels(status=status.value)._value.get()
