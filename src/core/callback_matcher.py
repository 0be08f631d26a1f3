import logging
from typing import Any, AsyncIterable, Optional

from abstractions.metrics_sink import MetricsSink
from abstractions.registry import Registry
from contracts.outcome import Outcome, OutcomeStatus
from core.clock import Clock
from core.errors import SinkError
from core.metrics_manager import MetricsManager
from core.profiler import Profiler

logger = logging.getLogger(__name__)


def decode_probe_id(payload: Any) -> Optional[str]:
    """
    Turn a callback payload into a probe id.

    Args:
        payload: Raw bytes, a string, or a parsed JSON value.

    Returns:
        Optional[str]: The id, or None when the payload cannot name a probe.
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = bytes(payload).decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Callback payload is not valid UTF-8")
            return None
    if isinstance(payload, dict):
        payload = payload.get("id")
    if not isinstance(payload, str):
        logger.warning(f"Callback payload of type {type(payload).__name__} carries no id")
        return None
    probe_id = payload.strip()
    return probe_id or None


class CallbackMatcher:
    """
    Reconciles inbound callbacks against the outstanding registry.
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

    @Profiler.profile
    async def match(self, payload: Any) -> Outcome:
        """
        Resolve one callback delivery and record its outcome.

        Args:
            payload: The delivered id, as a string, bytes or parsed JSON value.

        Returns:
            Outcome: ``completed`` if the probe was outstanding, ``not-listed`` otherwise.

        Raises:
            SinkError: If the outcome could not be recorded; the delivery must not be acknowledged.
        """
        probe_id = decode_probe_id(payload)
        probe = self.registry.take(probe_id) if probe_id is not None else None

        if probe is None:
            logger.info(f"Callback for {probe_id!r} not listed")
            outcome = Outcome.not_listed()
        else:
            probe.cancel_deadline()
            outcome = Outcome(
                status=OutcomeStatus.COMPLETED,
                duration_ms=self.clock.elapsed_ms(probe.started_at),
            )
            logger.info(f"Probe {probe_id} completed in {outcome.duration_ms}ms")

        if self.metrics_manager:
            self.metrics_manager.observe_outcome(outcome)
        try:
            await self.sink.write_outcome(outcome)
        except SinkError:
            logger.error(f"Could not record {outcome!r} for callback {probe_id!r}")
            if self.metrics_manager:
                self.metrics_manager.observe_sink_write_failure(outcome)
            raise
        return outcome

    async def match_stream(self, chunks: AsyncIterable[bytes]) -> Outcome:
        """
        Drain a raw callback body and resolve the id it carries.

        Args:
            chunks (AsyncIterable[bytes]): The body as delivered by the transport.

        Returns:
            Outcome: See ``match``.
        """
        body = bytearray()
        async for chunk in chunks:
            body.extend(chunk)
        logger.debug(f"Callback stream drained: {len(body)} bytes")
        return await self.match(bytes(body))
