"""
Sink factory for creating metrics sink instances.
"""
import logging
from typing import Optional

from abstractions.metrics_sink import MetricsSink
from config.config import Config
from core.influx_sink import InfluxMetricsSink
from core.memory_sink import MemoryMetricsSink

logger = logging.getLogger(__name__)


class SinkFactory:
    """
    Factory class for creating metrics sink instances.
    """

    @staticmethod
    def create_sink(sink_type: Optional[str] = None, config=Config) -> MetricsSink:
        """
        Create a metrics sink based on configuration.

        Args:
            sink_type (Optional[str]): Type of sink ("influx" or "memory").
                                       If None, uses config.SINK_TYPE.
            config: Configuration object carrying the InfluxDB settings.

        Returns:
            MetricsSink: A sink instance. Nothing is connected yet.

        Raises:
            ValueError: If an unsupported sink type is specified.
        """
        sink_type = (sink_type or config.SINK_TYPE).lower()
        logger.info(f"Creating {sink_type} metrics sink")

        if sink_type == "influx":
            return InfluxMetricsSink(
                url=config.influx_url(),
                bucket=config.INFLUX_BUCKET,
                org=config.INFLUX_ORG,
                token=config.INFLUX_TOKEN,
            )
        if sink_type == "memory":
            return MemoryMetricsSink()

        supported_types = ["influx", "memory"]
        raise ValueError(
            f"Unsupported sink type: {sink_type}. Supported types: {supported_types}"
        )
