from abc import ABC, abstractmethod

from contracts.outcome import Outcome


class MetricsSink(ABC):
    """
    Abstract base class for outcome stores.
    """

    @abstractmethod
    async def ensure_schema(self):
        """
        Verify the store is reachable and create the target database if absent.

        Raises:
            SinkError: If the store cannot be reached or prepared.
        """

    @abstractmethod
    async def write_outcome(self, outcome: Outcome):
        """
        Durably record one outcome.

        Args:
            outcome (Outcome): The outcome to persist.

        Raises:
            SinkWriteError: If the write failed.
        """

    @abstractmethod
    async def close(self):
        """
        Release the underlying connection.
        """
