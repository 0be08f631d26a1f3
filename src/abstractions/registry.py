import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional

from contracts.probe import Probe


class Registry(ABC):
    """
    Abstract base class for outstanding probe registry implementations.
    """

    @abstractmethod
    def register(
        self, probe_id: str, started_at: float, on_expire: Callable[[str], None]
    ) -> asyncio.TimerHandle:
        """
        Record a probe as outstanding and arm its deadline.

        Args:
            probe_id (str): Unique identifier of the probe.
            started_at (float): Send time in monotonic milliseconds.
            on_expire (Callable[[str], None]): Called with the probe id once the deadline elapses.

        Returns:
            asyncio.TimerHandle: The armed, cancellable deadline.
        """

    @abstractmethod
    def take(self, probe_id: str) -> Optional[Probe]:
        """
        Atomically remove and return an outstanding probe.

        Args:
            probe_id (str): Identifier to look up.

        Returns:
            Optional[Probe]: The probe if it was outstanding, None otherwise.
        """

    @property
    @abstractmethod
    def size(self) -> int:
        """
        Return the number of outstanding probes.
        """

    @abstractmethod
    def clear(self) -> int:
        """
        Cancel every armed deadline and drop every outstanding probe.

        Returns:
            int: Number of probes discarded.
        """
