import asyncio
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Probe(BaseModel):
    """
    Data model representing one in-flight round-trip attempt.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    started_at: float  # monotonic milliseconds
    deadline: Optional[asyncio.TimerHandle] = None

    def cancel_deadline(self):
        """
        Disarm the pending timeout. Safe to call after the timer has fired.
        """
        if self.deadline is not None:
            self.deadline.cancel()

    def __repr__(self):
        return f"Probe(id={self.id}, started_at={self.started_at:.1f})"
