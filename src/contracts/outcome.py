from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class OutcomeStatus(str, Enum):
    """
    How a probe, or an unmatched callback, resolved.
    """

    COMPLETED = "completed"
    TIMEDOUT = "timedout"
    NOT_LISTED = "not-listed"


class Outcome(BaseModel):
    """
    Data model representing one measurement record persisted to the metrics sink.
    """

    status: OutcomeStatus
    duration_ms: int = Field(default=0, ge=0)
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def not_listed(cls) -> "Outcome":
        return cls(status=OutcomeStatus.NOT_LISTED, duration_ms=0)

    def __repr__(self):
        return f"Outcome(status={self.status.value}, duration_ms={self.duration_ms})"


class CallbackResponse(BaseModel):
    """
    Data model representing the acknowledgement of a callback delivery.
    """

    status: OutcomeStatus
    duration_ms: int
