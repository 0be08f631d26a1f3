from pydantic import BaseModel


class HealthResponse(BaseModel):
    """
    Data model representing the service health endpoint payload.
    """

    status: str
    outstanding_probes: int
    running: bool
