# app/schemas/error.py
import time

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every handled failure."""
    error: str = Field(..., description="Machine-readable error tag, e.g. PLACE_NOT_FOUND")
    message: str = Field(..., description="Human-readable detail")
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000), description="Epoch millis")
