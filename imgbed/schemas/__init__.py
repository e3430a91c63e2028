"""API request/response schemas (pydantic)."""

from imgbed.schemas.health import HealthResponse, ReadinessResponse

__all__ = ["HealthResponse", "ReadinessResponse"]
