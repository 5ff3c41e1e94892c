"""
Routes Data Transfer Objects (DTOs)

The calendar route streams raw documents; only the health check has a
structured response.
"""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    service: str
    resource_key_configured: bool
