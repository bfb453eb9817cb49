"""Health check response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class StorageHealth(BaseModel):
    configured: bool = Field(..., description="Whether storage is enabled in settings")
    ready: bool = Field(..., description="Whether the storage clients are open")
    healthy: bool = Field(..., description="Whether a provider call just succeeded")
    account_id_configured: bool = Field(
        ...,
        description="Whether access point management is possible",
    )


class HealthResponse(BaseModel):
    """Overall service health."""

    status: str = Field(..., description='"ok" or "degraded"')
    timestamp: datetime
    version: str
    storage: StorageHealth

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "ok",
                    "timestamp": "2024-01-15T10:30:00Z",
                    "version": "1.0.0",
                    "storage": {
                        "configured": True,
                        "ready": True,
                        "healthy": True,
                        "account_id_configured": False,
                    },
                }
            ]
        }
    }
