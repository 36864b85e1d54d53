"""HTTP server configuration models."""

from pydantic import BaseModel, Field


class APIConfig(BaseModel):
    """Admin and agent HTTP surface settings."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, gt=0, le=65535, description="Bind port")
    default_actor: str = Field(
        default="admin",
        description="Actor recorded in the audit log for admin requests",
    )
