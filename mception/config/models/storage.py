"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

BackendType = Literal["file", "inmemory"]


class StorageConfig(BaseModel):
    """Where the server configuration and audit log are persisted."""

    config_backend: BackendType = Field(
        default="file",
        description="Backend for the server configuration document",
    )
    audit_backend: BackendType = Field(
        default="file",
        description="Backend for the audit log",
    )
    config_path: str = Field(
        default="data/config.json",
        description="Configuration document path (file backend)",
    )
    audit_log_path: str = Field(
        default="data/audit.log",
        description="Audit log path (file backend)",
    )
