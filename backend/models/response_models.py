"""
Response Models for the Docker Update Checker API
Pydantic models for the JSON envelopes returned to the UI
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from updates.types import ContainerImageStatus

UNKNOWN = "unknown"


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC (e.g., 2024-05-01T12:00:00.000Z)"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def short_local_digest(digest: Optional[str]) -> str:
    """First 12 characters of the local digest, as the UI shows it"""
    return digest[:12] if digest else UNKNOWN


def short_remote_digest(digest: Optional[str]) -> str:
    """12 hex characters after the "sha256:" prefix"""
    return digest[7:19] if digest else UNKNOWN


class CamelModel(BaseModel):
    """Serializes snake_case fields as camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContainerStatusModel(CamelModel):
    """One container row of the /api/containers response"""
    id: str
    name: str
    image: str
    current_tag: str
    latest_tag: str
    latest_version: Optional[str] = None
    status: str = ""
    state: str = ""
    registry: str
    update_available: bool
    current_digest: str
    latest_digest: str

    @classmethod
    def from_status(cls, status: ContainerImageStatus) -> "ContainerStatusModel":
        return cls(
            id=status.container_id,
            name=status.name,
            image=status.image_reference,
            current_tag=status.current_tag,
            latest_tag=status.current_tag,
            latest_version=status.latest_version_tag,
            status=status.status,
            state=status.state,
            registry=status.registry.value,
            update_available=status.update_available,
            current_digest=short_local_digest(status.local_digest),
            latest_digest=short_remote_digest(status.remote_digest),
        )


class ContainersResponse(CamelModel):
    success: bool = True
    containers: List[ContainerStatusModel] = Field(default_factory=list)
    timestamp: str = Field(default_factory=utc_timestamp)


class ErrorResponse(CamelModel):
    error: str
    details: str


class ConfigResponse(CamelModel):
    check_interval: int
    check_interval_ms: int
    auto_refresh_enabled: bool
    timestamp: str = Field(default_factory=utc_timestamp)

    @classmethod
    def from_interval(cls, check_interval: int) -> "ConfigResponse":
        return cls(
            check_interval=check_interval,
            check_interval_ms=check_interval * 1000,
            auto_refresh_enabled=check_interval > 0,
        )


class HealthResponse(CamelModel):
    status: str = "ok"
    timestamp: str = Field(default_factory=utc_timestamp)


class ApiInfoResponse(CamelModel):
    name: str
    version: str
    endpoints: Dict[str, str]
