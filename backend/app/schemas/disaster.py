"""Disaster Schemas - request/response contracts for incident records.

Invariants:
    - DisasterCreate/DisasterUpdate carry the full set of mutable fields
    - tags keep caller order; blank tags and duplicates are dropped
    - lat/lon are None exactly when location is None or undecodable
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.domain_types import AuditAction


class DisasterFields(BaseModel):
    """Mutable disaster fields shared by create and update."""
    title: str = Field(min_length=1, max_length=300)
    location_name: str = Field("", max_length=500)
    description: str = Field("", max_length=10_000)
    tags: list[str] = Field(default_factory=list)
    owner_id: str = Field(min_length=1, max_length=100)

    @field_validator("title", "owner_id")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        tags: list[str] = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags


class DisasterCreate(DisasterFields):
    pass


class DisasterUpdate(DisasterFields):
    pass


class AuditEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    action: AuditAction
    user_id: str
    timestamp: datetime


class DisasterOut(BaseModel):
    """Disaster as returned to callers and broadcast to observers."""
    id: UUID
    title: str
    location_name: str
    description: str
    tags: list[str]
    owner_id: str
    location: str | None = None
    lat: float | None = None
    lon: float | None = None
    audit_trail: list[AuditEntryOut] = Field(default_factory=list)
    created_at: datetime
