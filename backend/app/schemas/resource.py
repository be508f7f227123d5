"""Resource Schemas - relief resources attached to a disaster.

Presence of name/location_name/type is enforced by RecordStore so that the
authorization check always runs first.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ResourceCreate(BaseModel):
    name: str | None = Field(None, max_length=300)
    location_name: str | None = Field(None, max_length=500)
    type: str | None = Field(None, max_length=100)


class ResourceOut(BaseModel):
    id: UUID
    disaster_id: UUID
    name: str
    location_name: str
    type: str
    location: str
    lat: float | None = None
    lon: float | None = None
    created_at: datetime
