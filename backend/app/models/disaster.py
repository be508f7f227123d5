"""Disaster ORM - the authoritative geotagged incident record.

Invariants:
    - id is UUID primary key
    - location is EWKT ('SRID=4326;POINT(lon lat)') or NULL when geocoding failed
    - tags is an ordered JSON list; order drives social fan-out order
    - the audit trail lives in disaster_audit_entries, never in this row

Design Decisions:
    - location stored as text: GeoEncoder owns the format on both dialects
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Disaster(Base):
    __tablename__ = "disasters"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    location_name: Mapped[str] = mapped_column(
        String(500), nullable=False, default="",
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    owner_id: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
