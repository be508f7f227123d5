"""DisasterAuditEntry ORM - append-only log of disaster mutations.

Invariants:
    - Rows are only ever INSERTed; never updated or deleted
    - seq (autoincrement) defines trail order
    - disaster_id is NOT a foreign key: the log outlives deleted disasters
"""

import uuid
from datetime import datetime

from sqlalchemy import Integer, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class DisasterAuditEntry(Base):
    __tablename__ = "disaster_audit_entries"

    seq: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    disaster_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    action: Mapped[str] = mapped_column(String(10), nullable=False)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
