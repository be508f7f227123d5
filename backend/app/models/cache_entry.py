"""CacheEntry ORM - one memoized collaborator result.

Invariants:
    - key is unique ("<namespace>:<scope>")
    - value is {"kind": <namespace>, "data": <payload>}
    - expires_at is absolute; rows past expiry are ignored, not swept
"""

from datetime import datetime

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class CacheEntry(Base):
    __tablename__ = "cache"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
