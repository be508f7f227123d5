"""Domain Types - value objects and enums shared by every layer.

Invariants:
    - Coordinate is immutable and owned by its Disaster/Resource
    - All valid states encoded as Enums - no raw string matching
    - PENDING_STATUS and VERIFICATION_FAILED are the only fixed report statuses;
      any other status is verification text produced by the pipeline

Design Decisions:
    - str Enums serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable


# --- Value Types -------------------------------------------------------------

@dataclass(frozen=True)
class Coordinate:
    """WGS84 point in degrees."""
    lat: float
    lon: float


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Enums -------------------------------------------------------------------

class Role(str, Enum):
    CONTRIBUTOR = "contributor"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """The caller of a write operation."""
    id: str
    role: Role = Role.CONTRIBUTOR

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class AuditAction(str, Enum):
    """Audit trail actions - one entry per mutation."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class DomainEvent(str, Enum):
    """Events published to BroadcastHub observers."""
    DISASTER_CREATED = "disaster_created"
    DISASTER_UPDATED = "disaster_updated"
    DISASTER_DELETED = "disaster_deleted"
    RESOURCE_CREATED = "resource_created"
    REPORT_CREATED = "report_created"


class ResultSource(str, Enum):
    """Where a cache-fronted result came from."""
    CACHE = "cache"
    LIVE = "live"
    AI = "ai"
    FRESH = "fresh"
    ERROR = "error"
    SKIPPED = "skipped"


class CacheNamespace(str, Enum):
    """Cache key spaces. Each namespace owns exactly one payload shape."""
    GEOCODE = "geocode"
    SOCIAL = "social"
    UPDATES = "updates"
    VERIFY = "verify"


PENDING_STATUS = "pending"
VERIFICATION_FAILED = "Image verification failed."
