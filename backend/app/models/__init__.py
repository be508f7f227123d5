"""ORM Models - SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Disaster is the aggregate root; resources and reports reference it

Design Decisions:
    - One file per entity
    - All models imported here so Base.metadata is complete before create_all
"""

from app.models.disaster import Disaster  # noqa: F401
from app.models.audit_entry import DisasterAuditEntry  # noqa: F401
from app.models.resource import Resource  # noqa: F401
from app.models.report import Report  # noqa: F401
from app.models.cache_entry import CacheEntry  # noqa: F401
