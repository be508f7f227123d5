"""TTLCache - namespaced key/value memoization with absolute per-entry expiry.

Invariants:
    - get() never returns an entry whose expires_at <= now (filtered in SQL)
    - put() replaces value AND expiry of an existing key in one upsert statement
    - A stored payload is only returned to the namespace that wrote it;
      a kind mismatch or shape mismatch reads as a miss
    - No eviction sweep: expired rows are ignored until overwritten

Design Decisions:
    - Payload stored as {"kind", "data"} and validated per namespace with pydantic
    - Dialect-native INSERT .. ON CONFLICT DO UPDATE (PostgreSQL, SQLite);
      other dialects fall back to Session.merge
    - Clock injected so expiry is testable without sleeping
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import CacheNamespace, Clock, utc_now
from app.models.cache_entry import CacheEntry
from app.schemas.geocode import GeocodeResult
from app.schemas.social import SocialPost
from app.schemas.updates import OfficialUpdate

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=1)

_PAYLOADS: dict[CacheNamespace, TypeAdapter] = {
    CacheNamespace.GEOCODE: TypeAdapter(GeocodeResult),
    CacheNamespace.SOCIAL: TypeAdapter(list[SocialPost]),
    CacheNamespace.UPDATES: TypeAdapter(list[OfficialUpdate]),
    CacheNamespace.VERIFY: TypeAdapter(str),
}


@dataclass(frozen=True)
class CacheHit:
    """A live cache entry. value is typed per namespace."""
    key: str
    value: Any


def cache_key(namespace: CacheNamespace, scope: object) -> str:
    return f"{namespace.value}:{scope}"


class TTLCache:
    """Cache over the `cache` table. One instance per unit of work."""

    def __init__(self, db: AsyncSession, clock: Clock = utc_now):
        self.db = db
        self.clock = clock

    async def get(self, namespace: CacheNamespace, scope: object) -> CacheHit | None:
        key = cache_key(namespace, scope)
        result = await self.db.execute(
            select(CacheEntry.value).where(
                CacheEntry.key == key,
                CacheEntry.expires_at > self.clock(),
            ),
        )
        stored = result.scalar_one_or_none()
        if stored is None:
            return None
        if not isinstance(stored, dict) or stored.get("kind") != namespace.value:
            logger.warning(
                "Cache payload kind mismatch, treating as miss",
                extra={"cache_key": key},
            )
            return None
        try:
            value = _PAYLOADS[namespace].validate_python(stored.get("data"))
        except PydanticValidationError:
            logger.warning(
                "Cache payload failed validation, treating as miss",
                extra={"cache_key": key},
            )
            return None
        logger.debug("Cache hit", extra={"cache_key": key})
        return CacheHit(key=key, value=value)

    async def put(
        self,
        namespace: CacheNamespace,
        scope: object,
        value: Any,
        ttl: timedelta = DEFAULT_TTL,
        commit: bool = True,
    ) -> None:
        """Store value under namespace/scope until now + ttl.

        commit=False leaves the write in the current transaction so a caller can
        commit it together with its own changes.
        """
        key = cache_key(namespace, scope)
        adapter = _PAYLOADS[namespace]
        data = adapter.dump_python(adapter.validate_python(value), mode="json")
        row = {
            "key": key,
            "value": {"kind": namespace.value, "data": data},
            "expires_at": self.clock() + ttl,
        }
        await self._upsert(row)
        if commit:
            await self.db.commit()
        logger.debug("Cache put", extra={"cache_key": key})

    async def rollback(self) -> None:
        """Drop uncommitted cache writes."""
        await self.db.rollback()

    async def _upsert(self, row: dict) -> None:
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            await self.db.merge(CacheEntry(**row))
            return
        stmt = insert(CacheEntry).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[CacheEntry.key],
            set_={
                "value": stmt.excluded.value,
                "expires_at": stmt.excluded.expires_at,
            },
        )
        await self.db.execute(stmt)
