"""UpdatesGenerator - cache-checked AI bulletin of official relief updates.

Invariants:
    - Cache hit under updates:<disaster_id> -> provider invoked zero times
    - Provider or parse failure degrades to [] and never propagates
    - Whatever is obtained, including [], is cached for one hour
"""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import CacheNamespace, ResultSource
from app.core.errors import ErrorContext, ResourceNotFoundError, UpstreamError
from app.core.repository_protocols import GenerativeTextProvider
from app.core.structured_text import parse_official_updates
from app.models.disaster import Disaster
from app.schemas.updates import OfficialUpdate, OfficialUpdates
from app.services.ttl_cache import DEFAULT_TTL, TTLCache

logger = logging.getLogger(__name__)

UPDATE_COUNT = 1


def build_updates_prompt(title: str, tags: list[str], count: int = UPDATE_COUNT) -> str:
    keywords = ", ".join(tags)
    return (
        f"Generate a JSON array with {count} short official disaster relief "
        f"update from Red Cross or a similar agency for the disaster "
        f"\"{title}\" with tags: {keywords}. Each update should be an object "
        f"with 'title', 'source', and 'url' fields. Respond ONLY with the JSON "
        f"array, no explanation or markdown."
    )


class UpdatesGenerator:
    def __init__(
        self,
        db: AsyncSession,
        cache: TTLCache,
        text_provider: GenerativeTextProvider,
        ttl: timedelta = DEFAULT_TTL,
    ):
        self.db = db
        self.cache = cache
        self.text_provider = text_provider
        self.ttl = ttl

    async def generate(self, disaster_id: UUID) -> OfficialUpdates:
        cached = await self.cache.get(CacheNamespace.UPDATES, disaster_id)
        if cached is not None:
            logger.info(
                "Official updates served from cache",
                extra={"disaster_id": str(disaster_id), "source": "cache"},
            )
            return OfficialUpdates(source=ResultSource.CACHE, updates=cached.value)

        result = await self.db.execute(
            select(Disaster.title, Disaster.tags).where(Disaster.id == disaster_id),
        )
        row = result.one_or_none()
        if row is None:
            raise ResourceNotFoundError(
                "Disaster", str(disaster_id),
                ErrorContext(disaster_id=str(disaster_id)),
            )

        updates = await self._ask(row.title, list(row.tags or []), disaster_id)
        await self.cache.put(CacheNamespace.UPDATES, disaster_id, updates, self.ttl)
        logger.info(
            "Official updates generated: %d", len(updates),
            extra={"disaster_id": str(disaster_id), "source": "ai"},
        )
        return OfficialUpdates(source=ResultSource.AI, updates=updates)

    async def _ask(
        self, title: str, tags: list[str], disaster_id: UUID,
    ) -> list[OfficialUpdate]:
        try:
            text = await self.text_provider.generate(build_updates_prompt(title, tags))
        except UpstreamError as e:
            logger.warning(
                "Official updates provider failed: %s", e.message,
                extra={"disaster_id": str(disaster_id), "error_code": e.code},
            )
            return []
        return parse_official_updates(text)
