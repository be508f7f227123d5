"""SocialAggregator - per-tag hashtag fan-out with dedup, cache-checked.

Invariants:
    - Tags are searched in the disaster's stored order, one search per tag
    - Dedup keeps the first occurrence of each uri in tag iteration order
    - A failed login aborts the whole call; nothing is cached
    - Result (even empty) cached under social:<disaster_id> for one hour

Design Decisions:
    - SocialSession is a process-wide handle held on app.state; login happens
      lazily, once, under an asyncio.Lock
    - A search rejected for session reasons (SESSION_ERROR_TYPES) resets the
      session and propagates; the next call logs in again
"""

import asyncio
import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import CacheNamespace, ResultSource
from app.core.errors import ErrorContext, ResourceNotFoundError, UpstreamError
from app.core.repository_protocols import SESSION_ERROR_TYPES, SocialSearchProvider
from app.core.social_posts import dedupe_by_uri, hashtag_query
from app.models.disaster import Disaster
from app.schemas.social import SocialFeed, SocialPost
from app.services.ttl_cache import DEFAULT_TTL, TTLCache

logger = logging.getLogger(__name__)


class SocialSession:
    """Lazily authenticated handle over a SocialSearchProvider."""

    def __init__(self, provider: SocialSearchProvider):
        self.provider = provider
        self._lock = asyncio.Lock()
        self._established = False

    @property
    def established(self) -> bool:
        return self._established

    async def ensure(self) -> SocialSearchProvider:
        """Log in on first use; later calls reuse the session."""
        if self._established:
            return self.provider
        async with self._lock:
            if not self._established:
                await self.provider.login()
                self._established = True
                logger.info("Social search session established")
        return self.provider

    def reset(self) -> None:
        self._established = False


class SocialAggregator:
    """aggregate(disaster_id) -> SocialFeed."""

    def __init__(
        self,
        db: AsyncSession,
        cache: TTLCache,
        session: SocialSession,
        limit: int = 10,
        ttl: timedelta = DEFAULT_TTL,
    ):
        self.db = db
        self.cache = cache
        self.session = session
        self.limit = limit
        self.ttl = ttl

    async def aggregate(self, disaster_id: UUID) -> SocialFeed:
        tags = await self._load_tags(disaster_id)

        cached = await self.cache.get(CacheNamespace.SOCIAL, disaster_id)
        if cached is not None:
            logger.info(
                "Social feed served from cache",
                extra={"disaster_id": str(disaster_id), "source": "cache"},
            )
            return SocialFeed(source=ResultSource.CACHE, posts=cached.value)

        provider = await self.session.ensure()
        batches: list[list[SocialPost]] = []
        try:
            for tag in tags:
                batches.append(await provider.search(hashtag_query(tag), self.limit))
        except UpstreamError as e:
            if e.error_type in SESSION_ERROR_TYPES:
                self.session.reset()
                logger.warning(
                    "Social search session rejected; next call logs in again",
                    extra={"disaster_id": str(disaster_id), "provider": e.provider},
                )
            raise
        posts = dedupe_by_uri(batches)

        await self.cache.put(CacheNamespace.SOCIAL, disaster_id, posts, self.ttl)
        logger.info(
            "Social feed aggregated: %d posts from %d tags", len(posts), len(tags),
            extra={"disaster_id": str(disaster_id), "source": "live"},
        )
        return SocialFeed(source=ResultSource.LIVE, posts=posts)

    async def _load_tags(self, disaster_id: UUID) -> list[str]:
        result = await self.db.execute(
            select(Disaster.tags).where(Disaster.id == disaster_id),
        )
        row = result.one_or_none()
        if row is None:
            raise ResourceNotFoundError(
                "Disaster", str(disaster_id),
                ErrorContext(disaster_id=str(disaster_id)),
            )
        return list(row.tags or [])
