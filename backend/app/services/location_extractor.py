"""LocationExtractor - free-text description -> named coordinate.

Invariants:
    - Cache hit under geocode:<description> -> neither provider is called
    - Empty extraction is a ValidationError; an unknown place is NotFound
    - Only successful lookups are cached
"""

import logging
from datetime import timedelta

from app.core.domain_types import CacheNamespace, ResultSource
from app.core.errors import ResourceNotFoundError, ValidationError
from app.core.repository_protocols import GenerativeTextProvider, Geocoder
from app.schemas.geocode import GeocodeResponse, GeocodeResult
from app.services.ttl_cache import DEFAULT_TTL, TTLCache

logger = logging.getLogger(__name__)


class LocationExtractor:
    def __init__(
        self,
        cache: TTLCache,
        text_provider: GenerativeTextProvider,
        geocoder: Geocoder,
        ttl: timedelta = DEFAULT_TTL,
    ):
        self.cache = cache
        self.text_provider = text_provider
        self.geocoder = geocoder
        self.ttl = ttl

    async def extract(self, description: str) -> GeocodeResponse:
        cached = await self.cache.get(CacheNamespace.GEOCODE, description)
        if cached is not None:
            return GeocodeResponse(source=ResultSource.CACHE, **cached.value.model_dump())

        answer = await self.text_provider.generate(
            f'Extract the location mentioned in: "{description}"',
        )
        location_name = answer.strip().strip('"').strip()
        if not location_name:
            raise ValidationError("No location extracted", "description")

        coord = await self.geocoder.resolve(location_name)
        if coord is None:
            raise ResourceNotFoundError("Location", location_name)

        result = GeocodeResult(
            location_name=location_name, lat=coord.lat, lon=coord.lon,
        )
        await self.cache.put(CacheNamespace.GEOCODE, description, result, self.ttl)
        logger.info("Location extracted: %s", location_name, extra={"source": "fresh"})
        return GeocodeResponse(source=ResultSource.FRESH, **result.model_dump())
