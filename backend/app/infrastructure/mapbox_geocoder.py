"""Mapbox Geocoder - forward geocoding of free-text place names.

Invariants:
    - No features -> None (not an error)
    - Transport or HTTP failure -> UpstreamError(provider="mapbox")
    - Mapbox centers are [lon, lat]; returned Coordinate is (lat, lon)
"""

import logging
from urllib.parse import quote

import httpx

from app.core.domain_types import Coordinate
from app.infrastructure.http_errors import upstream_errors

logger = logging.getLogger(__name__)


class MapboxGeocoder:
    def __init__(self, client: httpx.AsyncClient, api_key: str, base_url: str):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def resolve(self, location_text: str) -> Coordinate | None:
        if not location_text.strip():
            return None
        url = f"{self.base_url}/{quote(location_text.strip(), safe='')}.json"
        async with upstream_errors("mapbox"):
            response = await self.client.get(
                url, params={"access_token": self.api_key, "limit": 1},
            )
            response.raise_for_status()
            features = response.json().get("features") or []
            if not features:
                logger.info("Mapbox found no match for %r", location_text)
                return None
            lon, lat = features[0]["center"][:2]
            return Coordinate(lat=float(lat), lon=float(lon))
