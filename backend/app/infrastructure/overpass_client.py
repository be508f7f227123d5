"""Overpass Client - OpenStreetMap amenity lookup around a point."""

import logging

import httpx

from app.infrastructure.http_errors import upstream_errors

logger = logging.getLogger(__name__)


def build_amenity_query(lat: float, lon: float, radius_m: int, amenity: str) -> str:
    """Overpass QL for nodes, ways and relations tagged amenity=<amenity>."""
    around = f"(around:{radius_m},{lat!r},{lon!r})"
    return (
        "[out:json];\n("
        f'\n  node["amenity"="{amenity}"]{around};'
        f'\n  way["amenity"="{amenity}"]{around};'
        f'\n  relation["amenity"="{amenity}"]{around};'
        "\n);\nout center;"
    )


class OverpassClient:
    def __init__(self, client: httpx.AsyncClient, url: str):
        self.client = client
        self.url = url

    async def query(
        self, lat: float, lon: float, radius_m: int, category: str,
    ) -> list[dict]:
        async with upstream_errors("overpass"):
            response = await self.client.get(
                self.url,
                params={"data": build_amenity_query(lat, lon, radius_m, category)},
            )
            response.raise_for_status()
            return list(response.json().get("elements") or [])
