"""Boundary Protocols - contracts between the coordination core and its collaborators.

Invariants:
    - Services depend on these Protocols, never on concrete adapters
    - Adapters raise UpstreamError on transport failure and nothing else
    - Geocoder.resolve returns None for "not found"; it never raises for it

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from app.core.domain_types import Coordinate
from app.schemas.social import SocialPost


@dataclass(frozen=True)
class ImagePayload:
    """Fetched image bytes plus the media type reported by the host."""
    data: bytes
    media_type: str = "image/jpeg"


class Geocoder(Protocol):
    """Free-text location -> coordinate."""
    async def resolve(self, location_text: str) -> Coordinate | None: ...


class GenerativeTextProvider(Protocol):
    """Text generation, plain and streamed with an image attached."""
    async def generate(self, prompt: str) -> str: ...

    def generate_stream(
        self, prompt: str, image: ImagePayload,
    ) -> AsyncIterator[str]: ...


# error_types search() raises when the provider no longer accepts the session.
SESSION_ERROR_TYPES = frozenset({"no_session", "expired"})


class SocialSearchProvider(Protocol):
    """Hashtag search against a social network."""
    async def login(self) -> None: ...
    async def search(self, tag: str, limit: int) -> list[SocialPost]: ...


class PlacesProvider(Protocol):
    """Points of interest around a coordinate."""
    async def query(
        self, lat: float, lon: float, radius_m: int, category: str,
    ) -> list[dict]: ...


class ImageFetcher(Protocol):
    async def fetch(self, url: str) -> ImagePayload: ...


class EventPublisher(Protocol):
    """Receives domain events for real-time fan-out."""
    def publish(self, event: str, payload: dict) -> None: ...


class ReportStatusWriter(Protocol):
    """Persists the outcome of an image verification."""
    async def set_verification_status(self, report_id: UUID, status: str) -> None: ...
