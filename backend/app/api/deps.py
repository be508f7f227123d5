"""API Dependencies - request-scoped wiring of services from app.state handles.

Invariants:
    - Process-wide handles (hub, providers, social session) live on app.state,
      created once by the lifespan; services are built per request
    - Each request gets its own AsyncSession and TTLCache over it
    - x-user-id maps to a known actor; unknown or missing ids act as the
      default contributor, except for reports which need an explicit id

Design Decisions:
    - Mock header roles stand in for authentication (no tokens, no sessions)
"""

from dataclasses import dataclass
from datetime import timedelta

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.domain_types import Actor, Role
from app.core.repository_protocols import (
    GenerativeTextProvider, Geocoder, ImageFetcher, PlacesProvider,
)
from app.infrastructure.database import get_db
from app.services.broadcast_hub import BroadcastHub
from app.services.location_extractor import LocationExtractor
from app.services.nearby_places import NearbyPlaces
from app.services.record_store import RecordStore, ReportStatusRepository
from app.services.social_aggregator import SocialAggregator, SocialSession
from app.services.ttl_cache import TTLCache
from app.services.updates_generator import UpdatesGenerator
from app.services.verification_pipeline import VerificationPipeline

DEFAULT_USER = "netrunnerX"

KNOWN_USERS: dict[str, Actor] = {
    "netrunnerX": Actor(id="netrunnerX", role=Role.CONTRIBUTOR),
    "reliefAdmin": Actor(id="reliefAdmin", role=Role.ADMIN),
}


@dataclass
class Providers:
    """External collaborators shared by every request."""
    geocoder: Geocoder
    text: GenerativeTextProvider
    places: PlacesProvider
    images: ImageFetcher


# --- Actors -------------------------------------------------------------------

def get_actor(x_user_id: str | None = Header(None)) -> Actor:
    return KNOWN_USERS.get(x_user_id or "", KNOWN_USERS[DEFAULT_USER])


def get_reporter(x_user_id: str | None = Header(None)) -> Actor | None:
    """Report author taken verbatim from the header; None when absent."""
    if not x_user_id or not x_user_id.strip():
        return None
    user_id = x_user_id.strip()
    return KNOWN_USERS.get(user_id, Actor(id=user_id))


# --- Process-wide handles -----------------------------------------------------

def get_hub(request: Request) -> BroadcastHub:
    return request.app.state.hub


def get_providers(request: Request) -> Providers:
    return request.app.state.providers


def get_social_session(request: Request) -> SocialSession:
    return request.app.state.social_session


def _cache_ttl() -> timedelta:
    return timedelta(seconds=get_settings().cache_ttl_seconds)


# --- Per-request services -----------------------------------------------------

def get_cache(db: AsyncSession = Depends(get_db)) -> TTLCache:
    return TTLCache(db)


def get_verifier(
    db: AsyncSession = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
    providers: Providers = Depends(get_providers),
) -> VerificationPipeline:
    return VerificationPipeline(
        cache, providers.text, providers.images,
        ReportStatusRepository(db), ttl=_cache_ttl(),
    )


def get_store(
    db: AsyncSession = Depends(get_db),
    providers: Providers = Depends(get_providers),
    hub: BroadcastHub = Depends(get_hub),
    verifier: VerificationPipeline = Depends(get_verifier),
) -> RecordStore:
    return RecordStore(db, providers.geocoder, hub, verifier=verifier)


def get_social_aggregator(
    db: AsyncSession = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
    session: SocialSession = Depends(get_social_session),
) -> SocialAggregator:
    return SocialAggregator(
        db, cache, session,
        limit=get_settings().social_search_limit, ttl=_cache_ttl(),
    )


def get_updates_generator(
    db: AsyncSession = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
    providers: Providers = Depends(get_providers),
) -> UpdatesGenerator:
    return UpdatesGenerator(db, cache, providers.text, ttl=_cache_ttl())


def get_location_extractor(
    cache: TTLCache = Depends(get_cache),
    providers: Providers = Depends(get_providers),
) -> LocationExtractor:
    return LocationExtractor(
        cache, providers.text, providers.geocoder, ttl=_cache_ttl(),
    )


def get_nearby_places(
    db: AsyncSession = Depends(get_db),
    providers: Providers = Depends(get_providers),
) -> NearbyPlaces:
    settings = get_settings()
    return NearbyPlaces(
        db, providers.places,
        radius_m=settings.hospital_radius_m, limit=settings.hospital_limit,
    )
