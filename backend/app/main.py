"""Relief Coordination API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map DisasterHubError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Process-wide handles (database, hub, providers, social session) created
      in the lifespan and held on app.state; nothing else is global

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - One shared httpx.AsyncClient for every HTTP adapter, closed on shutdown
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.deps import Providers
from app.api.error_handlers import register_error_handlers
from app.api.routes import disasters, geocode, health, realtime
from app.config import get_settings
from app.infrastructure.anthropic_client import AnthropicTextProvider
from app.infrastructure.bluesky_client import BlueskyClient
from app.infrastructure.database import init_db
from app.infrastructure.image_fetcher import HttpImageFetcher
from app.infrastructure.mapbox_geocoder import MapboxGeocoder
from app.infrastructure.observability import setup_logging
from app.infrastructure.overpass_client import OverpassClient
from app.services.broadcast_hub import BroadcastHub
from app.services.social_aggregator import SocialSession

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    http = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    app.state.hub = BroadcastHub(settings.ws_max_pending_events)
    app.state.providers = Providers(
        geocoder=MapboxGeocoder(http, settings.mapbox_api_key, settings.mapbox_base_url),
        text=AnthropicTextProvider(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            max_tokens=settings.anthropic_max_tokens,
            timeout_seconds=settings.anthropic_timeout_seconds,
        ),
        places=OverpassClient(http, settings.overpass_url),
        images=HttpImageFetcher(http),
    )
    app.state.social_session = SocialSession(BlueskyClient(
        http,
        settings.bluesky_service,
        settings.bluesky_identifier,
        settings.bluesky_password,
    ))
    logger.info("Relief Coordination API started")
    yield
    logger.info("Relief Coordination API shutting down")
    await http.aclose()
    await manager.dispose()


app = FastAPI(
    title="Relief Coordination API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(disasters.router)
app.include_router(geocode.router)
app.include_router(realtime.router)

register_error_handlers(app)
