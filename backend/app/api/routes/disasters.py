"""Disaster Routes - incidents, their resources and reports, and derived feeds.

Invariants:
    - Routes only translate HTTP <-> service calls; rules live in services
    - Domain errors propagate to the global DisasterHubError handler
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import (
    get_actor, get_nearby_places, get_reporter, get_social_aggregator,
    get_store, get_updates_generator,
)
from app.core.domain_types import Actor
from app.schemas.disaster import DisasterCreate, DisasterOut, DisasterUpdate
from app.schemas.geocode import HospitalsResponse
from app.schemas.report import ReportCreate, ReportCreated, ReportOut
from app.schemas.resource import ResourceCreate, ResourceOut
from app.schemas.social import SocialFeed
from app.schemas.updates import OfficialUpdates
from app.services.nearby_places import NearbyPlaces
from app.services.record_store import RecordStore
from app.services.social_aggregator import SocialAggregator
from app.services.updates_generator import UpdatesGenerator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/disasters", tags=["disasters"])


# --- Disasters ----------------------------------------------------------------

@router.post(
    "", response_model=DisasterOut, status_code=status.HTTP_201_CREATED,
)
async def create_disaster(
    body: DisasterCreate, store: RecordStore = Depends(get_store),
):
    return await store.create_disaster(body)


@router.get("", response_model=list[DisasterOut])
async def list_disasters(
    tag: str | None = Query(None, max_length=100),
    store: RecordStore = Depends(get_store),
):
    """Newest first; ?tag= keeps only disasters carrying that tag."""
    return await store.list_disasters(tag)


@router.get("/{disaster_id}", response_model=DisasterOut)
async def get_disaster(disaster_id: UUID, store: RecordStore = Depends(get_store)):
    return await store.get_disaster(disaster_id)


@router.put("/{disaster_id}", response_model=DisasterOut)
async def update_disaster(
    disaster_id: UUID,
    body: DisasterUpdate,
    store: RecordStore = Depends(get_store),
):
    return await store.update_disaster(disaster_id, body)


@router.delete("/{disaster_id}")
async def delete_disaster(
    disaster_id: UUID,
    store: RecordStore = Depends(get_store),
    actor: Actor = Depends(get_actor),
):
    snapshot = await store.delete_disaster(disaster_id, actor)
    return {"message": "Disaster deleted", "data": snapshot.model_dump(mode="json")}


# --- Resources ----------------------------------------------------------------

@router.get("/{disaster_id}/resources", response_model=list[ResourceOut])
async def list_resources(disaster_id: UUID, store: RecordStore = Depends(get_store)):
    return await store.list_resources(disaster_id)


@router.post("/{disaster_id}/resources", status_code=status.HTTP_201_CREATED)
async def add_resource(
    disaster_id: UUID,
    body: ResourceCreate,
    store: RecordStore = Depends(get_store),
    actor: Actor = Depends(get_actor),
):
    resource = await store.add_resource(disaster_id, body, actor)
    return {
        "message": "Resource added successfully",
        "resource": resource.model_dump(mode="json"),
    }


# --- Reports ------------------------------------------------------------------

@router.get("/{disaster_id}/reports", response_model=list[ReportOut])
async def list_reports(disaster_id: UUID, store: RecordStore = Depends(get_store)):
    return await store.list_reports(disaster_id)


@router.post(
    "/{disaster_id}/reports",
    response_model=ReportCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_report(
    disaster_id: UUID,
    body: ReportCreate,
    store: RecordStore = Depends(get_store),
    reporter: Actor | None = Depends(get_reporter),
):
    return await store.add_report(disaster_id, body, reporter)


# --- Derived feeds ------------------------------------------------------------

@router.get("/{disaster_id}/social-media", response_model=SocialFeed)
async def social_media(
    disaster_id: UUID,
    aggregator: SocialAggregator = Depends(get_social_aggregator),
):
    return await aggregator.aggregate(disaster_id)


@router.get("/{disaster_id}/official-updates", response_model=OfficialUpdates)
async def official_updates(
    disaster_id: UUID,
    generator: UpdatesGenerator = Depends(get_updates_generator),
):
    return await generator.generate(disaster_id)


@router.get("/{disaster_id}/nearby-hospitals", response_model=HospitalsResponse)
async def nearby_hospitals(
    disaster_id: UUID,
    places: NearbyPlaces = Depends(get_nearby_places),
):
    return await places.hospitals(disaster_id)
