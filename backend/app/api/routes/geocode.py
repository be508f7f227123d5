"""Geocode Route - free-text description to a named coordinate."""

from fastapi import APIRouter, Depends

from app.api.deps import get_location_extractor
from app.schemas.geocode import GeocodeRequest, GeocodeResponse
from app.services.location_extractor import LocationExtractor

router = APIRouter(prefix="/geocode", tags=["geocode"])


@router.post("", response_model=GeocodeResponse)
async def geocode(
    body: GeocodeRequest,
    extractor: LocationExtractor = Depends(get_location_extractor),
):
    return await extractor.extract(body.description)
