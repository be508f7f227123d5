"""NearbyPlaces - hospitals around a disaster's decoded coordinate."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import geo_encoder
from app.core.errors import ErrorContext, ResourceNotFoundError, ValidationError
from app.core.repository_protocols import PlacesProvider
from app.models.disaster import Disaster
from app.schemas.geocode import HospitalsResponse

logger = logging.getLogger(__name__)


class NearbyPlaces:
    def __init__(
        self,
        db: AsyncSession,
        places: PlacesProvider,
        radius_m: int = 5000,
        limit: int = 5,
    ):
        self.db = db
        self.places = places
        self.radius_m = radius_m
        self.limit = limit

    async def hospitals(self, disaster_id: UUID) -> HospitalsResponse:
        result = await self.db.execute(
            select(Disaster.location).where(Disaster.id == disaster_id),
        )
        row = result.one_or_none()
        if row is None:
            raise ResourceNotFoundError(
                "Disaster", str(disaster_id),
                ErrorContext(disaster_id=str(disaster_id)),
            )
        coord = geo_encoder.decode(row.location)
        if coord is None:
            raise ValidationError(
                "No coordinates for this disaster", "location",
                ErrorContext(disaster_id=str(disaster_id)),
            )
        elements = await self.places.query(
            coord.lat, coord.lon, self.radius_m, "hospital",
        )
        logger.info(
            "Hospitals found: %d", len(elements),
            extra={"disaster_id": str(disaster_id)},
        )
        return HospitalsResponse(hospitals=elements[: self.limit])
