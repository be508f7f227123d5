"""Geocode Schemas - free-text description to named coordinate."""

from pydantic import BaseModel, Field, field_validator

from app.core.domain_types import ResultSource


class GeocodeRequest(BaseModel):
    description: str = Field(min_length=1, max_length=5_000)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description cannot be empty or whitespace")
        return v


class GeocodeResult(BaseModel):
    location_name: str
    lat: float
    lon: float


class GeocodeResponse(GeocodeResult):
    source: ResultSource


class HospitalsResponse(BaseModel):
    hospitals: list[dict]
