"""Official Update Schemas - AI-generated relief bulletins."""

from pydantic import BaseModel

from app.core.domain_types import ResultSource


class OfficialUpdate(BaseModel):
    title: str
    source: str = ""
    url: str = ""


class OfficialUpdates(BaseModel):
    source: ResultSource
    updates: list[OfficialUpdate]
