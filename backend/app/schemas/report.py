"""Report Schemas - field reports and their image verification outcome."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.domain_types import ResultSource


class ReportCreate(BaseModel):
    content: str | None = Field(None, max_length=10_000)
    image_url: str | None = Field(None, max_length=2_000)


class ReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    disaster_id: UUID
    user_id: str
    content: str
    image_url: str | None = None
    verification_status: str
    created_at: datetime


class VerificationResult(BaseModel):
    """Immediate outcome of one VerificationPipeline.verify call."""
    source: ResultSource
    result: str


class ReportCreated(BaseModel):
    """Response of add_report.

    verification_status may be newer or older than the persisted row: the
    pipeline writes the row independently of this response.
    """
    message: str = "Report created successfully"
    report_id: UUID
    verification_status: str
    source: ResultSource
    report: ReportOut
