"""RecordStore - authoritative CRUD and audit trail for disasters, resources and reports.

Invariants:
    - Every disaster mutation appends exactly one audit entry in the same commit
    - Audit entries are appended with a single INSERT (no read-modify-write)
    - Disaster geocoding failures degrade to a NULL location; resource geocoding
      failures are hard errors
    - Returned records always carry lat/lon re-derived from the stored geometry
    - Events are published after commit, in call order, carrying the full record
    - add_resource checks the admin role before anything else: a rejected call
      persists nothing and publishes nothing

Design Decisions:
    - Authorization lives here, not in the transport layer
    - add_report returns the verification pipeline's immediate result; the
      pipeline persists its own outcome, so the emitted status may be stale
"""

import logging
import uuid
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import geo_encoder
from app.core.domain_types import (
    Actor, AuditAction, Clock, DomainEvent, PENDING_STATUS, ResultSource, utc_now,
)
from app.core.errors import (
    AuthorizationError, ErrorContext, ResourceNotFoundError, UpstreamError, ValidationError,
)
from app.core.repository_protocols import EventPublisher, Geocoder
from app.models.audit_entry import DisasterAuditEntry
from app.models.disaster import Disaster
from app.models.report import Report
from app.models.resource import Resource
from app.schemas.disaster import AuditEntryOut, DisasterCreate, DisasterOut, DisasterUpdate
from app.schemas.report import ReportCreate, ReportCreated, ReportOut
from app.schemas.resource import ResourceCreate, ResourceOut

logger = logging.getLogger(__name__)

_RESOURCE_REQUIRED = ("name", "location_name", "type")


class ReportStatusRepository:
    """Writes verification outcomes onto report rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def set_verification_status(self, report_id: UUID, status: str) -> None:
        await self.db.execute(
            update(Report)
            .where(Report.id == report_id)
            .values(verification_status=status),
        )
        await self.db.commit()


class RecordStore:
    """Disaster/resource/report persistence with geocoding and event emission."""

    def __init__(
        self,
        db: AsyncSession,
        geocoder: Geocoder,
        events: EventPublisher,
        verifier=None,
        clock: Clock = utc_now,
    ):
        self.db = db
        self.geocoder = geocoder
        self.events = events
        self.verifier = verifier
        self.clock = clock

    # -- Disasters -------------------------------------------------------------

    async def create_disaster(self, data: DisasterCreate) -> DisasterOut:
        location = await self._geocode_tolerant(data.location_name)
        now = self.clock()
        disaster = Disaster(
            id=uuid.uuid4(),
            title=data.title,
            location_name=data.location_name,
            description=data.description,
            tags=list(data.tags),
            owner_id=data.owner_id,
            location=location,
            created_at=now,
        )
        self.db.add(disaster)
        self._append_audit(disaster.id, AuditAction.CREATE, data.owner_id)
        await self.db.commit()

        record = await self._to_out(disaster)
        logger.info(
            "Disaster created",
            extra={"disaster_id": str(disaster.id), "event": "create"},
        )
        self._publish(DomainEvent.DISASTER_CREATED, record)
        return record

    async def update_disaster(
        self, disaster_id: UUID, data: DisasterUpdate,
    ) -> DisasterOut:
        exists = await self.db.scalar(
            select(Disaster.id).where(Disaster.id == disaster_id),
        )
        if exists is None:
            raise ResourceNotFoundError(
                "Disaster", str(disaster_id),
                ErrorContext(disaster_id=str(disaster_id)),
            )
        location = await self._geocode_tolerant(data.location_name, disaster_id)
        result = await self.db.execute(
            update(Disaster)
            .where(Disaster.id == disaster_id)
            .values(
                title=data.title,
                location_name=data.location_name,
                description=data.description,
                tags=list(data.tags),
                owner_id=data.owner_id,
                location=location,
            )
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundError(
                "Disaster", str(disaster_id),
                ErrorContext(disaster_id=str(disaster_id)),
            )
        self._append_audit(disaster_id, AuditAction.UPDATE, data.owner_id)
        await self.db.commit()

        disaster = await self._get_or_404(disaster_id, refresh=True)
        record = await self._to_out(disaster)
        logger.info(
            "Disaster updated",
            extra={"disaster_id": str(disaster_id), "event": "update"},
        )
        self._publish(DomainEvent.DISASTER_UPDATED, record)
        return record

    async def delete_disaster(
        self, disaster_id: UUID, actor: Actor | None = None,
    ) -> DisasterOut:
        disaster = await self._get_or_404(disaster_id)
        result = await self.db.execute(
            delete(Disaster)
            .where(Disaster.id == disaster_id)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundError("Disaster", str(disaster_id))
        user_id = actor.id if actor else disaster.owner_id
        self._append_audit(disaster_id, AuditAction.DELETE, user_id)
        await self.db.commit()

        snapshot = await self._to_out(disaster)
        logger.info(
            "Disaster deleted",
            extra={"disaster_id": str(disaster_id), "event": "delete"},
        )
        self._publish(DomainEvent.DISASTER_DELETED, snapshot)
        return snapshot

    async def get_disaster(self, disaster_id: UUID) -> DisasterOut:
        return await self._to_out(await self._get_or_404(disaster_id))

    async def list_disasters(self, tag: str | None = None) -> list[DisasterOut]:
        """All disasters, newest first, optionally only those carrying tag."""
        result = await self.db.execute(
            select(Disaster).order_by(Disaster.created_at.desc()),
        )
        disasters = [
            d for d in result.scalars().all()
            if tag is None or tag in (d.tags or [])
        ]
        trails = await self._load_trails([d.id for d in disasters])
        return [self._build_out(d, trails.get(d.id, [])) for d in disasters]

    # -- Resources -------------------------------------------------------------

    async def add_resource(
        self, disaster_id: UUID, data: ResourceCreate, actor: Actor,
    ) -> ResourceOut:
        if not actor.is_admin:
            logger.warning(
                "Resource creation rejected for non-admin %s", actor.id,
                extra={"disaster_id": str(disaster_id)},
            )
            raise AuthorizationError(
                "add resources", ErrorContext(disaster_id=str(disaster_id)),
            )
        missing = [
            f for f in _RESOURCE_REQUIRED if not (getattr(data, f) or "").strip()
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", missing[0],
            )
        await self._get_or_404(disaster_id)

        coord = await self.geocoder.resolve(data.location_name.strip())
        if coord is None:
            raise ValidationError(
                "Could not geocode the location. Please provide a valid location name.",
                "location_name",
                ErrorContext(disaster_id=str(disaster_id)),
            )
        resource = Resource(
            id=uuid.uuid4(),
            disaster_id=disaster_id,
            name=data.name.strip(),
            location_name=data.location_name.strip(),
            location=geo_encoder.encode(coord),
            type=data.type.strip(),
            created_at=self.clock(),
        )
        self.db.add(resource)
        await self.db.commit()

        record = _resource_out(resource)
        logger.info(
            "Resource created",
            extra={"disaster_id": str(disaster_id), "resource_id": str(resource.id)},
        )
        self._publish(DomainEvent.RESOURCE_CREATED, record)
        return record

    async def list_resources(self, disaster_id: UUID) -> list[ResourceOut]:
        result = await self.db.execute(
            select(Resource)
            .where(Resource.disaster_id == disaster_id)
            .order_by(Resource.created_at),
        )
        return [_resource_out(r) for r in result.scalars().all()]

    # -- Reports ---------------------------------------------------------------

    async def add_report(
        self, disaster_id: UUID, data: ReportCreate, actor: Actor | None,
    ) -> ReportCreated:
        content = (data.content or "").strip()
        if actor is None or not actor.id or not content:
            raise ValidationError(
                "Missing user_id or content",
                "content" if actor and actor.id else "user_id",
            )
        await self._get_or_404(disaster_id)

        report = Report(
            id=uuid.uuid4(),
            disaster_id=disaster_id,
            user_id=actor.id,
            content=content,
            image_url=(data.image_url or "").strip() or None,
            verification_status=PENDING_STATUS,
            created_at=self.clock(),
        )
        self.db.add(report)
        await self.db.commit()
        inserted = ReportOut.model_validate(report)

        status, source = PENDING_STATUS, ResultSource.SKIPPED
        if inserted.image_url and self.verifier is not None:
            verification = await self.verifier.verify(inserted.image_url, inserted.id)
            status, source = verification.result, verification.source

        record = inserted.model_copy(update={"verification_status": status})
        logger.info(
            "Report created",
            extra={
                "disaster_id": str(disaster_id),
                "report_id": str(inserted.id),
                "source": source.value,
            },
        )
        self._publish(DomainEvent.REPORT_CREATED, record)
        return ReportCreated(
            report_id=inserted.id,
            verification_status=status,
            source=source,
            report=record,
        )

    async def list_reports(self, disaster_id: UUID) -> list[ReportOut]:
        result = await self.db.execute(
            select(Report)
            .where(Report.disaster_id == disaster_id)
            .order_by(Report.created_at),
        )
        return [ReportOut.model_validate(r) for r in result.scalars().all()]

    # -- Helpers ---------------------------------------------------------------

    async def _geocode_tolerant(
        self, location_name: str, disaster_id: UUID | None = None,
    ) -> str | None:
        """Geocode for a disaster; any failure becomes a NULL location."""
        if not location_name.strip():
            return None
        try:
            coord = await self.geocoder.resolve(location_name.strip())
        except UpstreamError as e:
            logger.warning(
                "Geocoding failed, storing disaster without location: %s", e.message,
                extra={"disaster_id": str(disaster_id) if disaster_id else None},
            )
            return None
        if coord is None:
            logger.info("Location not found by geocoder: %s", location_name)
            return None
        return geo_encoder.encode(coord)

    def _append_audit(self, disaster_id: UUID, action: AuditAction, user_id: str) -> None:
        self.db.add(DisasterAuditEntry(
            disaster_id=disaster_id,
            action=action.value,
            user_id=user_id,
            timestamp=self.clock(),
        ))

    async def _get_or_404(self, disaster_id: UUID, refresh: bool = False) -> Disaster:
        stmt = select(Disaster).where(Disaster.id == disaster_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        disaster = result.scalar_one_or_none()
        if disaster is None:
            raise ResourceNotFoundError(
                "Disaster", str(disaster_id),
                ErrorContext(disaster_id=str(disaster_id)),
            )
        return disaster

    async def _load_trails(
        self, disaster_ids: list[UUID],
    ) -> dict[UUID, list[AuditEntryOut]]:
        if not disaster_ids:
            return {}
        result = await self.db.execute(
            select(DisasterAuditEntry)
            .where(DisasterAuditEntry.disaster_id.in_(disaster_ids))
            .order_by(DisasterAuditEntry.seq),
        )
        trails: dict[UUID, list[AuditEntryOut]] = {}
        for entry in result.scalars().all():
            trails.setdefault(entry.disaster_id, []).append(
                AuditEntryOut.model_validate(entry),
            )
        return trails

    async def _to_out(self, disaster: Disaster) -> DisasterOut:
        trails = await self._load_trails([disaster.id])
        return self._build_out(disaster, trails.get(disaster.id, []))

    @staticmethod
    def _build_out(disaster: Disaster, trail: list[AuditEntryOut]) -> DisasterOut:
        coord = geo_encoder.decode(disaster.location)
        return DisasterOut(
            id=disaster.id,
            title=disaster.title,
            location_name=disaster.location_name,
            description=disaster.description,
            tags=list(disaster.tags or []),
            owner_id=disaster.owner_id,
            location=disaster.location,
            lat=coord.lat if coord else None,
            lon=coord.lon if coord else None,
            audit_trail=trail,
            created_at=disaster.created_at,
        )

    def _publish(self, event: DomainEvent, record) -> None:
        self.events.publish(event.value, record.model_dump(mode="json"))


def _resource_out(resource: Resource) -> ResourceOut:
    coord = geo_encoder.decode(resource.location)
    return ResourceOut(
        id=resource.id,
        disaster_id=resource.disaster_id,
        name=resource.name,
        location_name=resource.location_name,
        type=resource.type,
        location=resource.location,
        lat=coord.lat if coord else None,
        lon=coord.lon if coord else None,
        created_at=resource.created_at,
    )
