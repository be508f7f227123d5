"""RecordStore - disaster CRUD, audit log, resources and reports.

Invariants:
    - create -> one "create" audit entry by the owner, one disaster_created event
    - update -> audit trail grows by exactly one, prior entries unchanged
    - geocoding failure on a disaster persists a NULL location
    - non-admin add_resource -> AuthorizationError, no row, no event
"""

import pytest
from sqlalchemy import func, select
from uuid import uuid4

from app.core.domain_types import Actor, Coordinate, ResultSource, Role
from app.core.errors import (
    AuthorizationError, ResourceNotFoundError, UpstreamError, ValidationError,
)
from app.models.audit_entry import DisasterAuditEntry
from app.models.report import Report
from app.models.resource import Resource
from app.schemas.disaster import DisasterCreate, DisasterUpdate
from app.schemas.report import ReportCreate, VerificationResult
from app.schemas.resource import ResourceCreate
from app.services.record_store import RecordStore

from tests.services.fakes import FakeGeocoder

ADMIN = Actor(id="reliefAdmin", role=Role.ADMIN)
CONTRIBUTOR = Actor(id="netrunnerX")

FLOOD_A = DisasterCreate(
    title="Flood A",
    location_name="Miami, FL",
    description="Water rising downtown",
    tags=["flood", "relief"],
    owner_id="netrunnerX",
)


class _StubVerifier:
    def __init__(self, result: VerificationResult):
        self.result = result
        self.calls: list[tuple] = []

    async def verify(self, image_url, report_id):
        self.calls.append((image_url, report_id))
        return self.result


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


# --- Disasters ----------------------------------------------------------------

async def test_create_flood_a_scenario(store, publisher):
    record = await store.create_disaster(FLOOD_A)

    assert record.lat == pytest.approx(25.77)
    assert record.lon == pytest.approx(-80.19)
    assert "POINT(-80.19 25.77)" in record.location
    assert publisher.names() == ["disaster_created"]
    assert publisher.events[0][1]["id"] == str(record.id)


async def test_create_has_single_create_audit_entry(store):
    record = await store.create_disaster(FLOOD_A)
    assert len(record.audit_trail) == 1
    assert record.audit_trail[0].action == "create"
    assert record.audit_trail[0].user_id == "netrunnerX"


async def test_create_keeps_tag_order(store):
    record = await store.create_disaster(FLOOD_A.model_copy(update={"tags": ["relief", "flood"]}))
    assert record.tags == ["relief", "flood"]


async def test_unknown_location_persists_without_geometry(test_db, publisher):
    store = RecordStore(test_db, FakeGeocoder(), publisher)
    record = await store.create_disaster(FLOOD_A.model_copy(update={"location_name": "Atlantis"}))
    assert record.location is None
    assert record.lat is None and record.lon is None
    assert publisher.names() == ["disaster_created"]


async def test_geocoder_failure_is_tolerated_for_disasters(test_db, publisher):
    geocoder = FakeGeocoder(error=UpstreamError("mapbox", "down", "connection_error"))
    store = RecordStore(test_db, geocoder, publisher)
    record = await store.create_disaster(FLOOD_A)
    assert record.location is None
    assert len(record.audit_trail) == 1


async def test_zero_coordinate_is_kept(test_db, publisher):
    geocoder = FakeGeocoder({"Null Island": Coordinate(lat=0.0, lon=0.0)})
    store = RecordStore(test_db, geocoder, publisher)
    record = await store.create_disaster(FLOOD_A.model_copy(update={"location_name": "Null Island"}))
    assert record.lat == 0.0 and record.lon == 0.0


async def test_update_appends_exactly_one_entry(store, publisher):
    created = await store.create_disaster(FLOOD_A)
    update = DisasterUpdate(
        title="Flood A (major)", location_name="Miami, FL",
        description="Levee breach", tags=["flood"], owner_id="reliefAdmin",
    )

    updated = await store.update_disaster(created.id, update)

    assert len(updated.audit_trail) == 2
    assert updated.audit_trail[0] == created.audit_trail[0]
    assert updated.audit_trail[1].action == "update"
    assert updated.audit_trail[1].user_id == "reliefAdmin"
    assert updated.title == "Flood A (major)"
    assert publisher.names() == ["disaster_created", "disaster_updated"]


async def test_repeated_updates_never_lose_entries(store):
    created = await store.create_disaster(FLOOD_A)
    for i in range(3):
        await store.update_disaster(
            created.id, DisasterUpdate(**FLOOD_A.model_dump() | {"title": f"v{i}"}),
        )
    record = await store.get_disaster(created.id)
    assert [e.action for e in record.audit_trail] == ["create", "update", "update", "update"]


async def test_update_missing_disaster_is_not_found(store, publisher, test_db, geocoder):
    with pytest.raises(ResourceNotFoundError):
        await store.update_disaster(uuid4(), DisasterUpdate(**FLOOD_A.model_dump()))
    assert geocoder.calls == []
    assert publisher.events == []
    assert await _count(test_db, DisasterAuditEntry) == 0


async def test_delete_emits_snapshot_and_logs(store, publisher, test_db):
    created = await store.create_disaster(FLOOD_A)
    snapshot = await store.delete_disaster(created.id, ADMIN)

    assert snapshot.id == created.id
    assert publisher.names() == ["disaster_created", "disaster_deleted"]
    with pytest.raises(ResourceNotFoundError):
        await store.get_disaster(created.id)
    actions = (await test_db.execute(
        select(DisasterAuditEntry.action).order_by(DisasterAuditEntry.seq),
    )).scalars().all()
    assert actions == ["create", "delete"]


async def test_delete_missing_disaster_is_not_found(store):
    with pytest.raises(ResourceNotFoundError):
        await store.delete_disaster(uuid4())


async def test_list_newest_first_with_tag_filter(store):
    first = await store.create_disaster(FLOOD_A)
    second = await store.create_disaster(
        FLOOD_A.model_copy(update={"title": "Fire B", "tags": ["wildfire"]}),
    )

    everything = await store.list_disasters()
    assert [d.id for d in everything] == [second.id, first.id]

    floods = await store.list_disasters("flood")
    assert [d.id for d in floods] == [first.id]
    assert floods[0].lat == pytest.approx(25.77)


# --- Resources ----------------------------------------------------------------

async def test_non_admin_resource_is_rejected_without_side_effects(store, publisher, test_db):
    created = await store.create_disaster(FLOOD_A)
    publisher.events.clear()

    with pytest.raises(AuthorizationError):
        await store.add_resource(
            created.id,
            ResourceCreate(name="Shelter", location_name="Miami, FL", type="shelter"),
            CONTRIBUTOR,
        )

    assert await _count(test_db, Resource) == 0
    assert publisher.events == []


async def test_authorization_checked_before_validation(store):
    with pytest.raises(AuthorizationError):
        await store.add_resource(uuid4(), ResourceCreate(), CONTRIBUTOR)


async def test_admin_adds_geocoded_resource(store, publisher):
    created = await store.create_disaster(FLOOD_A)
    resource = await store.add_resource(
        created.id,
        ResourceCreate(name="Shelter 1", location_name="Miami, FL", type="shelter"),
        ADMIN,
    )
    assert resource.lat == pytest.approx(25.77)
    assert resource.location == "SRID=4326;POINT(-80.19 25.77)"
    assert publisher.names()[-1] == "resource_created"
    assert [r.id for r in await store.list_resources(created.id)] == [resource.id]


async def test_resource_missing_fields(store):
    created = await store.create_disaster(FLOOD_A)
    with pytest.raises(ValidationError) as exc:
        await store.add_resource(created.id, ResourceCreate(name="Shelter"), ADMIN)
    assert exc.value.field == "location_name"


async def test_resource_unknown_disaster(store):
    with pytest.raises(ResourceNotFoundError):
        await store.add_resource(
            uuid4(),
            ResourceCreate(name="Shelter", location_name="Miami, FL", type="shelter"),
            ADMIN,
        )


async def test_resource_ungeocodable_location(store, test_db):
    created = await store.create_disaster(FLOOD_A)
    with pytest.raises(ValidationError):
        await store.add_resource(
            created.id,
            ResourceCreate(name="Shelter", location_name="Atlantis", type="shelter"),
            ADMIN,
        )
    assert await _count(test_db, Resource) == 0


async def test_resource_geocoder_outage_is_hard_failure(test_db, publisher):
    store = RecordStore(
        test_db, FakeGeocoder({"Miami, FL": Coordinate(25.77, -80.19)}), publisher,
    )
    created = await store.create_disaster(FLOOD_A)
    store.geocoder = FakeGeocoder(error=UpstreamError("mapbox", "down"))
    with pytest.raises(UpstreamError):
        await store.add_resource(
            created.id,
            ResourceCreate(name="Shelter", location_name="Miami, FL", type="shelter"),
            ADMIN,
        )
    assert await _count(test_db, Resource) == 0


# --- Reports ------------------------------------------------------------------

async def test_report_without_image_skips_verification(test_db, geocoder, publisher):
    verifier = _StubVerifier(VerificationResult(source=ResultSource.LIVE, result="x"))
    store = RecordStore(test_db, geocoder, publisher, verifier=verifier)
    created = await store.create_disaster(FLOOD_A)

    result = await store.add_report(
        created.id, ReportCreate(content="Road closed"), CONTRIBUTOR,
    )

    assert result.verification_status == "pending"
    assert result.source == ResultSource.SKIPPED
    assert verifier.calls == []
    assert publisher.names()[-1] == "report_created"


async def test_report_with_image_returns_verification(test_db, geocoder, publisher):
    verifier = _StubVerifier(VerificationResult(source=ResultSource.LIVE, result="Real flood"))
    store = RecordStore(test_db, geocoder, publisher, verifier=verifier)
    created = await store.create_disaster(FLOOD_A)

    result = await store.add_report(
        created.id,
        ReportCreate(content="Photo", image_url="https://img.example/1.jpg"),
        CONTRIBUTOR,
    )

    assert result.verification_status == "Real flood"
    assert result.source == ResultSource.LIVE
    assert verifier.calls == [("https://img.example/1.jpg", result.report_id)]
    assert publisher.events[-1][1]["verification_status"] == "Real flood"


async def test_report_persisted_as_pending(store, test_db):
    created = await store.create_disaster(FLOOD_A)
    result = await store.add_report(created.id, ReportCreate(content="hi"), CONTRIBUTOR)
    row = (await test_db.execute(
        select(Report).where(Report.id == result.report_id),
    )).scalar_one()
    assert row.verification_status == "pending"
    assert [r.id for r in await store.list_reports(created.id)] == [row.id]


@pytest.mark.parametrize("content, actor", [
    (None, CONTRIBUTOR),
    ("   ", CONTRIBUTOR),
    ("Road closed", None),
])
async def test_report_requires_user_and_content(store, test_db, content, actor):
    created = await store.create_disaster(FLOOD_A)
    with pytest.raises(ValidationError):
        await store.add_report(created.id, ReportCreate(content=content), actor)
    assert await _count(test_db, Report) == 0


async def test_report_unknown_disaster(store):
    with pytest.raises(ResourceNotFoundError):
        await store.add_report(uuid4(), ReportCreate(content="x"), CONTRIBUTOR)
