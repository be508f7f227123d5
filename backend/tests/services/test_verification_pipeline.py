"""VerificationPipeline - cache-checked streamed image analysis.

Invariants:
    - cache hit -> provider invoked zero times, source=cache
    - miss -> fragments joined in order, cached, report status persisted
    - any failure -> fixed failure text, source=error, status still pending
"""

from datetime import timedelta

from sqlalchemy import select

from app.core.domain_types import (
    Actor, CacheNamespace, ResultSource, VERIFICATION_FAILED,
)
from app.core.errors import UpstreamError
from app.models.report import Report
from app.schemas.disaster import DisasterCreate
from app.schemas.report import ReportCreate
from app.services.record_store import ReportStatusRepository
from app.services.verification_pipeline import VERIFY_PROMPT, VerificationPipeline

from tests.services.fakes import FakeImageFetcher, FakeTextProvider


async def _seed_report(store):
    disaster = await store.create_disaster(DisasterCreate(
        title="Flood A", location_name="Miami, FL", tags=["flood"], owner_id="netrunnerX",
    ))
    created = await store.add_report(
        disaster.id,
        ReportCreate(content="Photo of street", image_url="https://img.example/a.jpg"),
        Actor(id="citizen1"),
    )
    return created.report_id


async def _status(db, report_id) -> str:
    db.expire_all()
    row = (await db.execute(select(Report).where(Report.id == report_id))).scalar_one()
    return row.verification_status


def _pipeline(test_db, cache, provider, fetcher=None):
    return VerificationPipeline(
        cache, provider, fetcher or FakeImageFetcher(), ReportStatusRepository(test_db),
    )


async def test_cache_hit_never_calls_provider(test_db, cache, store):
    report_id = await _seed_report(store)
    await cache.put(CacheNamespace.VERIFY, report_id, "Previously verified")
    provider = FakeTextProvider(fragments=["should", "not", "run"])
    fetcher = FakeImageFetcher()

    result = await _pipeline(test_db, cache, provider, fetcher).verify(
        "https://img.example/a.jpg", report_id,
    )

    assert result.source == ResultSource.CACHE
    assert result.result == "Previously verified"
    assert provider.call_count == 0
    assert fetcher.calls == []


async def test_live_result_accumulates_in_order(test_db, cache, store):
    report_id = await _seed_report(store)
    provider = FakeTextProvider(fragments=["This ", "appears ", "real."])
    fetcher = FakeImageFetcher(data=b"jpeg-bytes", media_type="image/jpeg")

    result = await _pipeline(test_db, cache, provider, fetcher).verify(
        "https://img.example/a.jpg", report_id,
    )

    assert result.source == ResultSource.LIVE
    assert result.result == "This appears real."
    prompt, image = provider.stream_calls[0]
    assert prompt == VERIFY_PROMPT
    assert image.data == b"jpeg-bytes"
    assert await _status(test_db, report_id) == "This appears real."
    hit = await cache.get(CacheNamespace.VERIFY, report_id)
    assert hit.value == "This appears real."


async def test_second_call_is_served_from_cache(test_db, cache, store, clock):
    report_id = await _seed_report(store)
    provider = FakeTextProvider(fragments=["ok"])
    pipeline = _pipeline(test_db, cache, provider)

    await pipeline.verify("https://img.example/a.jpg", report_id)
    clock.advance(timedelta(minutes=30))
    again = await pipeline.verify("https://img.example/a.jpg", report_id)

    assert again.source == ResultSource.CACHE
    assert len(provider.stream_calls) == 1


async def test_fetch_failure_leaves_report_pending(test_db, cache, store):
    report_id = await _seed_report(store)
    fetcher = FakeImageFetcher(error=UpstreamError("image_host", "404", "http_status"))
    provider = FakeTextProvider(fragments=["x"])

    result = await _pipeline(test_db, cache, provider, fetcher).verify("bad", report_id)

    assert result.source == ResultSource.ERROR
    assert result.result == VERIFICATION_FAILED
    assert provider.call_count == 0
    assert await _status(test_db, report_id) == "pending"


async def test_mid_stream_failure_commits_nothing(test_db, cache, store):
    report_id = await _seed_report(store)
    provider = FakeTextProvider(fragments=["partial ", "text"], fail_after=1)

    result = await _pipeline(test_db, cache, provider).verify("u", report_id)

    assert result.source == ResultSource.ERROR
    assert await cache.get(CacheNamespace.VERIFY, report_id) is None
    assert await _status(test_db, report_id) == "pending"


async def test_unexpected_error_is_absorbed(test_db, cache, store):
    report_id = await _seed_report(store)
    provider = FakeTextProvider(error=RuntimeError("boom"))

    result = await _pipeline(test_db, cache, provider).verify("u", report_id)

    assert result.source == ResultSource.ERROR
    assert await _status(test_db, report_id) == "pending"


async def test_failure_is_not_retried(test_db, cache, store):
    report_id = await _seed_report(store)
    provider = FakeTextProvider(error=UpstreamError("anthropic", "overloaded"))

    await _pipeline(test_db, cache, provider).verify("u", report_id)

    assert len(provider.stream_calls) == 1
