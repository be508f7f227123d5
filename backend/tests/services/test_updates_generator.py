"""UpdatesGenerator - cache-checked official updates with degraded fallback."""

from uuid import uuid4

import pytest

from app.core.domain_types import ResultSource
from app.core.errors import ResourceNotFoundError, UpstreamError
from app.schemas.disaster import DisasterCreate
from app.services.updates_generator import UpdatesGenerator, build_updates_prompt

from tests.services.fakes import FakeTextProvider

FENCED = (
    "```json\n"
    '[{"title": "Shelters open at Miami Arena", "source": "Red Cross", '
    '"url": "https://redcross.org/miami"}]\n'
    "```"
)


async def _disaster(store):
    return await store.create_disaster(DisasterCreate(
        title="Flood A", location_name="Miami, FL",
        tags=["flood", "relief"], owner_id="netrunnerX",
    ))


def test_prompt_mentions_title_tags_and_fields():
    prompt = build_updates_prompt("Flood A", ["flood", "relief"])
    assert "Flood A" in prompt
    assert "flood, relief" in prompt
    assert "'title', 'source', and 'url'" in prompt
    assert "JSON array with 1" in prompt


async def test_fenced_response_is_parsed(test_db, cache, store):
    disaster = await _disaster(store)
    generator = UpdatesGenerator(test_db, cache, FakeTextProvider(text=FENCED))

    result = await generator.generate(disaster.id)

    assert result.source == ResultSource.AI
    assert result.updates[0].title == "Shelters open at Miami Arena"
    assert result.updates[0].source == "Red Cross"


async def test_garbage_yields_empty_list_and_is_cached(test_db, cache, store):
    disaster = await _disaster(store)
    provider = FakeTextProvider(text="I'm not able to browse the web.")
    generator = UpdatesGenerator(test_db, cache, provider)

    first = await generator.generate(disaster.id)
    second = await generator.generate(disaster.id)

    assert first.updates == [] and first.source == ResultSource.AI
    assert second.updates == [] and second.source == ResultSource.CACHE
    assert len(provider.generate_calls) == 1


async def test_provider_failure_degrades_to_empty(test_db, cache, store):
    disaster = await _disaster(store)
    provider = FakeTextProvider(error=UpstreamError("anthropic", "timeout", "timeout"))

    result = await UpdatesGenerator(test_db, cache, provider).generate(disaster.id)

    assert result.source == ResultSource.AI
    assert result.updates == []


async def test_unknown_disaster(test_db, cache):
    with pytest.raises(ResourceNotFoundError):
        await UpdatesGenerator(test_db, cache, FakeTextProvider()).generate(uuid4())
