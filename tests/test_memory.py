import pytest

from api.models import Role
from api.services.memory import MemoryService
from conftest import FakeEmbedder, SequentialIds

NAMESPACE = "user_15551234567"


@pytest.mark.asyncio
async def test_persist_turn_writes_one_record(memory_service, vector_store):
    record_id = await memory_service.persist_turn(NAMESPACE, "15551234567", "hello", Role.USER)

    assert record_id == "user_1"
    assert len(vector_store.upserts) == 1
    namespace, stored_id, metadata = vector_store.upserts[0]
    assert namespace == NAMESPACE
    assert stored_id == record_id
    assert metadata['role'] == "user"
    assert metadata['text'] == "hello"
    assert metadata['phone_number'] == "15551234567"
    assert metadata['timestamp']


@pytest.mark.asyncio
async def test_persist_turn_failure_returns_none(memory_service, vector_store):
    vector_store.fail_upsert = True
    record_id = await memory_service.persist_turn(NAMESPACE, "15551234567", "hello", Role.USER)
    assert record_id is None


@pytest.mark.asyncio
async def test_retrieve_context_failure_is_empty(memory_service, vector_store):
    vector_store.fail_query = True
    context = await memory_service.retrieve_context(NAMESPACE, "hello")
    assert context.is_empty


@pytest.mark.asyncio
async def test_retrieve_context_scoped_to_namespace(memory_service, vector_store):
    await memory_service.persist_turn(NAMESPACE, "15551234567", "mine", Role.USER)
    await memory_service.persist_turn("user_other", "other", "theirs", Role.USER)

    context = await memory_service.retrieve_context(NAMESPACE, "anything", k=6)

    assert [entry.content for entry in context.entries] == ["mine"]
    assert vector_store.queries == [(NAMESPACE, 6)]


@pytest.mark.asyncio
async def test_retrieve_context_excludes_given_ids(memory_service):
    first = await memory_service.persist_turn(NAMESPACE, "1", "earlier", Role.USER)
    latest = await memory_service.persist_turn(NAMESPACE, "1", "just now", Role.USER)

    context = await memory_service.retrieve_context(NAMESPACE, "just now", exclude_ids=[latest, None])

    assert [entry.id for entry in context.entries] == [first]


@pytest.mark.asyncio
async def test_retrieve_context_truncates(vector_store):
    service = MemoryService(
        vector_store=vector_store,
        embedder=FakeEmbedder(),
        id_generator=SequentialIds(),
        max_context_chars=30,
        max_entry_chars=10
    )
    await service.persist_turn(NAMESPACE, "1", "x" * 50, Role.USER)
    await service.persist_turn(NAMESPACE, "1", "short", Role.ASSISTANT)
    await service.persist_turn(NAMESPACE, "1", "dropped", Role.USER)

    context = await service.retrieve_context(NAMESPACE, "q")

    # Store returns newest first: "dropped", "short", then the long one
    assert context.serialize() == "user: dropped\nassistant: short"


@pytest.mark.asyncio
async def test_retrieve_context_cuts_long_entries(vector_store):
    service = MemoryService(
        vector_store=vector_store,
        embedder=FakeEmbedder(),
        id_generator=SequentialIds(),
        max_entry_chars=10
    )
    await service.persist_turn(NAMESPACE, "1", "y" * 50, Role.USER)

    context = await service.retrieve_context(NAMESPACE, "q")

    assert context.entries[0].content == "y" * 10
