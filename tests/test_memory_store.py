"""Tests for the Pinecone-backed memory store."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import numpy as np
import pytest

from memory import MemoryStore, INDEX_NAME, user_filter
from models.memory import MemoryMetadata, MemoryRecord

from tests.conftest import FakeIndex


@pytest.fixture
def store(fake_index) -> MemoryStore:
    return MemoryStore(fake_index, clock=lambda: 1700000000.25)


# -- Record ids --------------------------------------------------------------


def test_record_id_is_uid_and_millis(store):
    assert store.next_record_id("u1") == "u1:1700000000250"


def test_record_ids_never_repeat_within_a_millisecond(store):
    ids = [store.next_record_id("u1") for _ in range(5)]
    assert len(set(ids)) == 5
    assert ids[-1] == "u1:1700000000254"


def test_record_ids_share_one_timestamp_across_users(store):
    assert store.next_record_id("u1") == "u1:1700000000250"
    assert store.next_record_id("u2") == "u2:1700000000251"


def test_record_ids_follow_clock_when_it_advances():
    ticks = iter([1.0, 1.0, 2.0])
    store = MemoryStore(FakeIndex(), clock=lambda: next(ticks))
    assert [store.next_record_id("u") for _ in range(3)] == ["u:1000", "u:1001", "u:2000"]


def test_build_record(store):
    record = store.build_record("u1", "I like hiking", "user", np.array([0.5, 0.25], dtype=np.float32))

    assert record.id == "u1:1700000000250"
    assert record.values == [0.5, 0.25]
    assert record.to_index()["metadata"] == {
        "userId": "u1",
        "messageContent": "I like hiking",
        "messageFrom": "user",
    }


# -- Search ------------------------------------------------------------------


def test_user_filter_scopes_to_user_messages():
    assert user_filter("abc") == {"userId": {"$eq": "abc"}, "messageFrom": {"$eq": "user"}}


@pytest.mark.asyncio
async def test_search_sends_scoped_query(store, fake_index):
    await store.search(np.array([1.0, 0.0], dtype=np.float32), user_id="u1")

    [call] = fake_index.query_calls
    assert call["vector"] == [1.0, 0.0]
    assert call["filter"] == user_filter("u1")
    assert call["top_k"] == 10
    assert call["include_metadata"] is True


@pytest.mark.asyncio
async def test_search_parses_sdk_response_objects():
    response = SimpleNamespace(matches=[
        SimpleNamespace(id="u1:1", score=0.8, metadata={
            "userId": "u1", "messageContent": "I like hiking", "messageFrom": "user"}),
    ])
    index = MagicMock()
    index.query.return_value = response
    store = MemoryStore(index)

    [match] = await store.search(np.zeros(3), user_id="u1")

    assert match.id == "u1:1"
    assert match.score == 0.8
    assert match.content == "I like hiking"
    assert match.metadata.user_id == "u1"


@pytest.mark.asyncio
async def test_search_with_no_matches(store):
    assert await store.search(np.ones(2), user_id="nobody") == []


@pytest.mark.asyncio
async def test_search_keeps_index_order(store, fake_index):
    fake_index.upsert([
        {"id": "u1:1", "values": [0.0, 1.0], "metadata": {
            "userId": "u1", "messageContent": "far", "messageFrom": "user"}},
        {"id": "u1:2", "values": [1.0, 0.1], "metadata": {
            "userId": "u1", "messageContent": "near", "messageFrom": "user"}},
    ])

    matches = await store.search(np.array([1.0, 0.0]), user_id="u1")

    assert [m.content for m in matches] == ["near", "far"]


@pytest.mark.asyncio
async def test_search_error_propagates():
    index = MagicMock()
    index.query.side_effect = TimeoutError("slow")
    store = MemoryStore(index)

    with pytest.raises(TimeoutError):
        await store.search(np.zeros(2), user_id="u1")


# -- Remember ----------------------------------------------------------------


@pytest.mark.asyncio
async def test_remember_upserts_single_record(store, fake_index):
    record = MemoryRecord(
        id="u1:1",
        values=[0.1, 0.2],
        metadata=MemoryMetadata(user_id="u1", message_content="hello", message_from="user"),
    )

    await store.remember(record)

    assert fake_index.upsert_calls == [[{
        "id": "u1:1",
        "values": [0.1, 0.2],
        "metadata": {"userId": "u1", "messageContent": "hello", "messageFrom": "user"},
    }]]


@pytest.mark.asyncio
async def test_remember_omits_missing_content(store, fake_index):
    record = store.build_record("u1", None, "function", np.zeros(2))

    await store.remember(record)

    assert fake_index.upsert_calls[0][0]["metadata"] == {"userId": "u1", "messageFrom": "function"}


@pytest.mark.asyncio
async def test_remember_error_propagates():
    index = MagicMock()
    index.upsert.side_effect = RuntimeError("quota exceeded")
    store = MemoryStore(index)

    with pytest.raises(RuntimeError, match="quota"):
        await store.remember(store.build_record("u1", "x", "user", np.zeros(2)))


def test_default_index_name():
    assert INDEX_NAME == "messages-index"
    assert MemoryStore(FakeIndex()).index_name == INDEX_NAME
