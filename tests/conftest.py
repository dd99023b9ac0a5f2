"""Pytest configuration and shared fixtures."""

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest
from openai.types.chat import ChatCompletionChunk

from config import Config
from orchestrator import ConversationOrchestrator


def make_chunk(content: str | None = None, role: str | None = None, finish_reason: str | None = None):
    """Build a real ChatCompletionChunk."""
    delta = {}
    if content is not None:
        delta["content"] = content
    if role is not None:
        delta["role"] = role
    return ChatCompletionChunk.model_validate({
        "id": "chatcmpl-123",
        "object": "chat.completion.chunk",
        "created": 1677652288,
        "model": "gpt-3.5-turbo-16k",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    })


class FakeStream:
    """Minimal stand-in for openai.AsyncStream."""

    def __init__(self, chunks):
        self._chunks = list(chunks)
        self.close = AsyncMock()

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk


def default_chunks():
    return [
        make_chunk(role="assistant", content=""),
        make_chunk(content="Hello"),
        make_chunk(content=" there"),
        make_chunk(finish_reason="stop"),
    ]


class FakeIndex:
    """In-memory vector index honouring equality filters and cosine ranking."""

    def __init__(self):
        self.records: dict[str, dict] = {}
        self.query_calls: list[dict] = []
        self.upsert_calls: list[list[dict]] = []

    def upsert(self, vectors):
        self.upsert_calls.append(vectors)
        for v in vectors:
            self.records[v["id"]] = v
        return {"upserted_count": len(vectors)}

    @staticmethod
    def _matches_filter(metadata: dict, flt: dict) -> bool:
        for key, cond in flt.items():
            expected = cond["$eq"] if isinstance(cond, dict) else cond
            if metadata.get(key) != expected:
                return False
        return True

    def query(self, vector, filter, top_k, include_metadata):
        self.query_calls.append({
            "vector": vector, "filter": filter, "top_k": top_k, "include_metadata": include_metadata,
        })
        q = np.asarray(vector, dtype=np.float32)
        scored = []
        for rec in self.records.values():
            if not self._matches_filter(rec["metadata"], filter):
                continue
            v = np.asarray(rec["values"], dtype=np.float32)
            score = float(q @ v / (np.linalg.norm(q) * np.linalg.norm(v)))
            scored.append((score, rec))
        scored.sort(key=lambda item: item[0], reverse=True)
        return {"matches": [
            {"id": rec["id"], "score": score, "metadata": dict(rec["metadata"])}
            for score, rec in scored[:top_k]
        ]}


class FakeEmbeddings:
    """Deterministic embeddings: known texts map to fixed vectors."""

    def __init__(self, vectors: dict[str, list[float]] | None = None, dim: int = 4):
        self.vectors = vectors or {}
        self.dim = dim
        self.create = AsyncMock(side_effect=self._create)

    def _create(self, model, input):
        if input in self.vectors:
            values = self.vectors[input]
        else:
            # Stable pseudo-vector per text
            rng = np.random.default_rng(abs(hash(input)) % (2**32))
            values = rng.random(self.dim).tolist()
        return SimpleNamespace(data=[SimpleNamespace(embedding=values, index=0)])


def make_openai(embeddings: FakeEmbeddings | None = None, chunks=None):
    """Fake AsyncOpenAI with embeddings and streaming chat completions."""
    client = MagicMock()
    client.embeddings = embeddings or FakeEmbeddings()
    client.chat.completions.create = AsyncMock(
        side_effect=lambda **kwargs: FakeStream(chunks if chunks is not None else default_chunks())
    )
    return client


@pytest.fixture
def config() -> Config:
    """Provide a valid configuration for tests."""
    return Config(
        openai_api_key="sk-test-key-0000",
        pinecone_api_key="pc-test-key-1111",
        pinecone_environment="us-east-1",
    )


@pytest.fixture
def fake_index() -> FakeIndex:
    return FakeIndex()


@pytest.fixture
def fake_openai():
    return make_openai()


@pytest.fixture
def client(config, fake_openai, fake_index) -> ConversationOrchestrator:
    """Orchestrator wired to in-memory fakes with a fixed clock."""
    return ConversationOrchestrator(
        config,
        openai_client=fake_openai,
        index=fake_index,
        clock=lambda: 1700000000.5,
    )


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo handler changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
