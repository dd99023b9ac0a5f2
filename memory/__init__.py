"""Long-term conversation memory.

This package stores message embeddings in a Pinecone index and retrieves
a user's semantically related past messages.

MemoryStore:
    Pinecone-backed store with per-user scoped search and upsert.

INDEX_NAME:
    The shared index all memories live in ("messages-index").

Requirements:
    pip install pinecone

Example:
    >>> from memory import MemoryStore
    >>> store = MemoryStore(index)
    >>> matches = await store.search(vector, user_id="u1")
"""

from memory.vector_store import MemoryStore, INDEX_NAME, DEFAULT_TOP_K, user_filter

__all__ = [
    "MemoryStore",
    "INDEX_NAME",
    "DEFAULT_TOP_K",
    "user_filter",
]
