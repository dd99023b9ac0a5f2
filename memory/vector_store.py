"""Long-term conversation memory backed by a Pinecone index.

This module stores one embedding per remembered user message and finds
semantically related past messages for the same user.

Features:
    - All searches are scoped to a single user via a metadata filter
    - Record ids are '<uid>:<epoch millis>' and never reused within a process
    - Blocking SDK calls run in a worker thread so the event loop stays free

Index layout:
    Name: messages-index (shared by all users)
    Metadata: userId, messageContent, messageFrom

Errors from the index (auth, quota, network) are re-raised unchanged
for the caller to log; there is no retry or fallback here.
"""

import asyncio
import logging
import threading
import time
from typing import Any, Callable

import numpy as np

from models.memory import MemoryMatch, MemoryMetadata, MemoryRecord

logger = logging.getLogger(__name__)

INDEX_NAME = "messages-index"
DEFAULT_TOP_K = 10
USER_ROLE = "user"


def _field(obj: Any, name: str) -> Any:
    """Read a field from an SDK response object or its dict form."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def user_filter(user_id: str) -> dict[str, Any]:
    """Metadata filter restricting a search to one user's own messages."""
    return {
        "userId": {"$eq": user_id},
        "messageFrom": {"$eq": USER_ROLE},
    }


class MemoryStore:
    """Pinecone-backed store for message embeddings.

    Example:
        >>> from pinecone import Pinecone
        >>> store = MemoryStore(Pinecone(api_key=...).Index(INDEX_NAME))
        >>> matches = await store.search(vector, user_id="u1")
    """

    def __init__(
        self,
        index: Any,
        index_name: str = INDEX_NAME,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the memory store.

        Args:
            index: Pinecone ``Index`` handle (or any object with query/upsert)
            index_name: Name of the index, used for logging
            clock: Time source in seconds since the epoch
        """
        self.index = index
        self.index_name = index_name
        self._clock = clock
        self._last_millis = 0
        self._id_lock = threading.Lock()

    def next_record_id(self, user_id: str) -> str:
        """Generate a unique record id for a user.

        The id is '<uid>:<epoch millis>'. The timestamp is shared by all
        users and strictly increases: if the clock has not advanced past the
        last id issued, it is bumped by one millisecond so records written in
        the same millisecond never overwrite each other.
        """
        millis = int(self._clock() * 1000)
        with self._id_lock:
            if millis <= self._last_millis:
                millis = self._last_millis + 1
            self._last_millis = millis
        return f"{user_id}:{millis}"

    def build_record(
        self,
        user_id: str,
        content: str | None,
        role: str,
        vector: np.ndarray,
    ) -> MemoryRecord:
        """Build a memory record for a message embedding."""
        return MemoryRecord(
            id=self.next_record_id(user_id),
            values=np.asarray(vector, dtype=np.float32).tolist(),
            metadata=MemoryMetadata(
                user_id=user_id,
                message_content=content,
                message_from=role,
            ),
        )

    async def search(
        self,
        vector: np.ndarray,
        user_id: str,
        top_k: int = DEFAULT_TOP_K,
    ) -> list[MemoryMatch]:
        """Find the user's past messages nearest to a vector.

        Args:
            vector: Query embedding
            user_id: Only this user's messages are considered
            top_k: Maximum number of matches

        Returns:
            Matches in the order the index ranked them
        """
        values = np.asarray(vector, dtype=np.float32).tolist()
        try:
            response = await asyncio.to_thread(
                self.index.query,
                vector=values,
                filter=user_filter(user_id),
                top_k=top_k,
                include_metadata=True,
            )
        except Exception as e:
            logger.debug("Memory search failed | index=%s user=%s error=%s", self.index_name, user_id, e)
            raise

        matches = []
        for item in _field(response, "matches") or []:
            matches.append(MemoryMatch(
                id=_field(item, "id"),
                score=_field(item, "score"),
                metadata=MemoryMetadata.model_validate(_field(item, "metadata") or {}),
            ))

        logger.debug("Memory search | index=%s user=%s matches=%d", self.index_name, user_id, len(matches))
        return matches

    async def remember(self, record: MemoryRecord) -> None:
        """Upsert a single memory record."""
        try:
            await asyncio.to_thread(self.index.upsert, vectors=[record.to_index()])
        except Exception as e:
            logger.debug("Memory write failed | index=%s id=%s error=%s", self.index_name, record.id, e)
            raise
        logger.debug("Stored memory | index=%s id=%s", self.index_name, record.id)
