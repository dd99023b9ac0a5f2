"""Streamed completion result returned by the orchestrator.

CompletionStream wraps the provider's chunk stream and tags it with the
memory context that shaped the request. The provider response is checked
once on construction; each chunk is validated into a CompletionFragment
as it arrives. Nothing is buffered.

Usage:
    >>> stream = await client.get_completion_stream(conversation)
    >>> async with stream:
    ...     async for fragment in stream:
    ...         print(fragment.content, end="")
"""

import logging
from typing import Any, AsyncIterator

from models.completion import CompletionFragment
from models.memory import MemoryMatch

logger = logging.getLogger(__name__)


class CompletionStream:
    """A finite, single-use stream of completion fragments.

    Attributes:
        memories: Matches injected into the request ([] if none)
        stored_record_id: Id of the memory written for this turn, if any
    """

    def __init__(
        self,
        response: Any,
        memories: list[MemoryMatch] | None = None,
        stored_record_id: str | None = None,
    ):
        """Wrap a provider stream.

        Args:
            response: ``AsyncStream[ChatCompletionChunk]`` from the OpenAI SDK
            memories: Memory matches appended to the transcript
            stored_record_id: Memory record written before the request

        Raises:
            TypeError: If the response is not an async iterable stream
        """
        if not hasattr(response, "__aiter__"):
            raise TypeError(
                f"Expected a streaming completion response, got {type(response).__name__}"
            )
        self._response = response
        self.memories = list(memories or [])
        self.stored_record_id = stored_record_id
        self._consumed = False

    @property
    def augmented(self) -> bool:
        """True when remembered messages were added to the request."""
        return bool(self.memories)

    def _claim(self) -> None:
        if self._consumed:
            raise RuntimeError("Completion stream has already been consumed")
        self._consumed = True

    async def chunks(self) -> AsyncIterator[Any]:
        """Yield the provider's raw chunks."""
        self._claim()
        async for chunk in self._response:
            yield chunk

    async def _fragments(self) -> AsyncIterator[CompletionFragment]:
        async for chunk in self.chunks():
            yield CompletionFragment.from_chunk(chunk)

    def __aiter__(self) -> AsyncIterator[CompletionFragment]:
        return self._fragments()

    async def collect_text(self) -> str:
        """Drain the stream and return the concatenated text."""
        parts = [fragment.content async for fragment in self]
        return "".join(parts)

    async def aclose(self) -> None:
        """Close the underlying HTTP stream."""
        close = getattr(self._response, "close", None)
        if close is not None:
            result = close()
            if hasattr(result, "__await__"):
                await result
        logger.debug("Completion stream closed")

    async def __aenter__(self) -> "CompletionStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
