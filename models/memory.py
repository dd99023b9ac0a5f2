"""Memory record models stored in the vector index.

Metadata keys are camelCase because they are the literal keys stored
with every vector and used in index filters.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MemoryMetadata(BaseModel):
    """Metadata attached to a stored message embedding."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId", description="Owner of the memory")
    message_content: str | None = Field(
        default=None, alias="messageContent", description="Original message text"
    )
    message_from: str = Field(alias="messageFrom", description="Role of the message author")

    def to_index(self) -> dict[str, Any]:
        """Serialize with index key names, omitting missing content."""
        return self.model_dump(by_alias=True, exclude_none=True)


class MemoryRecord(BaseModel):
    """One stored message embedding. Written once, never mutated."""

    id: str = Field(description="Unique record id: '<uid>:<epoch millis>'")
    values: list[float] = Field(description="Embedding vector")
    metadata: MemoryMetadata

    def to_index(self) -> dict[str, Any]:
        """Serialize as an upsert payload entry."""
        return {"id": self.id, "values": self.values, "metadata": self.metadata.to_index()}


class MemoryMatch(BaseModel):
    """A nearest-neighbour hit returned by a memory search."""

    id: str
    score: float | None = Field(default=None, description="Similarity score reported by the index")
    metadata: MemoryMetadata

    @property
    def content(self) -> str:
        """Remembered message text ('' when the record carried none)."""
        return self.metadata.message_content or ""
