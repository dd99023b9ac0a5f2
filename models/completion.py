"""Completion fragment model.

Each chunk streamed by the chat completions API is validated into a
CompletionFragment at the client boundary so callers never touch the
provider's chunk objects directly.
"""

from typing import Any

from pydantic import BaseModel, Field


class CompletionFragment(BaseModel):
    """One incremental piece of a streamed completion."""

    content: str = Field(default="", description="Text delta ('' for role/finish-only chunks)")
    role: str | None = Field(default=None, description="Role announced by the first chunk")
    finish_reason: str | None = Field(default=None, description="Set on the final chunk")
    index: int = Field(default=0, description="Choice index")
    model: str | None = Field(default=None, description="Model that produced the chunk")

    @classmethod
    def from_chunk(cls, chunk: Any) -> "CompletionFragment":
        """Build a fragment from a ``ChatCompletionChunk`` (or its dict form).

        Chunks without choices (e.g. trailing usage chunks) produce an
        empty fragment.
        """
        data = chunk.model_dump() if hasattr(chunk, "model_dump") else dict(chunk)
        choices = data.get("choices") or []
        if not choices:
            return cls(model=data.get("model"))

        choice = choices[0]
        delta = choice.get("delta") or {}
        return cls(
            content=delta.get("content") or "",
            role=delta.get("role"),
            finish_reason=choice.get("finish_reason"),
            index=choice.get("index") or 0,
            model=data.get("model"),
        )

    @property
    def is_final(self) -> bool:
        return self.finish_reason is not None
