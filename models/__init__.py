"""Pydantic models for the Curo memory-augmented chat client.

Message:
    One chat message (role, content, name) in OpenAI wire format.

UserIdentity / ConversationInput:
    The transcript plus the user it belongs to.

MemoryRecord / MemoryMetadata / MemoryMatch:
    Stored message embeddings and search hits from the memory index.

CompletionFragment:
    One validated piece of a streamed completion.

Example:
    >>> from models import ConversationInput
    >>> conv = ConversationInput.model_validate({
    ...     "messages": [{"role": "user", "content": "Hi"}],
    ...     "user": {"uid": "u1", "firstName": "Ada"},
    ... })
"""

from models.message import Message, UserIdentity, ConversationInput
from models.memory import MemoryMetadata, MemoryRecord, MemoryMatch
from models.completion import CompletionFragment

__all__ = [
    "Message",
    "UserIdentity",
    "ConversationInput",
    "MemoryMetadata",
    "MemoryRecord",
    "MemoryMatch",
    "CompletionFragment",
]
