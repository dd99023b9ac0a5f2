"""Conversation data models.

A conversation is an ordered transcript of role-tagged messages plus the
identity of the user being answered. The last message in the transcript
is the one the client responds to.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """A single chat message in OpenAI wire format.

    Documented roles are system, user, assistant and function. Other roles
    (e.g. ``tool``) are not checked here; the provider rejects what it does
    not accept. Unknown fields (e.g. ``tool_call_id``, ``function_call``)
    are kept and forwarded to the provider untouched.
    """

    model_config = ConfigDict(extra="allow")

    role: str = Field(min_length=1, description="Author role, e.g. system, user, assistant or function")
    content: str | None = Field(default=None, description="Message text")
    name: str | None = Field(default=None, description="Author name, required for function messages")

    def to_openai(self) -> dict[str, Any]:
        """Serialize for the chat completions API, dropping unset fields."""
        return self.model_dump(exclude_none=True)


class UserIdentity(BaseModel):
    """The user a conversation belongs to. ``uid`` scopes all memory access."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str = Field(min_length=1, description="Stable user identifier")
    first_name: str = Field(default="", alias="firstName", description="Display name")


class ConversationInput(BaseModel):
    """Input to a completion request.

    Example:
        >>> conv = ConversationInput.model_validate({
        ...     "messages": [{"role": "user", "content": "I like hiking"}],
        ...     "user": {"uid": "u1", "firstName": "Ada"},
        ... })
        >>> conv.is_new_conversation
        True
    """

    messages: list[Message] = Field(min_length=1, description="Chronological transcript")
    user: UserIdentity

    @property
    def new_message(self) -> Message:
        """The message to respond to (last in the transcript)."""
        return self.messages[-1]

    @property
    def is_new_conversation(self) -> bool:
        """True when the transcript holds only the opening message."""
        return len(self.messages) == 1

    def transcript(self) -> list[dict[str, Any]]:
        """Transcript in chat completions wire format."""
        return [m.to_openai() for m in self.messages]
