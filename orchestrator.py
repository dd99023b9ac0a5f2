"""Conversation orchestration: memory lookup, memory write, streamed completion.

This module sequences the three remote calls behind every reply:

Flow:
    1. EMBED: Embed the newest message with the fixed embedding model
    2. RECALL: For an ongoing conversation, search the user's past messages
       - Matches found: append one system message quoting them, then stream
    3. REMEMBER: Otherwise store the new message's embedding
    4. STREAM: Request a streamed completion and hand it back untouched

Calls are strictly sequential. Remote failures are logged with the step
that failed and re-raised unchanged; retries are left to the OpenAI SDK's
own ``max_retries`` setting.
"""

import logging
import time
import uuid
from typing import Any, Callable

from openai import AsyncOpenAI
from pinecone import Pinecone

from completion import CompletionStream
from config import Config, DEFAULT_MODEL
from embeddings import EmbeddingModel
from memory import MemoryStore, INDEX_NAME
from models.memory import MemoryMatch
from models.message import ConversationInput
from observability.logging import set_request_context, clear_context
from observability.tracing import trace_operation

logger = logging.getLogger(__name__)

TEMPERATURE = 0.6

MEMORY_PROMPT = (
    "These are the references the user has talked about something similar already:\n"
    "{references}.\n"
    "Use it accordingly as required for the next response, "
    "while acknowledging you remember it (if necessary)."
)


def build_memory_prompt(matches: list[MemoryMatch]) -> str:
    """Build the system hint quoting remembered messages in match order."""
    references = "\n".join(f'"{match.content}"' for match in matches)
    return MEMORY_PROMPT.format(references=references)


class ConversationOrchestrator:
    """Chat client with long-term, per-user memory.

    One instance can serve many concurrent conversations; calls share no
    state beyond the configuration and the memory id generator.

    Example:
        >>> client = ConversationOrchestrator.from_config(Config.load())
        >>> stream = await client.get_completion_stream({
        ...     "messages": [{"role": "user", "content": "I like hiking"}],
        ...     "user": {"uid": "u1", "firstName": "Ada"},
        ... })
        >>> async for fragment in stream:
        ...     print(fragment.content, end="")
    """

    def __init__(
        self,
        config: Config,
        *,
        openai_client: AsyncOpenAI | None = None,
        index: Any = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the client.

        Args:
            config: Client configuration (credentials, chat model)
            openai_client: Pre-built OpenAI client; created from config if omitted
            index: Pre-built memory index handle; opened from config if omitted
            clock: Time source for memory record ids
        """
        self.config = config
        self.model = config.model or DEFAULT_MODEL
        self.initial_prompt = config.initial_prompt or None

        if openai_client is None:
            openai_client = AsyncOpenAI(
                api_key=config.openai_api_key,
                timeout=config.openai_timeout,
                max_retries=config.openai_max_retries,
            )
        self.openai = openai_client

        if index is None:
            logger.info(
                "Opening memory index | index=%s environment=%s",
                INDEX_NAME, config.pinecone_environment,
            )
            index = Pinecone(api_key=config.pinecone_api_key).Index(INDEX_NAME)

        self.embeddings = EmbeddingModel(self.openai)
        self.memory = MemoryStore(index, clock=clock)

    @classmethod
    def from_config(cls, config: Config) -> "ConversationOrchestrator":
        """Create a client with SDK clients built from configuration."""
        return cls(config)

    async def _request_completion(self, messages: list[dict[str, Any]]) -> Any:
        """Open a streamed chat completion."""
        with trace_operation("chat_completion", {"model": self.model, "messages": len(messages)}):
            return await self.openai.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=TEMPERATURE,
                stream=True,
            )

    async def get_completion_stream(
        self,
        conversation: ConversationInput | dict[str, Any],
    ) -> CompletionStream:
        """Answer the last message of a conversation as a completion stream.

        Args:
            conversation: Transcript and user, as a model or plain dict

        Returns:
            CompletionStream tagged with the memories used (if any) and the
            memory record written (if any)

        Raises:
            pydantic.ValidationError: If the conversation is structurally invalid
            openai.OpenAIError: If the embedding or completion call fails
            Exception: Whatever the Pinecone SDK raises for a failed query or upsert
        """
        if not isinstance(conversation, ConversationInput):
            conversation = ConversationInput.model_validate(conversation)

        uid = conversation.user.uid
        new_message = conversation.new_message
        set_request_context(uuid.uuid4().hex[:12], uid)
        logger.info(
            "Completion requested | model=%s messages=%d new_conversation=%s",
            self.model, len(conversation.messages), conversation.is_new_conversation,
        )

        step = "embed"
        try:
            with trace_operation("embed_message", {"user_id": uid}):
                vector = await self.embeddings.encode(new_message.content)

            if not conversation.is_new_conversation:
                step = "search"
                with trace_operation("memory_search", {"user_id": uid}) as attrs:
                    matches = await self.memory.search(vector, uid)
                    attrs["matches"] = len(matches)

                if matches:
                    # Matched turns are not written back to memory
                    logger.info("Recalled memories | matches=%d", len(matches))
                    messages = conversation.transcript() + [
                        {"role": "system", "content": build_memory_prompt(matches)},
                    ]
                    step = "completion"
                    response = await self._request_completion(messages)
                    return CompletionStream(response, memories=matches)

            step = "upsert"
            record = self.memory.build_record(uid, new_message.content, new_message.role, vector)
            with trace_operation("memory_write", {"user_id": uid, "record_id": record.id}):
                await self.memory.remember(record)
            logger.info("Stored memory | id=%s role=%s", record.id, new_message.role)

            step = "completion"
            response = await self._request_completion(conversation.transcript())
            return CompletionStream(response, stored_record_id=record.id)

        except Exception as e:
            logger.error(
                "Completion request failed | step=%s error=%s type=%s",
                step, e, type(e).__name__,
            )
            raise
        finally:
            clear_context()


# Name used by existing integrations
CuroAI = ConversationOrchestrator
