"""Embedding model management for conversation memory.

This module provides text embeddings using the OpenAI embeddings endpoint.
Embeddings are the query and storage key for the memory index.

Model: text-embedding-ada-002
    - 1536 dimensions
    - Fixed regardless of the chat model in use, so vectors stored by
      earlier conversations stay comparable

Usage:
    >>> from embeddings import EmbeddingModel
    >>> embeddings = EmbeddingModel(AsyncOpenAI(api_key=...))
    >>> vector = await embeddings.encode("I like hiking")
"""

import logging

import numpy as np
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

# Model configuration
MODEL_NAME = "text-embedding-ada-002"
EMBEDDING_DIM = 1536


class EmbeddingModel:
    """Wrapper for the OpenAI embeddings API.

    Attributes:
        client: Async OpenAI client shared with the chat completions calls
        model_name: Embedding model identifier
        dim: Embedding dimension size
    """

    def __init__(self, client: AsyncOpenAI, model_name: str = MODEL_NAME):
        """Initialize embedding model wrapper.

        Args:
            client: Configured AsyncOpenAI client
            model_name: OpenAI embedding model identifier
        """
        self.client = client
        self.model_name = model_name
        self.dim = EMBEDDING_DIM

    async def encode(self, text: str | None) -> np.ndarray:
        """Encode a single text string to an embedding vector.

        The text is forwarded as-is; the API rejects empty or missing input
        and that error propagates to the caller.

        Args:
            text: Input text to encode

        Returns:
            numpy array of shape (dim,) with float32 values
        """
        response = await self.client.embeddings.create(model=self.model_name, input=text)
        embedding = np.asarray(response.data[0].embedding, dtype=np.float32)
        logger.debug("Embedded text | model=%s dim=%d", self.model_name, embedding.shape[0])
        return embedding
