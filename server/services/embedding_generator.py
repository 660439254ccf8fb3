"""
Embedding Generator

Generates embeddings for content items using OpenAI's API (async client).
One call embeds a whole batch; retries are handled by the ingestion pipeline's
back-off envelope, so the SDK's own retries are disabled.

Usage:
    generator = EmbeddingGenerator(api_key="sk-...")
    vectors = await generator.embed_batch(["Title: ...", "Title: ..."])
"""

import logging
from typing import List, Optional, Sequence

import openai
from openai import AsyncOpenAI

from recommender.embedding import EMBEDDING_DIMENSIONS, EMBEDDING_MODEL
from recommender.errors import ConfigurationError, EmbeddingTimeout, RateLimited

logger = logging.getLogger(__name__)


class EmbeddingGenerator:
    """
    Batch text embedding via OpenAI's embeddings endpoint.

    Vendor errors are translated: RateLimitError -> RateLimited,
    APITimeoutError -> EmbeddingTimeout. Anything else propagates unchanged.
    """

    DEFAULT_MODEL = EMBEDDING_MODEL
    DEFAULT_DIMENSIONS = EMBEDDING_DIMENSIONS
    DEFAULT_TIMEOUT = 60.0  # seconds

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        dimensions: int = DEFAULT_DIMENSIONS,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Args:
            api_key: OpenAI API key (ServerConfig.openai_api_key)
            model: Embedding model to use
            dimensions: Embedding dimensions
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key
        self.model = model
        self.dimensions = dimensions
        self.timeout = timeout
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create the OpenAI client."""
        if not self.api_key:
            raise ConfigurationError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable "
                "or pass api_key to EmbeddingGenerator."
            )
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    async def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Generate embeddings for a batch of texts.

        Returns:
            One vector per input text, in input order.
        """
        if not texts:
            return []
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=list(texts),
                dimensions=self.dimensions,
            )
        except openai.RateLimitError as e:
            logger.warning("[OpenAI] embeddings rate limited (%d texts)", len(texts))
            raise RateLimited(str(e)) from e
        except openai.APITimeoutError as e:
            logger.warning("[OpenAI] embeddings request timed out (%d texts)", len(texts))
            raise EmbeddingTimeout(str(e)) from e
        # The API returns data with an index; keep input order regardless of response order
        data = sorted(response.data, key=lambda d: d.index)
        return [item.embedding for item in data]


def check_openai_available(api_key: Optional[str]) -> tuple[bool, str]:
    """
    Check if OpenAI is configured.

    Returns:
        (is_available, message)
    """
    if not api_key:
        return False, "OPENAI_API_KEY environment variable not set"
    return True, "OpenAI configured and ready"
