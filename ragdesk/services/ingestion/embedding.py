"""Embedding client with bounded retries and a dimensionality check."""

import asyncio
import logging
from typing import List, Optional, Sequence

import openai

from ragdesk.core.config import settings
from ragdesk.core.exceptions import EmbeddingDimensionError, EmbeddingError
from ragdesk.services.llm import get_embeddings_model

logger = logging.getLogger(__name__)

# Errors worth another attempt; anything else fails immediately
TRANSIENT_ERRORS = (
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
    asyncio.TimeoutError,
)


class EmbeddingClient:
    """Turn text into a fixed-length vector using the configured model."""

    def __init__(
        self,
        model=None,
        max_attempts: Optional[int] = None,
        dimensions: Optional[int] = None,
        concurrency: Optional[int] = None,
    ):
        """Initialize the embedding client.

        Args:
            model: LangChain embeddings object; built from settings when omitted
            max_attempts: Attempts per text before giving up
            dimensions: Expected vector size
            concurrency: Maximum embedding calls in flight for ``embed_many``
        """
        self._model = model
        self.max_attempts = max_attempts or settings.EMBEDDING_MAX_ATTEMPTS
        self.dimensions = dimensions or settings.EMBEDDING_DIMENSIONS
        self.concurrency = concurrency or settings.EMBEDDING_CONCURRENCY

    @property
    def model(self):
        if self._model is None:
            self._model = get_embeddings_model()
        return self._model

    async def embed(self, text: str) -> List[float]:
        """Embed a single text.

        Raises:
            EmbeddingError: If every attempt failed with a transient error
            EmbeddingDimensionError: If the model returns the wrong vector size
        """
        last_error: Optional[Exception] = None
        for attempt in range(self.max_attempts):
            if attempt > 0:
                await asyncio.sleep(1 * attempt)  # Progressive backoff
                logger.info(f"Retrying embedding (attempt {attempt+1}/{self.max_attempts})")
            try:
                vector = await asyncio.wait_for(
                    self.model.aembed_query(text),
                    timeout=settings.MODEL_TIMEOUT_SECONDS,
                )
            except TRANSIENT_ERRORS as e:
                last_error = e
                logger.warning(f"Embedding attempt {attempt+1} failed: {e!r}")
                continue

            if len(vector) != self.dimensions:
                raise EmbeddingDimensionError(self.dimensions, len(vector))
            return list(vector)

        logger.error(f"Embedding failed after {self.max_attempts} attempts: {last_error!r}")
        raise EmbeddingError(f"Embedding failed after {self.max_attempts} attempts") from last_error

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed several texts with bounded parallelism, preserving order.

        The first failure cancels every other call, in flight or waiting,
        before propagating to the caller.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(text: str) -> List[float]:
            async with semaphore:
                return await self.embed(text)

        tasks = [asyncio.ensure_future(_bounded(text)) for text in texts]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
