"""Factories for the OpenAI chat and embedding models."""

import logging
from typing import Optional

from langchain_openai import ChatOpenAI, OpenAIEmbeddings

from ragdesk.core.config import settings
from ragdesk.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _require_api_key() -> str:
    if not settings.OPENAI_API_KEY:
        raise ConfigurationError("OPENAI_API_KEY is not set")
    return settings.OPENAI_API_KEY


def get_chat_model(model: Optional[str] = None, temperature: Optional[float] = None, streaming: bool = False) -> ChatOpenAI:
    """Create a chat model with a bounded request timeout.

    Retries are disabled on the client; callers decide whether a failure
    is retried (ingestion) or surfaced (interactive chat).
    """
    return ChatOpenAI(
        api_key=_require_api_key(),
        model=model or settings.CHAT_MODEL,
        temperature=settings.OPENAI_TEMPERATURE if temperature is None else temperature,
        timeout=settings.MODEL_TIMEOUT_SECONDS,
        max_retries=0,
        streaming=streaming,
    )


def get_embeddings_model() -> OpenAIEmbeddings:
    """Create the embedding model used for both chunks and queries."""
    return OpenAIEmbeddings(
        api_key=_require_api_key(),
        model=settings.EMBEDDING_MODEL,
        dimensions=settings.EMBEDDING_DIMENSIONS,
        request_timeout=settings.MODEL_TIMEOUT_SECONDS,
        max_retries=0,
    )
