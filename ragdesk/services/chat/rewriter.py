"""Rewrite the last turn of a conversation into a standalone search query."""

import logging
from typing import Dict, List, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from ragdesk.core.config import settings
from ragdesk.prompts.system_prompts import QUERY_REWRITE_PROMPT
from ragdesk.services.llm import get_chat_model

logger = logging.getLogger(__name__)


def to_langchain_messages(conversation: Sequence[Dict[str, str]]) -> List[BaseMessage]:
    """Convert ``{"role", "content"}`` dicts to LangChain messages."""
    messages: List[BaseMessage] = []
    for message in conversation:
        if message["role"] == "assistant":
            messages.append(AIMessage(content=message["content"]))
        else:
            messages.append(HumanMessage(content=message["content"]))
    return messages


class QueryRewriter:
    """Resolve follow-up questions against earlier turns."""

    def __init__(self, model=None):
        self._model = model

    @property
    def model(self):
        if self._model is None:
            self._model = get_chat_model(model=settings.QUERY_REWRITE_MODEL, temperature=0)
        return self._model

    async def rewrite(self, conversation: Sequence[Dict[str, str]]) -> str:
        """Return a standalone search query for the last message.

        A single-message conversation is returned as is. Model failures
        fall back to the raw last message.
        """
        last_message = conversation[-1]["content"]
        if len(conversation) == 1:
            return last_message

        try:
            response = await self.model.ainvoke(
                [SystemMessage(content=QUERY_REWRITE_PROMPT), *to_langchain_messages(conversation)]
            )
        except Exception as e:
            logger.warning(f"Query rewrite failed, using last message: {e!r}")
            return last_message

        query = response.content.strip() if isinstance(response.content, str) else ""
        if not query:
            logger.warning("Query rewrite returned nothing, using last message")
            return last_message

        logger.info(f"Rewrote query: '{last_message}' -> '{query}'")
        return query
