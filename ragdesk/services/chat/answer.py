"""Stream a grounded, cited answer from the chat model."""

import logging
from typing import AsyncIterator, Dict, Sequence

from langchain_core.messages import SystemMessage

from ragdesk.prompts.system_prompts import ANSWER_SYSTEM_PROMPT, REFUSAL_MESSAGE
from ragdesk.services.chat.rewriter import to_langchain_messages
from ragdesk.services.llm import get_chat_model

logger = logging.getLogger(__name__)


def build_system_prompt(context: str) -> str:
    return ANSWER_SYSTEM_PROMPT.format(refusal=REFUSAL_MESSAGE, context=context)


class AnswerStreamer:
    """Answer from retrieved context only, token by token."""

    def __init__(self, model=None):
        self._model = model

    @property
    def model(self):
        if self._model is None:
            self._model = get_chat_model(streaming=True)
        return self._model

    async def stream(self, conversation: Sequence[Dict[str, str]], context: str) -> AsyncIterator[str]:
        """Yield answer tokens as the model produces them.

        With no context at all the refusal message is returned without a
        model call. A failure mid-stream ends the stream; tokens already
        sent cannot be taken back, so nothing is retried.
        """
        if not context.strip():
            logger.info("No context retrieved, refusing")
            yield REFUSAL_MESSAGE
            return

        messages = [SystemMessage(content=build_system_prompt(context)), *to_langchain_messages(conversation)]
        try:
            async for chunk in self.model.astream(messages):
                if isinstance(chunk.content, str) and chunk.content:
                    yield chunk.content
        except Exception as e:
            logger.error(f"Answer stream interrupted: {e!r}")
