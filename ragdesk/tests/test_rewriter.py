"""Tests for conversational query rewriting."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from ragdesk.prompts.system_prompts import QUERY_REWRITE_PROMPT
from ragdesk.services.chat.rewriter import QueryRewriter


@pytest.fixture
def model():
    model = MagicMock()
    model.ainvoke = AsyncMock(return_value=AIMessage(content="Is the refund policy applicable to students?"))
    return model


CONVERSATION = [
    {"role": "user", "content": "Tell me about the refund policy."},
    {"role": "assistant", "content": "Refunds are processed in 30 days."},
    {"role": "user", "content": "Is it applicable to students?"},
]


@pytest.mark.asyncio
async def test_single_message_skips_model(model):
    rewriter = QueryRewriter(model=model)

    assert await rewriter.rewrite([{"role": "user", "content": "What is the budget?"}]) == "What is the budget?"
    model.ainvoke.assert_not_awaited()


@pytest.mark.asyncio
async def test_follow_up_is_rewritten(model):
    rewriter = QueryRewriter(model=model)

    assert await rewriter.rewrite(CONVERSATION) == "Is the refund policy applicable to students?"

    messages = model.ainvoke.call_args.args[0]
    assert messages[0] == SystemMessage(content=QUERY_REWRITE_PROMPT)
    assert isinstance(messages[1], HumanMessage)
    assert isinstance(messages[2], AIMessage)
    assert messages[3].content == "Is it applicable to students?"


@pytest.mark.asyncio
async def test_model_failure_falls_back_to_last_message(model):
    model.ainvoke.side_effect = TimeoutError("model timed out")
    rewriter = QueryRewriter(model=model)

    assert await rewriter.rewrite(CONVERSATION) == "Is it applicable to students?"


@pytest.mark.asyncio
async def test_blank_rewrite_falls_back_to_last_message(model):
    model.ainvoke.return_value = AIMessage(content="   ")
    rewriter = QueryRewriter(model=model)

    assert await rewriter.rewrite(CONVERSATION) == "Is it applicable to students?"
