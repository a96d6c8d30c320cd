"""Tests for the chat agent graph."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from ragdesk.services.chat.agent import ChatAgent
from ragdesk.services.chat.retrieval import RetrievedChunk

CONVERSATION = [
    {"role": "user", "content": "Tell me about the Q4 plan."},
    {"role": "assistant", "content": "It covers hiring and budget."},
    {"role": "user", "content": "How much is it?"},
]


@pytest.fixture
def rewriter():
    rewriter = MagicMock()
    rewriter.rewrite = AsyncMock(return_value="What is the Q4 budget?")
    return rewriter


@pytest.fixture
def retrieval():
    retrieval = MagicMock()
    retrieval.retrieve = AsyncMock(
        return_value=[
            RetrievedChunk("The total budget for Q4 is $50,000.", "budget.pdf", "https://l/1", "Private", 0.1)
        ]
    )
    return retrieval


@pytest.fixture
def streamer():
    streamer = MagicMock()

    async def stream(conversation, context):
        yield "answer"

    streamer.stream = MagicMock(side_effect=stream)
    return streamer


@pytest.mark.asyncio
async def test_prepare_rewrites_then_retrieves(rewriter, retrieval, streamer):
    db = MagicMock()
    agent = ChatAgent(db, rewriter=rewriter, retrieval=retrieval, streamer=streamer)

    state = await agent.prepare(CONVERSATION, "user-1")

    rewriter.rewrite.assert_awaited_once_with(CONVERSATION)
    retrieval.retrieve.assert_awaited_once_with(db, "What is the Q4 budget?", "user-1")
    assert state["query"] == "What is the Q4 budget?"
    assert state["context"] == (
        "[Source: budget.pdf | Link: https://l/1 | Visibility: Private]\n"
        "Content: The total budget for Q4 is $50,000."
    )


@pytest.mark.asyncio
async def test_answer_streams_with_prepared_context(rewriter, retrieval, streamer):
    agent = ChatAgent(MagicMock(), rewriter=rewriter, retrieval=retrieval, streamer=streamer)

    state = await agent.prepare(CONVERSATION, "user-1")
    tokens = [token async for token in agent.answer(state)]

    assert tokens == ["answer"]
    streamer.stream.assert_called_once_with(CONVERSATION, state["context"])


@pytest.mark.asyncio
async def test_retrieval_errors_propagate(rewriter, retrieval, streamer):
    retrieval.retrieve.side_effect = RuntimeError("database unavailable")
    agent = ChatAgent(MagicMock(), rewriter=rewriter, retrieval=retrieval, streamer=streamer)

    with pytest.raises(RuntimeError):
        await agent.prepare(CONVERSATION, "user-1")
    streamer.stream.assert_not_called()
