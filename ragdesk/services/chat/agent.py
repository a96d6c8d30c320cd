"""
Chat agent combining query rewriting, retrieval and answer streaming.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, TypedDict

from langgraph.graph import END, StateGraph
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.services.chat.answer import AnswerStreamer
from ragdesk.services.chat.retrieval import RetrievalService, RetrievedChunk, format_context
from ragdesk.services.chat.rewriter import QueryRewriter

logger = logging.getLogger(__name__)


# Agent state schema as TypedDict for LangGraph compatibility
class ChatState(TypedDict, total=False):
    conversation: List[Dict[str, str]]
    user_id: str
    query: str
    chunks: List[RetrievedChunk]
    context: str


class ChatAgent:
    """Answer questions from the caller's visible documents.

    The graph runs ``rewrite_query`` then ``retrieve_context``; the answer
    is streamed separately so retrieval errors surface before any token
    reaches the caller.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        rewriter: Optional[QueryRewriter] = None,
        retrieval: Optional[RetrievalService] = None,
        streamer: Optional[AnswerStreamer] = None,
    ):
        self.db = db_session
        self.rewriter = rewriter or QueryRewriter()
        self.retrieval = retrieval or RetrievalService()
        self.streamer = streamer or AnswerStreamer()

        self.workflow = StateGraph(ChatState)
        self.workflow.add_node("rewrite_query", self._rewrite_query)
        self.workflow.add_node("retrieve_context", self._retrieve_context)
        self.workflow.set_entry_point("rewrite_query")
        self.workflow.add_edge("rewrite_query", "retrieve_context")
        self.workflow.add_edge("retrieve_context", END)
        self.graph = self.workflow.compile()

    async def _rewrite_query(self, state: Dict[str, Any]) -> Dict[str, Any]:
        query = await self.rewriter.rewrite(state["conversation"])
        return {"query": query}

    async def _retrieve_context(self, state: Dict[str, Any]) -> Dict[str, Any]:
        chunks = await self.retrieval.retrieve(self.db, state["query"], state["user_id"])
        return {"chunks": chunks, "context": format_context(chunks)}

    async def prepare(self, conversation: List[Dict[str, str]], user_id: str) -> Dict[str, Any]:
        """Rewrite the query and retrieve context.

        Args:
            conversation: Ordered ``{"role", "content"}`` messages, last one from the user
            user_id: The asking user

        Returns:
            Final graph state with ``query``, ``chunks`` and ``context``
        """
        state: ChatState = {"conversation": list(conversation), "user_id": user_id}
        result = await self.graph.ainvoke(state)
        logger.info(f"Prepared {len(result.get('chunks', []))} context chunks for user {user_id}")
        return result

    def answer(self, state: Dict[str, Any]) -> AsyncIterator[str]:
        """Stream the answer for a prepared state."""
        return self.streamer.stream(state["conversation"], state.get("context", ""))
