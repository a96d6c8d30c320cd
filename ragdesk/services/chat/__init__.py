from ragdesk.services.chat.agent import ChatAgent
from ragdesk.services.chat.answer import AnswerStreamer
from ragdesk.services.chat.retrieval import RetrievalService, RetrievedChunk
from ragdesk.services.chat.rewriter import QueryRewriter

__all__ = ["AnswerStreamer", "ChatAgent", "QueryRewriter", "RetrievalService", "RetrievedChunk"]
