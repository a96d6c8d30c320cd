import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from ragdesk.api.deps import get_chat_agent, get_current_user
from ragdesk.core.exceptions import RagdeskError
from ragdesk.schemas.chat import ChatRequest
from ragdesk.services.chat import ChatAgent

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("")
async def chat(
    request: ChatRequest,
    current_user: dict = Depends(get_current_user),
    agent: ChatAgent = Depends(get_chat_agent),
):
    """Answer the last message from the caller's documents as a token stream.

    Query rewriting and retrieval finish before the stream opens, so their
    failures come back as an error status instead of a broken stream.
    """
    conversation = [message.model_dump() for message in request.messages]
    try:
        state = await agent.prepare(conversation, current_user["id"])
    except RagdeskError:
        raise
    except Exception as e:
        logger.error(f"Chat preparation failed for user {current_user['id']}: {e!r}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Search is temporarily unavailable",
        )

    return StreamingResponse(agent.answer(state), media_type="text/event-stream")
