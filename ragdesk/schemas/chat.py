from typing import List, Literal

from pydantic import BaseModel, Field, field_validator


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)


class ChatRequest(BaseModel):
    """A conversation whose last message is the question to answer."""

    messages: List[ChatMessage] = Field(..., min_length=1)

    @field_validator("messages")
    @classmethod
    def last_message_from_user(cls, messages: List[ChatMessage]) -> List[ChatMessage]:
        if messages and messages[-1].role != "user":
            raise ValueError("The last message must come from the user")
        return messages
