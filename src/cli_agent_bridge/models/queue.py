"""Queue artifact models shared with the chat-platform clients."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class QueuedMessage(BaseModel):
    """Inbound message waiting in the holding area."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    channel: str
    sender: str
    sender_id: Optional[str] = Field(default=None, alias="senderId")
    message: str
    timestamp: int = Field(description="Enqueue time, milliseconds since epoch")
    message_id: str = Field(alias="messageId")


class ResponseMessage(BaseModel):
    """Outbound artifact written once a turn resolves."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    channel: str
    sender: str
    message: str
    original_message: str = Field(alias="originalMessage")
    timestamp: int = Field(description="Completion time, milliseconds since epoch")
    message_id: str = Field(alias="messageId")
