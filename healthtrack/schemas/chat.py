# healthtrack/schemas/chat.py
from typing import List, Optional

from pydantic import BaseModel, Field

from healthtrack.models.chat_message import ParticipantType


class ChatMessageIn(BaseModel):
    sender_id: Optional[str] = Field(default=None, alias="senderId")
    sender_type: ParticipantType = Field(alias="senderType")
    receiver_id: Optional[str] = Field(default=None, alias="receiverId")
    receiver_type: ParticipantType = Field(alias="receiverType")
    message: Optional[str] = Field(default=None, max_length=5000)

    class Config:
        populate_by_name = True


class ChatMessageOut(BaseModel):
    id: str
    sender_id: str = Field(serialization_alias="senderId")
    sender_type: ParticipantType = Field(serialization_alias="senderType")
    receiver_id: str = Field(serialization_alias="receiverId")
    receiver_type: ParticipantType = Field(serialization_alias="receiverType")
    message: str
    timestamp: int
    status: str

    class Config:
        from_attributes = True


class ChatHistoryOut(BaseModel):
    messages: List[ChatMessageOut]
