"""Doctor/patient message persistence.

Live delivery is handled by the socket layer; these endpoints store each
message and serve a pair's history.
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from healthtrack.db.session import get_db, store_guard
from healthtrack.models.chat_message import ChatMessage
from healthtrack.schemas.chat import ChatHistoryOut, ChatMessageIn, ChatMessageOut
from healthtrack.utils.exceptions import MissingInput

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = logging.getLogger("healthtrack")


@router.post("/messages", response_model=ChatMessageOut, status_code=status.HTTP_201_CREATED)
def send_message(payload: ChatMessageIn, db: Session = Depends(get_db)):
    sender_id = (payload.sender_id or "").strip()
    receiver_id = (payload.receiver_id or "").strip()
    text = (payload.message or "").strip()
    if not sender_id or not receiver_id or not text:
        raise MissingInput("Missing fields")

    with store_guard(db, "send_message"):
        msg = ChatMessage(
            sender_id=sender_id,
            sender_type=payload.sender_type,
            receiver_id=receiver_id,
            receiver_type=payload.receiver_type,
            message=text,
            timestamp=int(time.time() * 1000),
            status="sent",
        )
        db.add(msg)
        db.commit()
        db.refresh(msg)
    logger.info({"function": "send_message", "message_id": msg.id})
    return msg


@router.get("/messages", response_model=ChatHistoryOut)
def get_conversation(
    user_a: str = Query(..., alias="userA"),
    user_b: str = Query(..., alias="userB"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    between = or_(
        and_(ChatMessage.sender_id == user_a, ChatMessage.receiver_id == user_b),
        and_(ChatMessage.sender_id == user_b, ChatMessage.receiver_id == user_a),
    )
    with store_guard(db, "get_conversation"):
        newest = (
            db.query(ChatMessage)
            .filter(between)
            .order_by(ChatMessage.timestamp.desc(), ChatMessage.created_at.desc())
            .limit(limit)
            .all()
        )
    # Oldest first within the page
    return {"messages": list(reversed(newest))}
