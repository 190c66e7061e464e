import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, DateTime, Enum as SAEnum, String, text
from sqlalchemy.orm import Mapped, mapped_column

from healthtrack.db.session import Base, utcnow
from healthtrack.utils.encryption import EncryptedText


class ParticipantType(str, Enum):
    DOCTOR = "doctor"
    PATIENT = "patient"


_participant_type = SAEnum(
    ParticipantType, name="participanttype", values_callable=lambda e: [m.value for m in e]
)


class ChatMessage(Base):
    """One relayed doctor/patient message; delivery itself happens elsewhere."""

    __tablename__ = "chat_messages"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    sender_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    sender_type: Mapped[ParticipantType] = mapped_column(
        _participant_type, nullable=False
    )
    receiver_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    receiver_type: Mapped[ParticipantType] = mapped_column(
        _participant_type, nullable=False
    )
    message: Mapped[str] = mapped_column(EncryptedText, nullable=False)
    # epoch milliseconds, as the chat clients expect
    timestamp: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="sent")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
