import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, String, text
from sqlalchemy.orm import Mapped, mapped_column

from healthtrack.db.session import Base, utcnow


class BmiRecord(Base):
    __tablename__ = "bmi_records"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    height: Mapped[float] = mapped_column(Float, nullable=False)  # cm
    weight: Mapped[float] = mapped_column(Float, nullable=False)  # kg
    bmi: Mapped[float] = mapped_column(Float, nullable=False)
    date: Mapped[str] = mapped_column(String(40), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
