# healthtrack/models/__init__.py
from healthtrack.db.session import Base, engine, SessionLocal

# Import model modules so SQLAlchemy registers all mappers.
from . import lab_record  # noqa: F401
from . import chat_message  # noqa: F401
from . import bmi_record  # noqa: F401


def init_db() -> None:
    """Create tables if they don't exist."""
    Base.metadata.create_all(bind=engine)
