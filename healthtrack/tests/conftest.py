import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Keep the app's own engine off Postgres and use a throwaway encryption key
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENCRYPTION_SECRET", "test-only-secret")

# `import healthtrack` from a plain checkout, without an install
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from healthtrack.app import app  # noqa: E402
from healthtrack.db.session import Base, get_db  # noqa: E402


# One in-memory database for the whole run; StaticPool keeps the single
# connection alive across the threadpool used by sync routes.
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


def _test_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _test_db


@pytest.fixture(scope="session", autouse=True)
def schema():
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(autouse=True)
def empty_tables():
    yield
    with test_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(autouse=True)
def fresh_limiter():
    app.state.limiter.reset()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db_session():
    yield from _test_db()


@pytest.fixture
def fake_pdf(monkeypatch):
    """Swap pypdf's reader for one whose pages return the given texts.

    Call the fixture value with one string per page; with no arguments the
    document has zero pages.
    """
    import healthtrack.services.pdf_text as pdf_text

    class FakePage:
        def __init__(self, text):
            self.text = text

        def extract_text(self):
            return self.text

    def install(*page_texts):
        class FakeReader:
            def __init__(self, stream, *args, **kwargs):
                self.pages = [FakePage(t) for t in page_texts]

        monkeypatch.setattr(pdf_text, "PdfReader", FakeReader)

    return install
