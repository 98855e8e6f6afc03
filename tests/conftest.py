import os
import tempfile

# point the app at a throwaway SQLite file before anything imports settings
_TMP = tempfile.mkdtemp(prefix="funnelhq-tests-")
os.environ.setdefault("DB_URL", f"sqlite:///{_TMP}/test.db")
os.environ.setdefault("AUTH_DEMO", "true")

import pytest
from fastapi.testclient import TestClient

from funnelhq.main import app
from funnelhq.shared.db import Base, engine, SessionLocal
from funnelhq.shared.config import settings


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def demo_settings():
    """Restore demo-auth settings a test may have changed."""
    saved = settings.model_dump()
    yield settings
    for key, value in saved.items():
        setattr(settings, key, value)
