import os

# Must be set before config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_experience.db")
os.environ.setdefault("VALKEY_HOST", "")
os.environ.setdefault("VALID_TOKENS", "fake-client-token")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_BACKEND_URL", "cache+memory://")
os.environ.setdefault("LOG_FILE", "test_experience_service.log")

import pytest
from fastapi.testclient import TestClient
from data.database import Base, SessionLocal, engine
from main import app
from services.cache import get_mock_valkey_backend, get_valkey_backend


@pytest.fixture(autouse=True, scope="session")
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def valkey_backend():
    backend = get_mock_valkey_backend()
    app.dependency_overrides[get_valkey_backend] = lambda: backend
    yield backend
    app.dependency_overrides.pop(get_valkey_backend, None)

@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer fake-client-token"}

@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
