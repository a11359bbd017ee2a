import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="together-tests-")

# config.py reads the environment at import time
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["LOG_DIR"] = _TMP
os.environ["AUTH_TRUST_USER_HEADER"] = "true"
os.environ["PUSH_NOTIFICATIONS_ENABLED"] = "false"
os.environ["FIREBASE_CREDENTIALS_PATH"] = os.path.join(_TMP, "missing-service-account.json")

import pytest
from fastapi.testclient import TestClient

import models  # noqa: F401
from database import Base, SessionLocal, engine
from services import post_service, user_service


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from main import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make(uid, **kwargs):
        return user_service.create_user(db, uid=uid, username=kwargs.pop("username", uid), **kwargs)
    return _make


@pytest.fixture
def make_post(db):
    def _make(author_id, **kwargs):
        kwargs.setdefault("prompt", "a watercolor fox in the snow")
        kwargs.setdefault("media_url", "https://cdn.example.com/posts/fox.png")
        return post_service.create_post(db, author_id, **kwargs)
    return _make
