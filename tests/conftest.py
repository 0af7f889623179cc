import os
import tempfile

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(tempfile.gettempdir(), 'acv_portal_test.db')}")
os.environ.setdefault("AUTO_CREATE_DB", "false")
os.environ.setdefault("RATE_LIMIT", "10000/minute")
os.environ.setdefault("SESSION_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal.db import Base, build_engine, get_db
from portal.main import app
from portal.models.models import User


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    db = Session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(engine):
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    def _get_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def staff_user(db_session):
    user = User(user_id="asha", password="secret123")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_client(client, staff_user):
    r = client.post("/api/login", json={"userId": "asha", "password": "secret123"})
    assert r.status_code == 200, r.text
    return client


def ticket_payload(**overrides):
    body = {
        "date": "2025-03-14",
        "projectType": "IT Support",
        "receivedBy": "Ravi",
        "siteName": "Harbor Plaza",
        "contactPerson": "Meera Iyer",
        "mobile": "9876543210",
        "address": "12 Harbor Road",
        "issue": "Router keeps rebooting",
    }
    body.update(overrides)
    return body


def report_payload(**overrides):
    body = {
        "name": "Asha",
        "date": "2025-03-14",
        "kmIn": 100,
        "kmOut": 175,
        "totalKm": 75,
    }
    body.update(overrides)
    return body
