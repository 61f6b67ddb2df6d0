import pytest
import resend
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nativeflow import config, models
from nativeflow.auth import AuthContext
from nativeflow.database import get_db, init_db, make_engine
from nativeflow.main import app
from nativeflow.store import EntityStore
from nativeflow.utils import create_jwt


@pytest.fixture(autouse=True)
def secret_key(monkeypatch):
    monkeypatch.setattr(config, "SECRET_KEY", "test-secret")
    return "test-secret"


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_store(db):
    def _make(user_id=None, email=None):
        return EntityStore(db, AuthContext(user_id=user_id, email=email))
    return _make


@pytest.fixture
def admin_id(db):
    db.add(models.Profile(user_id="admin-1", email="owner@nativeflow.ca", role="admin"))
    db.commit()
    return "admin-1"


@pytest.fixture
def booking():
    def _booking(**overrides):
        record = {
            "name": "Jane Doe",
            "email": "jane@x.com",
            "phone": "6045551234",
            "address": "1 Main St",
            "service_type": "Drain Cleaning",
            "preferred_date": "2025-01-02",
            "preferred_time": "9:00 AM",
        }
        record.update(overrides)
        return record
    return _booking


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    def fake_send(params):
        sent.append(params)
        return {"id": f"email-{len(sent)}"}

    monkeypatch.setattr(resend.Emails, "send", fake_send)
    return sent


@pytest.fixture
def client(session_factory, sent_emails):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user_id, email=None):
        token = create_jwt({"sub": user_id, "email": email or f"{user_id}@x.com"})
        return {"Authorization": f"Bearer {token}"}
    return _headers
