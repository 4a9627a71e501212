import os
import tempfile

# Must be set before the app (and its engine) is imported
_tmp_dir = tempfile.mkdtemp(prefix="servicebook-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["LOG_FILE"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.database import Base, SessionLocal, engine  # noqa: E402
from app.models.service_model import Service, default_working_hours  # noqa: E402
from app.models.user_model import User  # noqa: E402
from app.security.auth import get_password_hash  # noqa: E402



@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def register_and_login(client, email, role="customer", name="Test User"):
    password = "s3cret-password"
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password, "role": role},
    )
    assert response.status_code == 201, response.text
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def provider_headers(client):
    return register_and_login(client, "provider@example.com", role="provider", name="Pat Provider")


@pytest.fixture
def customer_headers(client):
    return register_and_login(client, "customer@example.com", name="Casey Customer")


@pytest.fixture
def create_service(client, provider_headers):
    def _create(**overrides):
        payload = {
            "name": "Deep Clean",
            "description": "Whole apartment",
            "price": 50.0,
            "duration_minutes": 60,
            "category": "cleaning",
        }
        payload.update(overrides)
        response = client.post("/api/provider/services", json=payload, headers=provider_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def stored_service(db):
    """A provider and an active 60 minute service written straight to the database"""
    provider = User(
        name="Pat Provider",
        email="pat@example.com",
        password_hash=get_password_hash("s3cret-password"),
        role="provider",
    )
    db.add(provider)
    db.commit()
    service = Service(
        name="Haircut",
        price=30,
        duration_minutes=60,
        category="beauty",
        working_hours=default_working_hours(),
        owner_id=provider.id,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service
