"""Pytest configuration: in-memory database, sample owners/tenants and an API client."""

import os
from datetime import date
from decimal import Decimal

# In-memory database for anything that resolves the configured engine
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from pgmanager.api.app import create_app
from pgmanager.api.deps import get_config
from pgmanager.models import Base, Owner
from pgmanager.services import build_engine, get_db
from pgmanager.services.auth_service import Principal, Role, issue_token
from pgmanager.services.config import AppConfig
from pgmanager.services.payment_service import PaymentService
from pgmanager.services.room_service import RoomService, TenantPayload
from pgmanager.services.settlement_service import SettlementService

TEST_TOKEN_SECRET = "test-token-secret-0123456789abcdef"


@pytest.fixture
def engine():
    """Fresh in-memory SQLite engine with all tables created."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Create test database session."""
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def owner(db_session):
    """Owner of the property under test."""
    owner = Owner(fullname="Asha Rao", email="asha@example.com", pg_name="Rao Residency")
    db_session.add(owner)
    db_session.commit()
    return owner


@pytest.fixture
def other_owner(db_session):
    """A second, unrelated owner."""
    owner = Owner(fullname="Vikram Shah", email="vikram@example.com")
    db_session.add(owner)
    db_session.commit()
    return owner


@pytest.fixture
def payment_service(db_session):
    return PaymentService(db_session, due_day=5)


@pytest.fixture
def room_service(db_session):
    return RoomService(db_session)


@pytest.fixture
def settlement_service(db_session, payment_service, room_service):
    return SettlementService(db_session, payment_service=payment_service, room_service=room_service)


@pytest.fixture
def make_tenant(owner, room_service):
    """Factory assigning a new tenant to a room of the default owner."""

    def _make(
        room_number="101",
        fullname="Priya Nair",
        email="priya@example.com",
        rent_amount=Decimal("5000"),
        security_deposit=Decimal("10000"),
        join_date=date(2024, 1, 15),
    ):
        payload = TenantPayload(
            fullname=fullname,
            email=email,
            rent_amount=rent_amount,
            security_deposit=security_deposit,
            join_date=join_date,
        )
        return room_service.assign_tenant(owner.id, room_number, payload)

    return _make


@pytest.fixture
def tenant(make_tenant):
    """Tenant in room 101: rent 5000, deposit 10000, joined 2024-01-15."""
    return make_tenant()


@pytest.fixture
def app_config():
    return AppConfig(database_url="sqlite://", token_secret=TEST_TOKEN_SECRET, rent_due_day=5)


@pytest.fixture
def client(db_session, app_config):
    """Create test client with database and config dependency overrides."""
    app = create_app()

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_config] = lambda: app_config

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Factory building an Authorization header for a principal."""

    def _headers(user_id: int, role: Role, secret: str = TEST_TOKEN_SECRET) -> dict:
        token = issue_token(Principal(user_id=user_id, role=role), secret)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def owner_headers(owner, auth_headers):
    return auth_headers(owner.id, Role.OWNER)
