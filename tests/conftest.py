"""Pytest fixtures for storefront tests."""

import asyncio

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from storefront.config import Settings
from storefront.database.mongodb import MongoDB
from storefront.models.user import UserCreate, UserRole
from storefront.services import build_services

from factories import FakePaymentGateway, FakePdfRenderer, RecordingNotificationService


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        stripe_secret_key="sk_test_dummy",
        rate_limit_requests=100_000,
        log_format="text",
        admin_emails=["ops@example.com"],
    )


def _mock_db(settings: Settings) -> MongoDB:
    db = MongoDB(settings)
    db.client = AsyncMongoMockClient()
    db.db = db.client[settings.mongodb_database]
    return db


@pytest_asyncio.fixture
async def mongo_db(settings):
    """MongoDB wrapper over mongomock with the production indexes in place."""
    db = _mock_db(settings)
    await db.create_indexes()
    yield db


@pytest_asyncio.fixture
async def services(settings, mongo_db):
    return build_services(
        settings,
        mongo_db,
        gateway=FakePaymentGateway(),
        renderer=FakePdfRenderer(),
        notifications=RecordingNotificationService(settings),
    )


async def _seed_users(db: MongoDB) -> None:
    await db.create_user(
        UserCreate(
            userId="admin_001",
            firstName="Store",
            lastName="Admin",
            email="admin@example.com",
            phone="+1234567800",
            role=UserRole.ADMIN,
        )
    )
    for user_id, first_name in (("user_001", "Kai"), ("user_002", "Jane")):
        await db.create_user(
            UserCreate(
                userId=user_id,
                firstName=first_name,
                lastName="Doe",
                email=f"{user_id}@example.com",
                phone="+1234567891",
            )
        )


@pytest.fixture
def app_services(settings):
    """Services over a seeded mock database, for synchronous API tests."""
    db = _mock_db(settings)
    asyncio.run(db.create_indexes())
    asyncio.run(_seed_users(db))
    return build_services(
        settings,
        db,
        gateway=FakePaymentGateway(),
        renderer=FakePdfRenderer(),
        notifications=RecordingNotificationService(settings),
    )


@pytest.fixture
def api_client(settings, app_services):
    """Test client for an app wired to the mock services."""
    from storefront.main import create_app

    app = create_app(settings, use_lifespan=False)
    app.state.services = app_services
    return TestClient(app)
