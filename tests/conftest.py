"""
Test configuration and fixtures for the sublet marketplace API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os

# Settings are read at import time, so the test environment must be in place first
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters"
os.environ["EMAIL_PROVIDER"] = "log"
os.environ["ALLOWED_EMAIL_DOMAIN"] = "wisc.edu"

import pytest
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from sublets.main import app
from sublets.database import Base, get_db, enable_sqlite_foreign_keys, utcnow
from sublets.models.user import User, UserRole
from sublets.models.listing import Listing
from sublets.models.message import Message
from sublets.repositories.user import UserRepository
from sublets.repositories.listing import ListingRepository
from sublets.repositories.saved_listing import SavedListingRepository
from sublets.repositories.message import MessageRepository
from sublets.repositories.report import ReportRepository
from sublets.services.auth import AuthService
from sublets.services.listing import ListingService
from sublets.services.message import MessageService
from sublets.services.email import EmailService, LogEmailBackend
from sublets.utils.auth import create_access_token
from sublets.utils.dependencies import get_email_service


DEFAULT_PASSWORD = "testpassword123"


@pytest.fixture
async def db_engine():
    """A fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def email_backend() -> LogEmailBackend:
    """Captures outgoing email in memory."""
    return LogEmailBackend()


@pytest.fixture
def email_service(email_backend: LogEmailBackend) -> EmailService:
    return EmailService(backend=email_backend)


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    email_service: EmailService
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client bound to the test database and the in-memory mailer."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def listing_repository(db_session: AsyncSession) -> ListingRepository:
    return ListingRepository(db_session)


@pytest.fixture
def saved_listing_repository(db_session: AsyncSession) -> SavedListingRepository:
    return SavedListingRepository(db_session)


@pytest.fixture
def message_repository(db_session: AsyncSession) -> MessageRepository:
    return MessageRepository(db_session)


@pytest.fixture
def report_repository(db_session: AsyncSession) -> ReportRepository:
    return ReportRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession, email_service: EmailService) -> AuthService:
    return AuthService(db_session, email_service)


@pytest.fixture
def listing_service(db_session: AsyncSession) -> ListingService:
    return ListingService(db_session)


@pytest.fixture
def message_service(db_session: AsyncSession) -> MessageService:
    return MessageService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: str = DEFAULT_PASSWORD,
        name: str = "Test User",
        role: UserRole = UserRole.USER,
        verified: bool = True
    ) -> dict:
        return {
            "email": email or f"student{uuid.uuid4().hex[:8]}@wisc.edu",
            "password": password,
            "name": name,
            "role": role,
            "email_verified": utcnow() if verified else None,
        }

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: str = None,
        password: str = DEFAULT_PASSWORD,
        name: str = "Test User",
        role: UserRole = UserRole.USER,
        verified: bool = True
    ) -> User:
        user_data = UserFactory.create_user_data(
            email=email,
            password=password,
            name=name,
            role=role,
            verified=verified
        )
        return await user_repo.create_user(user_data)


def days_from_now(days: int) -> datetime:
    base = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return base + timedelta(days=days)


class ListingFactory:
    """Factory for creating test listings."""

    @staticmethod
    def create_listing_data(
        owner_id: uuid.UUID,
        title: str = "Cozy room near campus",
        description: str = "Furnished room in a quiet apartment close to the university.",
        price: Decimal = Decimal("800.00"),
        address: str = "100 University Ave, Madison, WI",
        bedrooms: int = 1,
        bathrooms: Decimal = Decimal("1"),
        available_from: Optional[datetime] = None,
        available_until: Optional[datetime] = None,
        published: bool = True,
        is_draft: bool = False
    ) -> dict:
        return {
            "owner_id": owner_id,
            "title": title,
            "description": description,
            "price": price,
            "address": address,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "available_from": available_from or days_from_now(10),
            "available_until": available_until or days_from_now(100),
            "images": [],
            "published": published,
            "is_draft": is_draft,
        }

    @staticmethod
    async def create_listing(
        listing_repo: ListingRepository,
        owner_id: uuid.UUID,
        amenities: Iterable[str] = (),
        **overrides
    ) -> Listing:
        listing_data = ListingFactory.create_listing_data(owner_id, **overrides)
        return await listing_repo.create_listing(listing_data, amenities=amenities)


class MessageFactory:
    """Factory for creating test messages."""

    @staticmethod
    async def create_message(
        message_repo: MessageRepository,
        sender_id: uuid.UUID,
        receiver_id: uuid.UUID,
        content: str = "Hi, is this still available?",
        listing_id: Optional[uuid.UUID] = None
    ) -> Message:
        return await message_repo.create_message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            listing_id=listing_id,
        )


# Common test fixtures
@pytest.fixture
async def test_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="bucky@wisc.edu", name="Bucky Badger")


@pytest.fixture
async def other_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="becky@wisc.edu", name="Becky Badger")


@pytest.fixture
async def unverified_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="newbie@wisc.edu",
        name="New Student",
        verified=False
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="admin@wisc.edu",
        name="Site Admin",
        role=UserRole.ADMIN
    )


@pytest.fixture
async def test_listing(listing_repository: ListingRepository, test_user: User) -> Listing:
    return await ListingFactory.create_listing(
        listing_repository,
        owner_id=test_user.id,
        title="Sunny studio near Bascom Hill",
        price=Decimal("950.00"),
        amenities=["WiFi", "Laundry"]
    )


@pytest.fixture
async def draft_listing(listing_repository: ListingRepository, test_user: User) -> Listing:
    return await ListingFactory.create_listing(
        listing_repository,
        owner_id=test_user.id,
        title="Unfinished draft listing",
        is_draft=True
    )


# Utility functions for tests
def auth_headers(user: User) -> dict:
    """Bearer header for a user."""
    token = create_access_token(user_id=user.id, email=user.email, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


def assert_error(response, status_code: int, code: str):
    """Assert the standard error envelope."""
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["error"]["code"] == code
    assert body["error"]["message"]
    assert body["error"]["timestamp"]
    return body["error"]
