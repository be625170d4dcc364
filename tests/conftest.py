"""
Test configuration and fixtures for the listings API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os

# Settings are read once at import time
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import io
import uuid
import pytest
from typing import AsyncGenerator, Dict, List, Optional
from decimal import Decimal
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from listings_api.main import app
from listings_api.database import Base, get_db
from listings_api.models.user import User, UserRole
from listings_api.models.property import Property, PropertyType, PropertyStatus, derive_title
from listings_api.models.image import PropertyImage
from listings_api.policies import Authenticated
from listings_api.repositories.user import UserRepository
from listings_api.repositories.property import PropertyRepository
from listings_api.repositories.image import ImageRepository
from listings_api.services.auth import AuthService
from listings_api.services.property import PropertyService
from listings_api.services.image import ImageService
from listings_api.utils.auth import create_access_token
from listings_api.utils.file_utils import LocalFileStorage, ValidatedUpload, get_file_storage


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpassword123"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def file_storage(tmp_path) -> LocalFileStorage:
    """Image storage rooted in a temporary directory."""
    return LocalFileStorage(tmp_path / "uploads")


@pytest.fixture
async def async_client(db_session: AsyncSession, file_storage: LocalFileStorage) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database session and storage overrides."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: file_storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


@pytest.fixture
def image_repository(db_session: AsyncSession) -> ImageRepository:
    return ImageRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def property_service(db_session: AsyncSession, file_storage: LocalFileStorage) -> PropertyService:
    return PropertyService(db_session, file_storage)


@pytest.fixture
def image_service(db_session: AsyncSession, file_storage: LocalFileStorage) -> ImageService:
    return ImageService(db_session, file_storage)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: Optional[str] = None,
        password: str = TEST_PASSWORD,
        full_name: str = "Test User",
        role: UserRole = UserRole.AGENT,
        is_active: bool = True
    ) -> dict:
        """Create user data dictionary."""
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "full_name": full_name,
            "role": role,
            "is_active": is_active
        }

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: Optional[str] = None,
        role: UserRole = UserRole.AGENT,
        **kwargs
    ) -> User:
        """Create a test user in the database."""
        user_data = UserFactory.create_user_data(email=email, role=role, **kwargs)
        return await user_repo.create_user(user_data)


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        owner_id: uuid.UUID,
        property_type: PropertyType = PropertyType.APPARTEMENT,
        rooms: Optional[int] = 3,
        surface: Decimal = Decimal("120.00"),
        price: Decimal = Decimal("15000000.00"),
        city: str = "Alger",
        district: Optional[str] = "Hydra",
        description: Optional[str] = "Bright apartment close to the park",
        status: PropertyStatus = PropertyStatus.DISPONIBLE,
        is_published: bool = True
    ) -> dict:
        """Create property data dictionary with its derived title."""
        return {
            "owner_id": owner_id,
            "type": property_type,
            "rooms": rooms,
            "surface": surface,
            "price": price,
            "city": city,
            "district": district,
            "description": description,
            "status": status,
            "is_published": is_published,
            "title": derive_title(property_type, rooms, surface, city, district),
        }

    @staticmethod
    async def create_property(
        property_repo: PropertyRepository,
        owner_id: uuid.UUID,
        **kwargs
    ) -> Property:
        """Create a test property in the database."""
        return await property_repo.create(PropertyFactory.create_property_data(owner_id, **kwargs))


def make_image_bytes(image_format: str = "PNG", color: str = "red") -> bytes:
    """Encode a tiny real image."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buffer, format=image_format)
    return buffer.getvalue()


def make_uploads(count: int, prefix: str = "photo") -> List[ValidatedUpload]:
    """Validated uploads named photo1.png, photo2.png, ..."""
    content = make_image_bytes()
    return [
        ValidatedUpload(filename=f"{prefix}{index}.png", content=content, mime_type="image/png")
        for index in range(1, count + 1)
    ]


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token}"}


def actor_for(user: User) -> Authenticated:
    return Authenticated(id=user.id, role=user.role)


# User fixtures per role
@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="admin@example.com", role=UserRole.ADMIN, full_name="Admin User"
    )


@pytest.fixture
async def test_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="agent@example.com", role=UserRole.AGENT, full_name="Agent User"
    )


@pytest.fixture
async def other_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="other.agent@example.com", role=UserRole.AGENT, full_name="Other Agent"
    )


@pytest.fixture
async def test_guest(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="guest@example.com", role=UserRole.GUEST, full_name="Guest User"
    )


@pytest.fixture
async def test_inactive_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="inactive@example.com", role=UserRole.AGENT, is_active=False
    )


# Property fixtures
@pytest.fixture
async def published_property(property_repository: PropertyRepository, test_agent: User) -> Property:
    return await PropertyFactory.create_property(property_repository, test_agent.id, is_published=True)


@pytest.fixture
async def draft_property(property_repository: PropertyRepository, test_agent: User) -> Property:
    return await PropertyFactory.create_property(
        property_repository,
        test_agent.id,
        property_type=PropertyType.VILLA,
        rooms=5,
        surface=Decimal("250"),
        city="Oran",
        district=None,
        is_published=False
    )
