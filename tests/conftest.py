"""Pytest configuration and fixtures.

Repository and service tests run against SQLite in-memory through the
PostgreSQL repository; the tour catalog is mocked.
"""
import pytest
from unittest.mock import AsyncMock
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from tour_offers.domain.models import TourInfo, parse_offer
from tour_offers.infrastructure.database import Base
from tour_offers.infrastructure.repositories_postgres import PostgresOfferRepository
from tour_offers.infrastructure.clients import TourClient
from tour_offers.services.offer_admin_service import OfferAdminService
from tour_offers.services.offer_service import OfferService


@pytest.fixture
async def async_session():
    """Create async session for testing with SQLite in-memory."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest.fixture
def repository(async_session: AsyncSession) -> PostgresOfferRepository:
    """PostgreSQL repository fixture (with SQLite backend for tests)."""
    return PostgresOfferRepository(async_session)


@pytest.fixture
def tenant_id() -> str:
    """Mock tenant ID."""
    return "tenant-001"


@pytest.fixture
def tour_id() -> str:
    """Mock tour ID."""
    return "tour-001"


@pytest.fixture
def make_offer(tenant_id: str):
    """Factory for offers that are live right now.

    ``make_offer("group", min_group_size=4)`` builds a group offer valid
    from yesterday until ten days from now.
    """

    def _make(offer_type: str = "percentage", **overrides):
        current = datetime.now(timezone.utc)
        data = {
            "type": offer_type,
            "tenant_id": tenant_id,
            "name": f"{offer_type} offer",
            "discount_value": 10.0,
            "start_date": current - timedelta(days=1),
            "end_date": current + timedelta(days=10),
        }
        data.update(overrides)
        return parse_offer(data)

    return _make


@pytest.fixture
def mock_tour_info(tour_id: str, tenant_id: str) -> TourInfo:
    """Mock tour info."""
    return TourInfo(
        tour_id=tour_id,
        tenant_id=tenant_id,
        title="Old Town Walking Tour",
        price=100.0,
    )


@pytest.fixture
def mock_tour_client(mock_tour_info: TourInfo) -> AsyncMock:
    """Mock tour catalog client."""
    client = AsyncMock(spec=TourClient)
    client.get_tour = AsyncMock(return_value=mock_tour_info)
    return client


@pytest.fixture
def offer_service(
    repository: PostgresOfferRepository,
    mock_tour_client: AsyncMock,
) -> OfferService:
    """Offer service with mocked tour catalog."""
    return OfferService(
        offer_repository=repository,
        tour_client=mock_tour_client,
        currency_symbol="$",
    )


@pytest.fixture
def admin_service(repository: PostgresOfferRepository) -> OfferAdminService:
    """Offer admin service."""
    return OfferAdminService(offer_repository=repository)
