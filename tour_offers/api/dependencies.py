"""API dependencies with dependency injection."""
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tour_offers.infrastructure.clients import TourClient
from tour_offers.infrastructure.database import get_async_session
from tour_offers.infrastructure.repositories import OfferRepository
from tour_offers.infrastructure.repositories_postgres import PostgresOfferRepository
from tour_offers.services.offer_admin_service import OfferAdminService
from tour_offers.services.offer_service import OfferService

# Singleton instance for the tour catalog client (owns the tour cache)
_tour_client: Optional[TourClient] = None


def get_tour_client() -> TourClient:
    """Get TourClient singleton."""
    global _tour_client
    if _tour_client is None:
        _tour_client = TourClient()
    return _tour_client


async def close_tour_client() -> None:
    """Close the TourClient singleton if it was created."""
    global _tour_client
    if _tour_client is not None:
        await _tour_client.close()
        _tour_client = None


async def get_offer_repository(
    session: AsyncSession = None,
) -> AsyncGenerator[OfferRepository, None]:
    """Get PostgreSQL OfferRepository with dependency injection."""
    if session is None:
        async for db_session in get_async_session():
            yield PostgresOfferRepository(db_session)
    else:
        yield PostgresOfferRepository(session)


async def get_offer_service() -> AsyncGenerator[OfferService, None]:
    """Get OfferService with dependencies."""
    async for repo in get_offer_repository():
        yield OfferService(
            offer_repository=repo,
            tour_client=get_tour_client(),
        )


async def get_offer_admin_service() -> AsyncGenerator[OfferAdminService, None]:
    """Get OfferAdminService with dependencies."""
    async for repo in get_offer_repository():
        yield OfferAdminService(offer_repository=repo)
