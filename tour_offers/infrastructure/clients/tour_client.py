"""Tour catalog client with TTL cache."""
import logging
from typing import Any, Dict, Optional

import httpx
from cachetools import TTLCache
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from tour_offers.config import settings
from tour_offers.domain.exceptions import TourCatalogUnavailableException, TourNotFoundException
from tour_offers.domain.models import TourInfo

logger = logging.getLogger(__name__)


class TourClient:
    """Client for the tour catalog.

    Owns its cache: callers drop stale entries with ``invalidate`` or
    ``invalidate_all`` after a tour's price or tenant changes.
    """

    def __init__(
        self,
        base_url: str = settings.tour_catalog_url,
        timeout: float = settings.tour_catalog_timeout,
        cache_ttl: int = settings.tour_cache_ttl,
        cache_max_size: int = settings.tour_cache_max_size,
    ):
        self.http_client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)
        self.cache: TTLCache = TTLCache(maxsize=cache_max_size, ttl=cache_ttl)

    async def close(self) -> None:
        """Close the client."""
        await self.http_client.aclose()

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.tour_catalog_retries),
        wait=wait_fixed(0.5),
        reraise=True,
    )
    async def _fetch_tour(self, tour_id: str) -> Dict[str, Any]:
        try:
            response = await self.http_client.get(f"/api/v1/tours/{tour_id}")
            response.raise_for_status()
            return response.json()
        except httpx.TransportError as e:
            logger.warning(f"Transport error fetching tour {tour_id}: {e}")
            raise

    def get(self, tour_id: str) -> Optional[TourInfo]:
        """Cached tour, if present and fresh."""
        return self.cache.get(tour_id)

    async def get_tour(self, tour_id: str) -> TourInfo:
        """Get tour price and tenant, cached."""
        cached = self.get(tour_id)
        if cached is not None:
            logger.debug(f"Returning cached tour {tour_id}")
            return cached

        try:
            logger.info(f"Fetching tour {tour_id} from tour catalog")
            response = await self._fetch_tour(tour_id)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise TourNotFoundException(tour_id)
            logger.error(f"Tour catalog returned {e.response.status_code} for tour {tour_id}")
            raise TourCatalogUnavailableException()
        except Exception as e:
            logger.error(f"Failed to fetch tour {tour_id}: {e}")
            raise TourCatalogUnavailableException()

        if not response or "tour_id" not in response:
            raise TourNotFoundException(tour_id)

        tour = TourInfo(**response)
        self.cache[tour_id] = tour
        return tour

    def invalidate(self, tour_id: str) -> None:
        """Drop one cached tour."""
        self.cache.pop(tour_id, None)

    def invalidate_all(self) -> None:
        """Clear the cache."""
        self.cache.clear()
