"""External service clients."""
from tour_offers.infrastructure.clients.tour_client import TourClient

__all__ = ["TourClient"]
