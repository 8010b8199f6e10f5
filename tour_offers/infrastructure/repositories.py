"""Abstract repository interface."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from tour_offers.domain.models import Offer, OfferType


class OfferRepository(ABC):
    """Abstract offer repository interface."""

    @abstractmethod
    async def create(self, offer: Offer) -> Offer:
        """Create a new offer."""
        pass

    @abstractmethod
    async def get_by_id(self, offer_id: UUID) -> Optional[Offer]:
        """Get offer by ID."""
        pass

    @abstractmethod
    async def get_by_code(self, tenant_id: str, code: str) -> Optional[Offer]:
        """Get a tenant's promo-code offer by its (upper-case) code."""
        pass

    @abstractmethod
    async def list_offers(
        self,
        tenant_id: Optional[str] = None,
        is_active: Optional[bool] = None,
        offer_type: Optional[OfferType] = None,
    ) -> List[Offer]:
        """List offers, highest priority and newest first."""
        pass

    @abstractmethod
    async def list_candidates(
        self, tenant_id: str, now: datetime, include_promo: bool = True
    ) -> List[Offer]:
        """Active offers of a tenant whose window can still cover today.

        Ordered by priority desc, discount value desc, creation time asc.
        Exact validity is decided by the offer engine.
        """
        pass

    @abstractmethod
    async def update(self, offer: Offer) -> Offer:
        """Replace a stored offer."""
        pass

    @abstractmethod
    async def delete(self, offer_id: UUID) -> bool:
        """Delete an offer; False when it did not exist."""
        pass

    @abstractmethod
    async def increment_usage(self, offer_id: UUID) -> bool:
        """Atomically add one redemption unless the usage limit is reached."""
        pass

    @abstractmethod
    async def log_audit_event(
        self, offer_id: UUID, event_type: str, payload: dict
    ) -> None:
        """Log audit event."""
        pass
