"""In-memory repository implementation for development/testing."""
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from tour_offers.domain.models import Offer, OfferType
from tour_offers.infrastructure.repositories import OfferRepository
from tour_offers.utils import as_utc, inclusive_end, now as utc_now


class InMemoryOfferRepository(OfferRepository):
    """In-memory implementation of offer repository."""

    def __init__(self) -> None:
        self._offers: Dict[UUID, Offer] = {}
        self._audit_events: List[dict] = []

    async def create(self, offer: Offer) -> Offer:
        """Create a new offer."""
        self._offers[offer.id] = offer

        await self.log_audit_event(
            offer.id,
            "CREATED",
            {"tenant_id": offer.tenant_id, "type": offer.type, "name": offer.name},
        )

        return offer

    async def get_by_id(self, offer_id: UUID) -> Optional[Offer]:
        """Get offer by ID."""
        return self._offers.get(offer_id)

    async def get_by_code(self, tenant_id: str, code: str) -> Optional[Offer]:
        """Get a tenant's promo-code offer by code."""
        wanted = code.strip().upper()
        for offer in self._offers.values():
            if offer.tenant_id == tenant_id and getattr(offer, "code", None) == wanted:
                return offer
        return None

    async def list_offers(
        self,
        tenant_id: Optional[str] = None,
        is_active: Optional[bool] = None,
        offer_type: Optional[OfferType] = None,
    ) -> List[Offer]:
        """List offers, highest priority and newest first."""
        offers = [
            offer
            for offer in self._offers.values()
            if (tenant_id is None or offer.tenant_id == tenant_id)
            and (is_active is None or offer.is_active == is_active)
            and (offer_type is None or offer.type == offer_type)
        ]
        offers.sort(key=lambda offer: as_utc(offer.created_at), reverse=True)
        offers.sort(key=lambda offer: offer.priority, reverse=True)
        return offers

    async def list_candidates(
        self, tenant_id: str, now: datetime, include_promo: bool = True
    ) -> List[Offer]:
        """Active offers of a tenant whose window can still cover today."""
        current = as_utc(now)
        offers = [
            offer
            for offer in self._offers.values()
            if offer.tenant_id == tenant_id
            and offer.is_active
            and offer.start_date is not None
            and offer.end_date is not None
            and as_utc(offer.start_date) <= current
            and inclusive_end(offer.end_date) >= current
            and (include_promo or offer.type != OfferType.PROMO_CODE)
        ]
        offers.sort(key=lambda offer: (as_utc(offer.created_at), str(offer.id)))
        offers.sort(key=lambda offer: (offer.priority, offer.discount_value), reverse=True)
        return offers

    async def update(self, offer: Offer) -> Offer:
        """Replace a stored offer."""
        if offer.id in self._offers:
            self._offers[offer.id] = offer
            await self.log_audit_event(offer.id, "UPDATED", {"name": offer.name})
        return offer

    async def delete(self, offer_id: UUID) -> bool:
        """Delete an offer."""
        offer = self._offers.pop(offer_id, None)
        if offer is None:
            return False

        await self.log_audit_event(offer_id, "DELETED", {"name": offer.name})
        return True

    async def increment_usage(self, offer_id: UUID) -> bool:
        """Add one redemption unless the usage limit is reached."""
        offer = self._offers.get(offer_id)
        if offer is None:
            return False
        if offer.usage_limit is not None and offer.used_count >= offer.usage_limit:
            return False

        self._offers[offer_id] = offer.model_copy(
            update={"used_count": offer.used_count + 1, "updated_at": utc_now()}
        )
        await self.log_audit_event(offer_id, "REDEEMED", {})
        return True

    async def log_audit_event(
        self, offer_id: UUID, event_type: str, payload: dict
    ) -> None:
        """Log audit event."""
        self._audit_events.append(
            {
                "offer_id": offer_id,
                "event_type": event_type,
                "ts": utc_now(),
                "payload": payload,
            }
        )

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._offers.clear()
        self._audit_events.clear()
