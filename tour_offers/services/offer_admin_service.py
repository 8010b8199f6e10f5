"""Offer administration service."""
import logging
import math
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from pydantic import ValidationError

from tour_offers.domain.exceptions import (
    DuplicateOfferCodeException,
    InvalidOfferException,
    OfferNotFoundException,
)
from tour_offers.domain.models import Offer, OfferType, ValueKind, parse_offer
from tour_offers.infrastructure.repositories import OfferRepository
from tour_offers.utils import as_utc, now as utc_now

logger = logging.getLogger(__name__)

# Assigned by the service, never by the caller
_SERVER_FIELDS = ("id", "used_count", "created_at", "updated_at")
_READ_ONLY_FIELDS = ("id", "tenant_id", "used_count", "created_at")
# Belong to one offer variant; dropped when the type changes
_TYPE_SPECIFIC_FIELDS = (
    "value_kind",
    "code",
    "min_days_in_advance",
    "max_days_before_tour",
    "min_group_size",
)


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


class OfferAdminService:
    """CRUD over a tenant's special offers."""

    def __init__(self, offer_repository: OfferRepository):
        self.offer_repository = offer_repository

    async def list_offers(
        self,
        tenant_id: Optional[str] = None,
        is_active: Optional[bool] = None,
        offer_type: Optional[OfferType] = None,
    ) -> List[Offer]:
        return await self.offer_repository.list_offers(
            tenant_id=tenant_id, is_active=is_active, offer_type=offer_type
        )

    async def get_offer(self, offer_id: UUID) -> Offer:
        offer = await self.offer_repository.get_by_id(offer_id)
        if offer is None:
            raise OfferNotFoundException(str(offer_id))
        return offer

    async def create_offer(self, data: Mapping[str, Any]) -> Offer:
        """Create an offer from a raw payload."""
        payload = {key: value for key, value in data.items() if key not in _SERVER_FIELDS}
        offer = self._build(payload)

        await self._ensure_unique_code(offer)

        created = await self.offer_repository.create(offer)
        logger.info(f"Offer {created.id} ({created.type}) created for tenant {created.tenant_id}")
        return created

    async def update_offer(self, offer_id: UUID, changes: Mapping[str, Any]) -> Offer:
        """Apply a partial update.

        Identity, tenant and the redemption counter cannot be changed here.
        """
        current = await self.get_offer(offer_id)

        merged: Dict[str, Any] = current.model_dump()
        if "type" in changes and changes["type"] != current.type:
            for key in _TYPE_SPECIFIC_FIELDS:
                if key not in changes:
                    merged.pop(key, None)

        for key, value in changes.items():
            if key in _READ_ONLY_FIELDS:
                logger.warning(f"Ignoring read-only field {key} in update of offer {offer_id}")
                continue
            merged[key] = value
        merged["updated_at"] = utc_now()

        offer = self._build(merged)
        await self._ensure_unique_code(offer)

        updated = await self.offer_repository.update(offer)
        logger.info(f"Offer {offer_id} updated")
        return updated

    async def delete_offer(self, offer_id: UUID) -> None:
        deleted = await self.offer_repository.delete(offer_id)
        if not deleted:
            raise OfferNotFoundException(str(offer_id))
        logger.info(f"Offer {offer_id} deleted")

    def _build(self, data: Mapping[str, Any]) -> Offer:
        try:
            offer = parse_offer(data)
        except ValidationError as e:
            logger.warning(f"Rejected offer payload: {e}")
            raise InvalidOfferException(_describe(e))

        if not math.isfinite(offer.discount_value) or offer.discount_value <= 0:
            raise InvalidOfferException("discount_value must be positive")
        if ValueKind(offer.value_kind) == ValueKind.PERCENTAGE and offer.discount_value > 100:
            raise InvalidOfferException("Percentage discount cannot exceed 100")
        if offer.start_date is None or offer.end_date is None:
            raise InvalidOfferException("start_date and end_date are required")
        if as_utc(offer.end_date) < as_utc(offer.start_date):
            raise InvalidOfferException("end_date must not be before start_date")
        if offer.usage_limit is not None and offer.usage_limit < 0:
            raise InvalidOfferException("usage_limit must not be negative")
        if getattr(offer, "code", None) == "":
            raise InvalidOfferException("Promo code must not be empty")

        return offer

    async def _ensure_unique_code(self, offer: Offer) -> None:
        code = getattr(offer, "code", None)
        if not code:
            return

        existing = await self.offer_repository.get_by_code(offer.tenant_id, code)
        if existing is not None and existing.id != offer.id:
            raise DuplicateOfferCodeException(code, offer.tenant_id)
