"""PostgreSQL repository implementation."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tour_offers.domain.models import Offer, OfferType, ValueKind, parse_offer
from tour_offers.infrastructure.models import OfferAuditModel, SpecialOfferModel
from tour_offers.infrastructure.repositories import OfferRepository
from tour_offers.utils import as_utc, now as utc_now, start_of_day, to_naive_utc

logger = logging.getLogger(__name__)

_TYPE_SPECIFIC_FIELDS = ("code", "min_days_in_advance", "max_days_before_tour", "min_group_size")


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    return to_naive_utc(value) if value is not None else None


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


class PostgresOfferRepository(OfferRepository):
    """PostgreSQL implementation of offer repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_domain(self, model: SpecialOfferModel) -> Offer:
        """Convert SQLAlchemy model to domain model."""
        offer_type = model.type.value if isinstance(model.type, OfferType) else model.type
        data: Dict[str, Any] = {
            "id": model.offer_id,
            "tenant_id": model.tenant_id,
            "type": offer_type,
            "name": model.name,
            "description": model.description,
            "discount_value": model.discount_value,
            "value_kind": model.value_kind,
            "max_discount": model.max_discount,
            "min_booking_value": model.min_booking_value,
            "start_date": _aware(model.start_date),
            "end_date": _aware(model.end_date),
            "travel_start_date": _aware(model.travel_start_date),
            "travel_end_date": _aware(model.travel_end_date),
            "is_active": model.is_active,
            "usage_limit": model.usage_limit,
            "used_count": model.used_count,
            "priority": model.priority,
            "applicable_tours": model.applicable_tours or [],
            "excluded_tours": model.excluded_tours or [],
            "tour_option_selections": model.tour_option_selections or [],
            "is_featured": model.is_featured,
            "featured_badge_text": model.featured_badge_text,
            "terms": model.terms or [],
            "created_at": _aware(model.created_at),
            "updated_at": _aware(model.updated_at),
        }
        for field in _TYPE_SPECIFIC_FIELDS:
            value = getattr(model, field)
            if value is not None:
                data[field] = value
        return parse_offer(data)

    def _column_values(self, offer: Offer) -> Dict[str, Any]:
        """Convert domain model to column values."""
        values: Dict[str, Any] = {
            "tenant_id": offer.tenant_id,
            "type": OfferType(offer.type),
            "name": offer.name,
            "description": offer.description,
            "discount_value": offer.discount_value,
            "value_kind": ValueKind(offer.value_kind).value,
            "max_discount": offer.max_discount,
            "min_booking_value": offer.min_booking_value,
            "start_date": _naive(offer.start_date),
            "end_date": _naive(offer.end_date),
            "travel_start_date": _naive(offer.travel_start_date),
            "travel_end_date": _naive(offer.travel_end_date),
            "is_active": offer.is_active,
            "usage_limit": offer.usage_limit,
            "used_count": offer.used_count,
            "priority": offer.priority,
            "applicable_tours": list(offer.applicable_tours),
            "excluded_tours": list(offer.excluded_tours),
            "tour_option_selections": [
                selection.model_dump() for selection in offer.tour_option_selections
            ],
            "is_featured": offer.is_featured,
            "featured_badge_text": offer.featured_badge_text,
            "terms": list(offer.terms),
            "created_at": _naive(offer.created_at),
            "updated_at": _naive(offer.updated_at),
        }
        for field in _TYPE_SPECIFIC_FIELDS:
            values[field] = getattr(offer, field, None)
        return values

    async def _get_model(self, offer_id: UUID) -> Optional[SpecialOfferModel]:
        stmt = (
            select(SpecialOfferModel)
            .where(SpecialOfferModel.offer_id == offer_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, offer: Offer) -> Offer:
        """Create a new offer."""
        model = SpecialOfferModel(offer_id=offer.id, **self._column_values(offer))
        self.session.add(model)
        await self.session.flush()

        await self.log_audit_event(
            offer.id,
            "CREATED",
            {"tenant_id": offer.tenant_id, "type": offer.type, "name": offer.name},
        )

        logger.info(f"Created offer {offer.id} for tenant {offer.tenant_id}")
        return self._to_domain(model)

    async def get_by_id(self, offer_id: UUID) -> Optional[Offer]:
        """Get offer by ID."""
        model = await self._get_model(offer_id)

        if model is None:
            return None

        return self._to_domain(model)

    async def get_by_code(self, tenant_id: str, code: str) -> Optional[Offer]:
        """Get a tenant's promo-code offer by code."""
        stmt = (
            select(SpecialOfferModel)
            .where(
                SpecialOfferModel.tenant_id == tenant_id,
                SpecialOfferModel.code == code.strip().upper(),
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_domain(model)

    async def list_offers(
        self,
        tenant_id: Optional[str] = None,
        is_active: Optional[bool] = None,
        offer_type: Optional[OfferType] = None,
    ) -> List[Offer]:
        """List offers, highest priority and newest first."""
        stmt = select(SpecialOfferModel)
        if tenant_id is not None:
            stmt = stmt.where(SpecialOfferModel.tenant_id == tenant_id)
        if is_active is not None:
            stmt = stmt.where(SpecialOfferModel.is_active.is_(is_active))
        if offer_type is not None:
            stmt = stmt.where(SpecialOfferModel.type == OfferType(offer_type))
        stmt = stmt.order_by(
            SpecialOfferModel.priority.desc(), SpecialOfferModel.created_at.desc()
        )

        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_candidates(
        self, tenant_id: str, now: datetime, include_promo: bool = True
    ) -> List[Offer]:
        """Active offers of a tenant whose window can still cover today."""
        stmt = select(SpecialOfferModel).where(
            SpecialOfferModel.tenant_id == tenant_id,
            SpecialOfferModel.is_active.is_(True),
            SpecialOfferModel.start_date <= to_naive_utc(now),
            # Date-only end dates last the whole day; the engine decides exactly.
            SpecialOfferModel.end_date >= to_naive_utc(start_of_day(now)),
        )
        if not include_promo:
            stmt = stmt.where(SpecialOfferModel.type != OfferType.PROMO_CODE)
        stmt = stmt.order_by(
            SpecialOfferModel.priority.desc(),
            SpecialOfferModel.discount_value.desc(),
            SpecialOfferModel.created_at.asc(),
            SpecialOfferModel.offer_id.asc(),
        )

        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def update(self, offer: Offer) -> Offer:
        """Replace a stored offer."""
        model = await self._get_model(offer.id)
        if model is None:
            return offer

        for column, value in self._column_values(offer).items():
            setattr(model, column, value)
        await self.session.flush()

        await self.log_audit_event(offer.id, "UPDATED", {"name": offer.name})

        logger.info(f"Updated offer {offer.id}")
        return self._to_domain(model)

    async def delete(self, offer_id: UUID) -> bool:
        """Delete an offer."""
        model = await self._get_model(offer_id)
        if model is None:
            return False

        await self.session.delete(model)
        await self.session.flush()

        await self.log_audit_event(offer_id, "DELETED", {"name": model.name})

        logger.info(f"Deleted offer {offer_id}")
        return True

    async def increment_usage(self, offer_id: UUID) -> bool:
        """Atomically add one redemption unless the usage limit is reached."""
        stmt = (
            update(SpecialOfferModel)
            .where(
                SpecialOfferModel.offer_id == offer_id,
                or_(
                    SpecialOfferModel.usage_limit.is_(None),
                    SpecialOfferModel.used_count < SpecialOfferModel.usage_limit,
                ),
            )
            .values(
                used_count=SpecialOfferModel.used_count + 1,
                updated_at=to_naive_utc(utc_now()),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)

        if result.rowcount != 1:
            logger.info(f"Offer {offer_id} not redeemed: missing or limit reached")
            return False

        await self.log_audit_event(offer_id, "REDEEMED", {})
        return True

    async def log_audit_event(
        self, offer_id: UUID, event_type: str, payload: dict
    ) -> None:
        """Log audit event."""
        audit = OfferAuditModel(
            offer_id=offer_id,
            event_type=event_type,
            ts=to_naive_utc(utc_now()),
            payload_json=payload,
        )
        self.session.add(audit)
        await self.session.flush()

        logger.debug(f"Logged audit event {event_type} for offer {offer_id}")
