"""SQLAlchemy ORM models for database tables."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum, Float, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PostgreSQL_UUID
from sqlalchemy.types import CHAR, JSON, TypeDecorator

from tour_offers.domain.models import OfferType
from tour_offers.infrastructure.database import Base
from tour_offers.utils import now, to_naive_utc


def _utcnow():
    return to_naive_utc(now())


class GUID(TypeDecorator):
    """Platform-independent GUID type.

    Uses PostgreSQL UUID, otherwise CHAR(32), storing as stringified hex.
    """
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PostgreSQL_UUID(as_uuid=True))
        else:
            return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        elif dialect.name == 'postgresql':
            return str(value)
        else:
            if not isinstance(value, uuid.UUID):
                return "%.32x" % uuid.UUID(value).int
            else:
                return "%.32x" % value.int

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        else:
            if not isinstance(value, uuid.UUID):
                value = uuid.UUID(value)
            return value


class SpecialOfferModel(Base):
    """SQLAlchemy model for special_offers table.

    Timestamps are stored as naive UTC.
    """

    __tablename__ = "special_offers"

    offer_id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(100), nullable=False, index=True)
    type = Column(
        Enum(OfferType, name="offer_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OfferType.PERCENTAGE,
    )
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    discount_value = Column(Float, nullable=False, default=0.0)
    value_kind = Column(String(20), nullable=False, default="percentage")
    max_discount = Column(Float, nullable=True)
    min_booking_value = Column(Float, nullable=True)

    # Type-specific
    code = Column(String(50), nullable=True)
    min_days_in_advance = Column(Integer, nullable=True)
    max_days_before_tour = Column(Integer, nullable=True)
    min_group_size = Column(Integer, nullable=True)

    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    travel_start_date = Column(DateTime, nullable=True)
    travel_end_date = Column(DateTime, nullable=True)

    applicable_tours = Column(JSON, nullable=False, default=list)
    excluded_tours = Column(JSON, nullable=False, default=list)
    tour_option_selections = Column(JSON, nullable=False, default=list)

    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    featured_badge_text = Column(String(100), nullable=True)
    priority = Column(Integer, nullable=False, default=0)
    terms = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        Index("idx_offers_tenant_active_window", "tenant_id", "is_active", "start_date", "end_date"),
        Index("uq_offers_tenant_code", "tenant_id", "code", unique=True),
    )


class OfferAuditModel(Base):
    """SQLAlchemy model for offer audit log."""

    __tablename__ = "offer_audit"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    offer_id = Column(GUID(), nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    ts = Column(DateTime, nullable=False, default=_utcnow, index=True)
    payload_json = Column(JSON, nullable=True)

    __table_args__ = (Index("idx_audit_offer_ts", "offer_id", "ts"),)
