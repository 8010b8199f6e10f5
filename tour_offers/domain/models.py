"""Domain models for Tour Offer Service."""
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, TypeAdapter, field_validator


class OfferType(str, Enum):
    """Offer type enum."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    EARLY_BIRD = "early_bird"
    LAST_MINUTE = "last_minute"
    GROUP = "group"
    BUNDLE = "bundle"
    PROMO_CODE = "promo_code"


class ValueKind(str, Enum):
    """How ``discount_value`` is read: percentage points or currency units."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class TourOptionSelection(BaseModel):
    """Restricts an offer to some booking options of one tour."""

    tour_id: str
    selected_options: List[str] = Field(default_factory=list)
    all_options: bool = True


class OfferBase(BaseModel):
    """Fields shared by every offer variant."""

    id: UUID = Field(default_factory=uuid4)
    tenant_id: str
    name: str
    description: Optional[str] = None
    discount_value: float = 0.0
    value_kind: ValueKind = ValueKind.PERCENTAGE
    max_discount: Optional[float] = None
    min_booking_value: Optional[float] = None

    # Validity window (when the offer can be used)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    # Travel window (when the tour must take place)
    travel_start_date: Optional[datetime] = None
    travel_end_date: Optional[datetime] = None

    is_active: bool = True
    usage_limit: Optional[int] = None
    used_count: int = 0
    priority: int = 0

    applicable_tours: List[str] = Field(default_factory=list)
    excluded_tours: List[str] = Field(default_factory=list)
    tour_option_selections: List[TourOptionSelection] = Field(default_factory=list)

    is_featured: bool = False
    featured_badge_text: Optional[str] = None
    terms: List[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"from_attributes": True}

    @field_validator(
        "start_date", "end_date", "travel_start_date", "travel_end_date", mode="before"
    )
    @classmethod
    def _lenient_datetime(cls, value: Any) -> Optional[datetime]:
        """Unreadable dates become ``None``; validity checks then fail closed."""
        if value is None or isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time.min)
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                return None
        return None


class PercentageOffer(OfferBase):
    """X% off the base price."""

    type: Literal["percentage"] = "percentage"
    value_kind: Literal["percentage"] = "percentage"


class FixedOffer(OfferBase):
    """A fixed amount off the base price."""

    type: Literal["fixed"] = "fixed"
    value_kind: Literal["fixed"] = "fixed"


class EarlyBirdOffer(OfferBase):
    """Discount for bookings made at least N days before the tour."""

    type: Literal["early_bird"] = "early_bird"
    min_days_in_advance: int = 7


class LastMinuteOffer(OfferBase):
    """Discount for bookings made at most N days before the tour."""

    type: Literal["last_minute"] = "last_minute"
    max_days_before_tour: int = 2


class GroupOffer(OfferBase):
    """Discount when booking for at least N people."""

    type: Literal["group"] = "group"
    min_group_size: int = 2


class BundleOffer(OfferBase):
    """Special pricing for tour packages."""

    type: Literal["bundle"] = "bundle"


class PromoCodeOffer(OfferBase):
    """Discount unlocked by entering a code at checkout."""

    type: Literal["promo_code"] = "promo_code"
    code: str

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return value.strip().upper()


Offer = Annotated[
    Union[
        PercentageOffer,
        FixedOffer,
        EarlyBirdOffer,
        LastMinuteOffer,
        GroupOffer,
        BundleOffer,
        PromoCodeOffer,
    ],
    Field(discriminator="type"),
]

_offer_adapter: TypeAdapter = TypeAdapter(Offer)


def parse_offer(data: Mapping[str, Any]) -> Offer:
    """Build the offer variant matching ``data["type"]``."""
    return _offer_adapter.validate_python(dict(data))


@dataclass(frozen=True)
class OfferContext:
    """Booking context an offer is evaluated against."""

    travel_date: Optional[Union[date, datetime]] = None
    party_size: int = 1
    promo_code: Optional[str] = None
    now: Optional[datetime] = None


class DiscountResult(BaseModel):
    """Outcome of applying one offer to one price."""

    original_price: float
    discounted_price: float
    discount_amount: float = 0.0
    discount_percentage: int = 0
    offer: Offer
    is_applicable: bool = False
    reason: Optional[str] = None


class TourInfo(BaseModel):
    """Tour data fetched from the tour catalog."""

    tour_id: str
    tenant_id: str
    title: Optional[str] = None
    price: float = 0.0
    discount_price: Optional[float] = None

    @property
    def effective_price(self) -> float:
        return self.discount_price or self.price or 0.0


class OfferSummary(BaseModel):
    """One applicable offer on a tour page."""

    offer: Offer
    display_text: str
    badge_color: Dict[str, str]
    time_remaining: str
    show_urgency: bool
    discount_result: Optional[DiscountResult] = None


class BestOffer(DiscountResult):
    """The auto-applied offer with its display strings."""

    display_text: str
    time_remaining: str
    show_urgency: bool


class TourOffersResponse(BaseModel):
    """Response for the offers of one tour."""

    tour_id: str
    original_price: float
    offers: List[OfferSummary]
    best_offer: Optional[BestOffer] = None
    has_offers: bool
    offer_count: int


class BatchOffersRequest(BaseModel):
    """Request for listing-page offer badges."""

    tenant_id: str
    tour_ids: List[str] = Field(min_length=1)


class OfferBadge(BaseModel):
    """Compact offer view for listing pages."""

    id: UUID
    name: str
    type: OfferType
    discount_value: float
    display_text: str
    badge_color: Dict[str, str]
    is_featured: bool
    featured_badge_text: Optional[str] = None
    time_remaining: str
    show_urgency: bool
    end_date: Optional[datetime] = None


class TourOfferSummary(BaseModel):
    """Best offer badge for one tour on a listing page."""

    tour_id: str
    has_offer: bool = False
    best_offer: Optional[OfferBadge] = None
    offer_count: int = 0


class BookingQuoteRequest(BaseModel):
    """Request to price a booking with the best available offer."""

    tenant_id: str
    tour_id: str
    option_type: Optional[str] = None
    travel_date: date
    party_size: int = Field(default=1, ge=1)
    subtotal: float = Field(ge=0)
    promo_code: Optional[str] = None


class AppliedOffer(BaseModel):
    """Offer snapshot stored on the booking record."""

    id: UUID
    name: str
    offer_type: OfferType
    discount_amount: float
    discount_value: float
    end_date: Optional[datetime] = None


class BookingQuoteResponse(BaseModel):
    """Server-side booking price."""

    tour_id: str
    original_price: float
    final_price: float
    discount_amount: float
    applied_offer: Optional[AppliedOffer] = None


class PromoCodeValidationRequest(BaseModel):
    """Request to check a promo code against a booking."""

    tenant_id: str
    code: str
    tour_id: str
    option_type: Optional[str] = None
    travel_date: Optional[date] = None
    party_size: int = Field(default=1, ge=1)
    subtotal: float = Field(ge=0)


class RedeemOfferResponse(BaseModel):
    """Usage counters after a redemption."""

    offer_id: UUID
    used_count: int
    usage_limit: Optional[int] = None


class OfferListResponse(BaseModel):
    """Admin listing of offers."""

    data: List[Offer]
    count: int
