"""Domain layer."""
from tour_offers.domain.calculator import calculate_discounted_price, get_best_offer
from tour_offers.domain.exceptions import (
    DomainException,
    DuplicateOfferCodeException,
    InvalidOfferException,
    OfferNotFoundException,
    OfferUsageLimitReachedException,
    PromoCodeNotApplicableException,
    PromoCodeNotFoundException,
    TourCatalogUnavailableException,
    TourNotFoundException,
)
from tour_offers.domain.models import (
    DiscountResult,
    Offer,
    OfferContext,
    OfferType,
    ValueKind,
    parse_offer,
)
from tour_offers.domain.presentation import (
    format_offer_time_remaining,
    get_offer_badge_color,
    get_offer_display_text,
    should_show_urgency,
)
from tour_offers.domain.validity import (
    is_offer_applicable_by_travel_date,
    is_offer_applicable_to_tour,
    is_offer_valid,
)

__all__ = [
    # Models
    "Offer",
    "OfferType",
    "ValueKind",
    "OfferContext",
    "DiscountResult",
    "parse_offer",
    # Engine
    "is_offer_valid",
    "is_offer_applicable_to_tour",
    "is_offer_applicable_by_travel_date",
    "calculate_discounted_price",
    "get_best_offer",
    "get_offer_display_text",
    "get_offer_badge_color",
    "format_offer_time_remaining",
    "should_show_urgency",
    # Exceptions
    "DomainException",
    "OfferNotFoundException",
    "OfferUsageLimitReachedException",
    "InvalidOfferException",
    "DuplicateOfferCodeException",
    "PromoCodeNotFoundException",
    "PromoCodeNotApplicableException",
    "TourNotFoundException",
    "TourCatalogUnavailableException",
]
