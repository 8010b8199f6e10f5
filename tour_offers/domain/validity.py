"""Offer validity and applicability checks.

Validity answers "is the offer live at all" (active flag, date window, usage
cap). Applicability answers "does it fit this booking" (tour, option, travel
date). Both are pure and never raise.
"""
from datetime import datetime
from typing import Optional

from tour_offers.domain.models import EarlyBirdOffer, LastMinuteOffer, Offer
from tour_offers.utils import (
    DateLike,
    as_utc,
    calendar_date,
    days_until,
    inclusive_end,
    now as utc_now,
)


def is_offer_valid(offer: Offer, now: Optional[datetime] = None) -> bool:
    """Check active flag, validity window and usage cap."""
    if not offer.is_active:
        return False

    if offer.start_date is None or offer.end_date is None:
        return False

    current = as_utc(now) if now is not None else utc_now()
    if current < as_utc(offer.start_date) or current > inclusive_end(offer.end_date):
        return False

    if offer.usage_limit is not None and offer.used_count >= offer.usage_limit:
        return False

    return True


def is_offer_applicable_to_tour(
    offer: Offer, tour_id: str, option_id: Optional[str] = None
) -> bool:
    """Check tour allow/deny lists and option-level selections."""
    if tour_id in offer.excluded_tours:
        return False

    if offer.applicable_tours and tour_id not in offer.applicable_tours:
        return False

    if option_id is not None:
        for selection in offer.tour_option_selections:
            if selection.tour_id != tour_id or selection.all_options:
                continue
            if option_id not in selection.selected_options:
                return False

    return True


def travel_date_rejection(
    offer: Offer, travel_date: DateLike, now: Optional[datetime] = None
) -> Optional[str]:
    """Reason the travel date rules out the offer, or ``None`` when it fits."""
    travel_day = calendar_date(travel_date)

    if offer.travel_start_date is not None and travel_day < calendar_date(offer.travel_start_date):
        return "Offer not valid for selected travel date"
    if offer.travel_end_date is not None and travel_day > calendar_date(offer.travel_end_date):
        return "Offer not valid for selected travel date"

    lead_days = days_until(travel_day, now if now is not None else utc_now())

    if isinstance(offer, EarlyBirdOffer) and lead_days < offer.min_days_in_advance:
        return f"Book at least {offer.min_days_in_advance} days in advance to qualify"

    if isinstance(offer, LastMinuteOffer) and not 0 <= lead_days <= offer.max_days_before_tour:
        return f"Only valid when booking within {offer.max_days_before_tour} days of tour"

    return None


def is_offer_applicable_by_travel_date(
    offer: Offer,
    travel_date: Optional[DateLike] = None,
    now: Optional[datetime] = None,
) -> bool:
    """Check travel window and early-bird/last-minute lead time."""
    if travel_date is None:
        return True
    return travel_date_rejection(offer, travel_date, now) is None
