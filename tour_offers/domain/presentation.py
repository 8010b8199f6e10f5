"""Display helpers for offer badges and countdowns."""
from datetime import datetime, timedelta
from typing import Dict, Optional

from tour_offers.domain.models import Offer, OfferType, ValueKind
from tour_offers.utils import as_utc, format_amount, inclusive_end, now as utc_now

URGENCY_THRESHOLD = timedelta(hours=48)

DEFAULT_BADGE_COLOR: Dict[str, str] = {"bg": "bg-amber-500", "text": "text-white"}

_BADGE_COLORS: Dict[OfferType, Dict[str, str]] = {
    OfferType.PERCENTAGE: {"bg": "bg-rose-500", "text": "text-white"},
    OfferType.FIXED: {"bg": "bg-amber-500", "text": "text-white"},
    OfferType.EARLY_BIRD: {"bg": "bg-emerald-500", "text": "text-white"},
    OfferType.LAST_MINUTE: {"bg": "bg-red-600", "text": "text-white"},
    OfferType.GROUP: {"bg": "bg-blue-500", "text": "text-white"},
    OfferType.BUNDLE: {"bg": "bg-purple-500", "text": "text-white"},
    OfferType.PROMO_CODE: {"bg": "bg-slate-700", "text": "text-white"},
}

_TYPE_LABELS: Dict[OfferType, str] = {
    OfferType.EARLY_BIRD: "EARLY BIRD",
    OfferType.LAST_MINUTE: "LAST MINUTE",
    OfferType.GROUP: "GROUP",
    OfferType.BUNDLE: "BUNDLE",
}


def _offer_type(value: str) -> Optional[OfferType]:
    try:
        return OfferType(value)
    except ValueError:
        return None


def get_offer_display_text(offer: Offer, currency_symbol: str = "$") -> str:
    """Short badge label such as "20% OFF" or "$15 OFF"."""
    offer_type = _offer_type(offer.type)
    if offer_type is None:
        return "SPECIAL OFFER"
    if offer_type == OfferType.PROMO_CODE:
        return "USE CODE"

    amount = format_amount(offer.discount_value)
    if offer.value_kind == ValueKind.FIXED:
        value = f"{currency_symbol}{amount}"
    else:
        value = f"{amount}%"

    label = _TYPE_LABELS.get(offer_type)
    if label:
        return f"{label} {value} OFF"
    return f"{value} OFF"


def get_offer_badge_color(offer_type: str) -> Dict[str, str]:
    known = _offer_type(offer_type)
    return dict(_BADGE_COLORS.get(known, DEFAULT_BADGE_COLOR))


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''} left"


def format_offer_time_remaining(
    end_date: Optional[datetime], now: Optional[datetime] = None
) -> str:
    """Human countdown: "3 days left", "Ends today", "Expired"."""
    if end_date is None:
        return "Expired"

    current = as_utc(now) if now is not None else utc_now()
    end = inclusive_end(end_date)
    remaining = end - current

    if remaining <= timedelta(0):
        return "Expired"

    days = remaining.days
    hours = remaining.seconds // 3600

    if days > 30:
        return _plural(days // 30, "month")
    if days > 0:
        return _plural(days, "day")
    if end.date() == current.date():
        return "Ends today"
    if hours > 0:
        return _plural(hours, "hour")
    return "Ends soon"


def should_show_urgency(end_date: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if end_date is None:
        return False
    current = as_utc(now) if now is not None else utc_now()
    remaining = inclusive_end(end_date) - current
    return timedelta(0) < remaining <= URGENCY_THRESHOLD
