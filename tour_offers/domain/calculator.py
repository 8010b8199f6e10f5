"""Discount calculation and best-offer selection."""
import dataclasses
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from tour_offers.domain.models import (
    DiscountResult,
    EarlyBirdOffer,
    GroupOffer,
    LastMinuteOffer,
    Offer,
    OfferContext,
    PromoCodeOffer,
    ValueKind,
)
from tour_offers.domain.validity import is_offer_valid, travel_date_rejection
from tour_offers.utils import format_amount, now as utc_now

_CENT = Decimal("0.01")


def _money(value: float) -> float:
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def _percentage(amount: float, price: float) -> int:
    if price <= 0:
        return 0
    ratio = Decimal(str(amount / price * 100))
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _code_matches(offer: PromoCodeOffer, code: Optional[str]) -> bool:
    return code is not None and code.strip().upper() == offer.code


def _rejection(price: float, offer: Offer, context: OfferContext) -> Optional[str]:
    """First reason the offer cannot discount this booking, if any."""
    if price <= 0:
        return "No price to discount"

    if not is_offer_valid(offer, context.now):
        return "Offer is not currently active"

    if not math.isfinite(offer.discount_value) or offer.discount_value <= 0:
        return "Offer has no discount"

    if context.travel_date is None:
        if isinstance(offer, EarlyBirdOffer):
            return "Travel date required for early bird discount"
        if isinstance(offer, LastMinuteOffer):
            return "Travel date required for last minute discount"
    else:
        reason = travel_date_rejection(offer, context.travel_date, context.now)
        if reason is not None:
            return reason

    if offer.min_booking_value is not None and price < offer.min_booking_value:
        return f"Minimum booking value of ${format_amount(offer.min_booking_value)} required"

    if isinstance(offer, GroupOffer) and context.party_size < offer.min_group_size:
        return f"Minimum group size of {offer.min_group_size} required"

    if (
        isinstance(offer, PromoCodeOffer)
        and context.promo_code is not None
        and not _code_matches(offer, context.promo_code)
    ):
        return "Invalid promo code"

    return None


def _raw_amount(price: float, offer: Offer) -> float:
    value = offer.discount_value
    if offer.value_kind == ValueKind.FIXED:
        return value
    return price * value / 100


def calculate_discounted_price(
    base_price: float, offer: Offer, context: Optional[OfferContext] = None
) -> DiscountResult:
    """Apply one offer to one price.

    Never raises: a price or offer that cannot produce a discount yields a
    result with ``is_applicable=False`` and a ``reason``, and the price is
    left untouched (floored at zero).
    """
    context = context or OfferContext()
    price = float(base_price) if math.isfinite(base_price) else 0.0

    reason = _rejection(price, offer, context)
    if reason is not None:
        return DiscountResult(
            original_price=price,
            discounted_price=max(price, 0.0),
            offer=offer,
            is_applicable=False,
            reason=reason,
        )

    amount = _raw_amount(price, offer)

    if offer.max_discount is not None and amount > offer.max_discount:
        amount = max(offer.max_discount, 0.0)

    if amount > price:
        amount = price

    if isinstance(offer, PromoCodeOffer) and context.promo_code is None:
        reason = "Enter promo code at checkout"

    return DiscountResult(
        original_price=price,
        discounted_price=_money(max(price - amount, 0.0)),
        discount_amount=_money(amount),
        discount_percentage=_percentage(amount, price),
        offer=offer,
        is_applicable=True,
        reason=reason,
    )


def _outranks(candidate: DiscountResult, incumbent: DiscountResult) -> bool:
    if candidate.discount_amount != incumbent.discount_amount:
        return candidate.discount_amount > incumbent.discount_amount
    # Equal priority keeps the incumbent: input order is the last tie-break.
    return candidate.offer.priority > incumbent.offer.priority


def get_best_offer(
    offers: Iterable[Offer],
    base_price: float,
    context: Optional[OfferContext] = None,
) -> Optional[DiscountResult]:
    """Pick the single best applicable offer, or ``None``.

    Offers are expected to be pre-filtered for tour and option. Promo-code
    offers only compete when the context carries their code.
    """
    context = context or OfferContext()
    # Every offer is judged against the same instant.
    context = dataclasses.replace(context, now=context.now or utc_now())

    best: Optional[DiscountResult] = None
    for offer in offers:
        if not is_offer_valid(offer, context.now):
            continue
        if isinstance(offer, PromoCodeOffer) and not _code_matches(offer, context.promo_code):
            continue

        result = calculate_discounted_price(base_price, offer, context)
        if not result.is_applicable:
            continue

        if best is None or _outranks(result, best):
            best = result

    return best
