"""Offer Service implementation."""
import logging
from datetime import date, datetime
from typing import Iterable, List, Optional
from uuid import UUID

from tour_offers.config import settings
from tour_offers.domain.calculator import calculate_discounted_price, get_best_offer
from tour_offers.domain.exceptions import (
    OfferNotFoundException,
    OfferUsageLimitReachedException,
    PromoCodeNotApplicableException,
    PromoCodeNotFoundException,
)
from tour_offers.domain.models import (
    AppliedOffer,
    BatchOffersRequest,
    BestOffer,
    BookingQuoteRequest,
    BookingQuoteResponse,
    DiscountResult,
    Offer,
    OfferBadge,
    OfferContext,
    OfferSummary,
    PromoCodeOffer,
    PromoCodeValidationRequest,
    RedeemOfferResponse,
    TourOfferSummary,
    TourOffersResponse,
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
from tour_offers.infrastructure.clients import TourClient
from tour_offers.infrastructure.repositories import OfferRepository
from tour_offers.utils import now as utc_now

logger = logging.getLogger(__name__)


class OfferService:
    """Service for evaluating and redeeming special offers."""

    def __init__(
        self,
        offer_repository: OfferRepository,
        tour_client: TourClient,
        currency_symbol: str = settings.currency_symbol,
    ):
        self.offer_repository = offer_repository
        self.tour_client = tour_client
        self.currency_symbol = currency_symbol

    async def get_tour_offers(
        self,
        tour_id: str,
        travel_date: Optional[date] = None,
        group_size: int = 1,
        option_type: Optional[str] = None,
    ) -> TourOffersResponse:
        """Offers applicable to one tour, with the auto-applied best one."""
        logger.info(f"Getting offers for tour {tour_id}")

        tour = await self.tour_client.get_tour(tour_id)
        current = utc_now()
        original_price = tour.effective_price

        candidates = await self.offer_repository.list_candidates(tour.tenant_id, current)
        applicable = self._applicable_offers(
            candidates, tour_id, option_type, travel_date, current
        )

        context = OfferContext(travel_date=travel_date, party_size=group_size, now=current)
        summaries = []
        for offer in applicable:
            result = calculate_discounted_price(original_price, offer, context)
            summaries.append(
                OfferSummary(
                    offer=offer,
                    display_text=get_offer_display_text(offer, self.currency_symbol),
                    badge_color=get_offer_badge_color(offer.type),
                    time_remaining=format_offer_time_remaining(offer.end_date, current),
                    show_urgency=should_show_urgency(offer.end_date, current),
                    discount_result=result if result.is_applicable else None,
                )
            )

        best = get_best_offer(applicable, original_price, context)

        return TourOffersResponse(
            tour_id=tour_id,
            original_price=original_price,
            offers=summaries,
            best_offer=self._best_offer_view(best, current) if best else None,
            has_offers=bool(summaries),
            offer_count=len(summaries),
        )

    async def get_batch_offers(self, request: BatchOffersRequest) -> List[TourOfferSummary]:
        """Best offer badge per tour for listing pages.

        Promo-code offers are never shown automatically. Storage order
        (priority, then discount value) decides which offer is the badge.
        """
        logger.info(
            f"Getting batch offers for {len(request.tour_ids)} tours of tenant {request.tenant_id}"
        )

        current = utc_now()
        candidates = await self.offer_repository.list_candidates(
            request.tenant_id, current, include_promo=False
        )

        summaries = {tour_id: TourOfferSummary(tour_id=tour_id) for tour_id in request.tour_ids}
        for offer in candidates:
            if not is_offer_valid(offer, current):
                continue
            for tour_id, summary in summaries.items():
                if not is_offer_applicable_to_tour(offer, tour_id):
                    continue
                summary.offer_count += 1
                summary.has_offer = True
                if summary.best_offer is None:
                    summary.best_offer = self._badge(offer, current)

        return list(summaries.values())

    async def quote_booking(self, request: BookingQuoteRequest) -> BookingQuoteResponse:
        """Server-side price of a booking with the best applicable offer."""
        logger.info(
            f"Quoting booking for tour {request.tour_id} of tenant {request.tenant_id}"
        )

        current = utc_now()
        candidates = await self.offer_repository.list_candidates(request.tenant_id, current)
        applicable = self._applicable_offers(
            candidates, request.tour_id, request.option_type, request.travel_date, current
        )

        context = OfferContext(
            travel_date=request.travel_date,
            party_size=request.party_size,
            promo_code=request.promo_code,
            now=current,
        )
        best = get_best_offer(applicable, request.subtotal, context)

        if best is None:
            logger.info(f"No offer applies to tour {request.tour_id}")
            return BookingQuoteResponse(
                tour_id=request.tour_id,
                original_price=request.subtotal,
                final_price=request.subtotal,
                discount_amount=0.0,
            )

        logger.info(
            f"Applied offer {best.offer.id} to tour {request.tour_id}: -{best.discount_amount}"
        )
        return BookingQuoteResponse(
            tour_id=request.tour_id,
            original_price=best.original_price,
            final_price=best.discounted_price,
            discount_amount=best.discount_amount,
            applied_offer=AppliedOffer(
                id=best.offer.id,
                name=best.offer.name,
                offer_type=best.offer.type,
                discount_amount=best.discount_amount,
                discount_value=best.offer.discount_value,
                end_date=best.offer.end_date,
            ),
        )

    async def validate_promo_code(self, request: PromoCodeValidationRequest) -> DiscountResult:
        """Evaluate a promo code against a booking."""
        logger.info(f"Validating promo code {request.code} for tenant {request.tenant_id}")

        offer = await self.offer_repository.get_by_code(request.tenant_id, request.code)
        if not isinstance(offer, PromoCodeOffer):
            raise PromoCodeNotFoundException(request.code)

        current = utc_now()
        if not is_offer_valid(offer, current):
            raise PromoCodeNotApplicableException(request.code, "Offer is not currently active")

        if not is_offer_applicable_to_tour(offer, request.tour_id, request.option_type):
            raise PromoCodeNotApplicableException(
                request.code, "Offer does not apply to this tour"
            )

        context = OfferContext(
            travel_date=request.travel_date,
            party_size=request.party_size,
            promo_code=request.code,
            now=current,
        )
        result = calculate_discounted_price(request.subtotal, offer, context)
        if not result.is_applicable:
            raise PromoCodeNotApplicableException(request.code, result.reason or "Not applicable")

        return result

    async def redeem_offer(self, offer_id: UUID) -> RedeemOfferResponse:
        """Count one redemption.

        Called by the booking flow once a booking referencing the offer is
        stored. The usage cap is enforced by the storage update itself.
        """
        logger.info(f"Redeeming offer {offer_id}")

        redeemed = await self.offer_repository.increment_usage(offer_id)
        offer = await self.offer_repository.get_by_id(offer_id)

        if offer is None:
            raise OfferNotFoundException(str(offer_id))

        if not redeemed:
            raise OfferUsageLimitReachedException(str(offer_id))

        return RedeemOfferResponse(
            offer_id=offer.id,
            used_count=offer.used_count,
            usage_limit=offer.usage_limit,
        )

    def _applicable_offers(
        self,
        offers: Iterable[Offer],
        tour_id: str,
        option_type: Optional[str],
        travel_date: Optional[date],
        now: datetime,
    ) -> List[Offer]:
        return [
            offer
            for offer in offers
            if is_offer_valid(offer, now)
            and is_offer_applicable_to_tour(offer, tour_id, option_type)
            and is_offer_applicable_by_travel_date(offer, travel_date, now)
        ]

    def _best_offer_view(self, best: DiscountResult, now: datetime) -> BestOffer:
        return BestOffer(
            **dict(best),
            display_text=get_offer_display_text(best.offer, self.currency_symbol),
            time_remaining=format_offer_time_remaining(best.offer.end_date, now),
            show_urgency=should_show_urgency(best.offer.end_date, now),
        )

    def _badge(self, offer: Offer, now: datetime) -> OfferBadge:
        return OfferBadge(
            id=offer.id,
            name=offer.name,
            type=offer.type,
            discount_value=offer.discount_value,
            display_text=get_offer_display_text(offer, self.currency_symbol),
            badge_color=get_offer_badge_color(offer.type),
            is_featured=offer.is_featured,
            featured_badge_text=offer.featured_badge_text,
            time_remaining=format_offer_time_remaining(offer.end_date, now),
            show_urgency=should_show_urgency(offer.end_date, now),
            end_date=offer.end_date,
        )
