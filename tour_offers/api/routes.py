"""Storefront API routes."""
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from prometheus_client import Counter, Histogram

from tour_offers.domain.exceptions import (
    DomainException,
    OfferNotFoundException,
    OfferUsageLimitReachedException,
    PromoCodeNotApplicableException,
    PromoCodeNotFoundException,
    TourCatalogUnavailableException,
    TourNotFoundException,
)
from tour_offers.domain.models import (
    BatchOffersRequest,
    BookingQuoteRequest,
    BookingQuoteResponse,
    DiscountResult,
    PromoCodeValidationRequest,
    RedeemOfferResponse,
    TourOfferSummary,
    TourOffersResponse,
)
from tour_offers.services.offer_service import OfferService

from .dependencies import get_offer_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/offers", tags=["offers"])

# Prometheus metrics
tour_offers_counter = Counter(
    "tour_offers_requests_total", "Total number of tour offer lookups", ["status"]
)
batch_offers_counter = Counter(
    "batch_offers_requests_total", "Total number of batch offer lookups", ["status"]
)
quote_counter = Counter(
    "booking_quote_total", "Total number of booking quotes", ["status"]
)
promo_validate_counter = Counter(
    "promo_code_validate_total", "Total number of promo code validations", ["status"]
)
offer_redeem_counter = Counter(
    "offer_redeem_total", "Total number of offer redemptions", ["status"]
)
quote_duration = Histogram(
    "booking_quote_duration_seconds", "Time spent quoting bookings"
)


def _http_error(status_code: int, e: DomainException) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"code": e.code, "message": e.message},
    )


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "INTERNAL_ERROR", "message": "Internal server error"},
    )


@router.get("/tour/{tour_id}", response_model=TourOffersResponse)
async def get_tour_offers(
    tour_id: str,
    travel_date: Optional[date] = None,
    group_size: int = Query(default=1, ge=1),
    option_type: Optional[str] = None,
    service: OfferService = Depends(get_offer_service),
) -> TourOffersResponse:
    """Offers applicable to a tour, with the best one pre-selected.

    Used by the tour detail page and the booking widget.
    """
    try:
        response = await service.get_tour_offers(tour_id, travel_date, group_size, option_type)
        tour_offers_counter.labels(status="success").inc()
        return response
    except TourNotFoundException as e:
        logger.warning(f"Tour not found: {e}")
        tour_offers_counter.labels(status="tour_not_found").inc()
        raise _http_error(status.HTTP_404_NOT_FOUND, e)
    except TourCatalogUnavailableException as e:
        logger.error(f"Tour catalog unavailable: {e}")
        tour_offers_counter.labels(status="catalog_unavailable").inc()
        raise _http_error(status.HTTP_503_SERVICE_UNAVAILABLE, e)
    except Exception as e:
        logger.exception(f"Unexpected error getting tour offers: {e}")
        tour_offers_counter.labels(status="error").inc()
        raise _internal_error()


@router.post("/batch", response_model=List[TourOfferSummary])
async def get_batch_offers(
    request: BatchOffersRequest,
    service: OfferService = Depends(get_offer_service),
) -> List[TourOfferSummary]:
    """Best offer badge for each tour of a listing page."""
    try:
        response = await service.get_batch_offers(request)
        batch_offers_counter.labels(status="success").inc()
        return response
    except Exception as e:
        logger.exception(f"Unexpected error getting batch offers: {e}")
        batch_offers_counter.labels(status="error").inc()
        raise _internal_error()


@router.post("/quote", response_model=BookingQuoteResponse)
async def quote_booking(
    request: BookingQuoteRequest,
    service: OfferService = Depends(get_offer_service),
) -> BookingQuoteResponse:
    """Price a booking with the best offer.

    The booking service stores ``applied_offer`` on the booking record.
    """
    try:
        with quote_duration.time():
            response = await service.quote_booking(request)
        quote_counter.labels(status="success").inc()
        return response
    except Exception as e:
        logger.exception(f"Unexpected error quoting booking: {e}")
        quote_counter.labels(status="error").inc()
        raise _internal_error()


@router.post("/promo/validate", response_model=DiscountResult)
async def validate_promo_code(
    request: PromoCodeValidationRequest,
    service: OfferService = Depends(get_offer_service),
) -> DiscountResult:
    """Check a promo code entered at checkout."""
    try:
        response = await service.validate_promo_code(request)
        promo_validate_counter.labels(status="success").inc()
        return response
    except PromoCodeNotFoundException as e:
        logger.warning(f"Promo code not found: {e}")
        promo_validate_counter.labels(status="not_found").inc()
        raise _http_error(status.HTTP_404_NOT_FOUND, e)
    except PromoCodeNotApplicableException as e:
        logger.warning(f"Promo code not applicable: {e}")
        promo_validate_counter.labels(status="not_applicable").inc()
        raise _http_error(status.HTTP_409_CONFLICT, e)
    except Exception as e:
        logger.exception(f"Unexpected error validating promo code: {e}")
        promo_validate_counter.labels(status="error").inc()
        raise _internal_error()


@router.post("/{offer_id}/redeem", response_model=RedeemOfferResponse)
async def redeem_offer(
    offer_id: UUID,
    service: OfferService = Depends(get_offer_service),
) -> RedeemOfferResponse:
    """Count one redemption of an offer.

    Called by the booking service after the booking is stored.
    """
    try:
        response = await service.redeem_offer(offer_id)
        offer_redeem_counter.labels(status="success").inc()
        return response
    except OfferNotFoundException as e:
        logger.warning(f"Offer not found for redemption: {e}")
        offer_redeem_counter.labels(status="not_found").inc()
        raise _http_error(status.HTTP_404_NOT_FOUND, e)
    except OfferUsageLimitReachedException as e:
        logger.warning(f"Offer usage limit reached: {e}")
        offer_redeem_counter.labels(status="limit_reached").inc()
        raise _http_error(status.HTTP_409_CONFLICT, e)
    except Exception as e:
        logger.exception(f"Unexpected error redeeming offer: {e}")
        offer_redeem_counter.labels(status="error").inc()
        raise _internal_error()
