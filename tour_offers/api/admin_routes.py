"""Admin API routes for managing special offers."""
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from prometheus_client import Counter

from tour_offers.domain.exceptions import (
    DuplicateOfferCodeException,
    InvalidOfferException,
    OfferNotFoundException,
)
from tour_offers.domain.models import Offer, OfferListResponse, OfferType
from tour_offers.services.offer_admin_service import OfferAdminService

from .dependencies import get_offer_admin_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/special-offers", tags=["admin"])

offer_admin_counter = Counter(
    "offer_admin_operations_total",
    "Total number of offer admin operations",
    ["operation", "status"],
)


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": code, "message": message})


def _internal_error() -> HTTPException:
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal server error"
    )


@router.get("", response_model=OfferListResponse)
async def list_offers(
    tenant_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    offer_type: Optional[OfferType] = Query(default=None, alias="type"),
    service: OfferAdminService = Depends(get_offer_admin_service),
) -> OfferListResponse:
    """List offers, highest priority first."""
    try:
        offers = await service.list_offers(tenant_id, is_active, offer_type)
        offer_admin_counter.labels(operation="list", status="success").inc()
        return OfferListResponse(data=offers, count=len(offers))
    except Exception as e:
        logger.exception(f"Unexpected error listing offers: {e}")
        offer_admin_counter.labels(operation="list", status="error").inc()
        raise _internal_error()


@router.post("", response_model=Offer, status_code=status.HTTP_201_CREATED)
async def create_offer(
    payload: Dict[str, Any] = Body(...),
    service: OfferAdminService = Depends(get_offer_admin_service),
) -> Offer:
    """Create an offer. The ``type`` field selects the offer variant."""
    try:
        offer = await service.create_offer(payload)
        offer_admin_counter.labels(operation="create", status="success").inc()
        return offer
    except InvalidOfferException as e:
        logger.warning(f"Invalid offer: {e}")
        offer_admin_counter.labels(operation="create", status="invalid").inc()
        raise _error(status.HTTP_400_BAD_REQUEST, e.code, e.message)
    except DuplicateOfferCodeException as e:
        logger.warning(f"Duplicate offer code: {e}")
        offer_admin_counter.labels(operation="create", status="duplicate").inc()
        raise _error(status.HTTP_409_CONFLICT, e.code, e.message)
    except Exception as e:
        logger.exception(f"Unexpected error creating offer: {e}")
        offer_admin_counter.labels(operation="create", status="error").inc()
        raise _internal_error()


@router.get("/{offer_id}", response_model=Offer)
async def get_offer(
    offer_id: UUID,
    service: OfferAdminService = Depends(get_offer_admin_service),
) -> Offer:
    """Get one offer."""
    try:
        offer = await service.get_offer(offer_id)
        offer_admin_counter.labels(operation="get", status="success").inc()
        return offer
    except OfferNotFoundException as e:
        logger.warning(f"Offer not found: {e}")
        offer_admin_counter.labels(operation="get", status="not_found").inc()
        raise _error(status.HTTP_404_NOT_FOUND, e.code, e.message)
    except Exception as e:
        logger.exception(f"Unexpected error getting offer: {e}")
        offer_admin_counter.labels(operation="get", status="error").inc()
        raise _internal_error()


@router.put("/{offer_id}", response_model=Offer)
async def update_offer(
    offer_id: UUID,
    changes: Dict[str, Any] = Body(...),
    service: OfferAdminService = Depends(get_offer_admin_service),
) -> Offer:
    """Partially update an offer."""
    try:
        offer = await service.update_offer(offer_id, changes)
        offer_admin_counter.labels(operation="update", status="success").inc()
        return offer
    except OfferNotFoundException as e:
        logger.warning(f"Offer not found for update: {e}")
        offer_admin_counter.labels(operation="update", status="not_found").inc()
        raise _error(status.HTTP_404_NOT_FOUND, e.code, e.message)
    except InvalidOfferException as e:
        logger.warning(f"Invalid offer update: {e}")
        offer_admin_counter.labels(operation="update", status="invalid").inc()
        raise _error(status.HTTP_400_BAD_REQUEST, e.code, e.message)
    except DuplicateOfferCodeException as e:
        logger.warning(f"Duplicate offer code: {e}")
        offer_admin_counter.labels(operation="update", status="duplicate").inc()
        raise _error(status.HTTP_409_CONFLICT, e.code, e.message)
    except Exception as e:
        logger.exception(f"Unexpected error updating offer: {e}")
        offer_admin_counter.labels(operation="update", status="error").inc()
        raise _internal_error()


@router.delete("/{offer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_offer(
    offer_id: UUID,
    service: OfferAdminService = Depends(get_offer_admin_service),
) -> None:
    """Delete an offer."""
    try:
        await service.delete_offer(offer_id)
        offer_admin_counter.labels(operation="delete", status="success").inc()
    except OfferNotFoundException as e:
        logger.warning(f"Offer not found for delete: {e}")
        offer_admin_counter.labels(operation="delete", status="not_found").inc()
        raise _error(status.HTTP_404_NOT_FOUND, e.code, e.message)
    except Exception as e:
        logger.exception(f"Unexpected error deleting offer: {e}")
        offer_admin_counter.labels(operation="delete", status="error").inc()
        raise _internal_error()
