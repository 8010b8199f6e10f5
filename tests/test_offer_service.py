"""Tests for OfferService."""
import pytest
from unittest.mock import AsyncMock
from uuid import uuid4
from datetime import date, datetime, timedelta, timezone

from tour_offers.domain.exceptions import (
    OfferNotFoundException,
    OfferUsageLimitReachedException,
    PromoCodeNotApplicableException,
    PromoCodeNotFoundException,
    TourNotFoundException,
)
from tour_offers.domain.models import (
    BatchOffersRequest,
    BookingQuoteRequest,
    PromoCodeValidationRequest,
    TourInfo,
)
from tour_offers.infrastructure.repositories_postgres import PostgresOfferRepository
from tour_offers.services.offer_service import OfferService


def _in_days(days: int) -> date:
    return (datetime.now(timezone.utc) + timedelta(days=days)).date()


@pytest.mark.asyncio
async def test_get_tour_offers_picks_best(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tour_id: str,
    mock_tour_client: AsyncMock,
    make_offer,
) -> None:
    """Test tour offers with the best one pre-selected."""
    # Arrange
    await repository.create(make_offer(name="ten", discount_value=10))
    await repository.create(make_offer("fixed", name="fixed", discount_value=25))

    # Act
    response = await offer_service.get_tour_offers(tour_id)

    # Assert
    mock_tour_client.get_tour.assert_called_once_with(tour_id)
    assert response.original_price == 100.0
    assert response.has_offers is True
    assert response.offer_count == 2
    assert response.best_offer is not None
    assert response.best_offer.offer.name == "fixed"
    assert response.best_offer.discounted_price == 75.0
    assert response.best_offer.display_text == "$25 OFF"
    assert response.best_offer.time_remaining.endswith("left")


@pytest.mark.asyncio
async def test_get_tour_offers_uses_sale_price(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tour_id: str,
    tenant_id: str,
    mock_tour_client: AsyncMock,
    make_offer,
) -> None:
    """Test that the tour's discount price is the base for offers."""
    # Arrange
    mock_tour_client.get_tour = AsyncMock(
        return_value=TourInfo(tour_id=tour_id, tenant_id=tenant_id, price=100.0, discount_price=80.0)
    )
    await repository.create(make_offer(discount_value=50))

    # Act
    response = await offer_service.get_tour_offers(tour_id)

    # Assert
    assert response.original_price == 80.0
    assert response.best_offer.discounted_price == 40.0


@pytest.mark.asyncio
async def test_get_tour_offers_filters_by_tour_and_date(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tour_id: str,
    make_offer,
) -> None:
    """Test that offers for other tours or travel dates are left out."""
    # Arrange
    await repository.create(make_offer(name="other tour", applicable_tours=["tour-999"]))
    await repository.create(make_offer(name="excluded", excluded_tours=[tour_id]))
    await repository.create(make_offer("early_bird", name="early", min_days_in_advance=30))
    await repository.create(make_offer(name="general", discount_value=5))

    # Act
    response = await offer_service.get_tour_offers(tour_id, travel_date=_in_days(3))

    # Assert
    assert [summary.offer.name for summary in response.offers] == ["general"]
    assert response.best_offer.offer.name == "general"


@pytest.mark.asyncio
async def test_get_tour_offers_lists_promo_without_applying_it(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tour_id: str,
    make_offer,
) -> None:
    """Test that promo-code offers are shown but never auto-applied."""
    # Arrange
    await repository.create(make_offer("promo_code", discount_value=50, code="HALF"))

    # Act
    response = await offer_service.get_tour_offers(tour_id)

    # Assert
    assert response.offer_count == 1
    assert response.offers[0].display_text == "USE CODE"
    assert response.best_offer is None


@pytest.mark.asyncio
async def test_get_tour_offers_no_offers(
    offer_service: OfferService,
    tour_id: str,
) -> None:
    """Test a tour without offers."""
    response = await offer_service.get_tour_offers(tour_id)

    assert response.has_offers is False
    assert response.offer_count == 0
    assert response.best_offer is None


@pytest.mark.asyncio
async def test_get_tour_offers_tour_not_found(
    offer_service: OfferService,
    mock_tour_client: AsyncMock,
) -> None:
    """Test that a missing tour propagates."""
    # Arrange
    mock_tour_client.get_tour = AsyncMock(side_effect=TourNotFoundException("missing"))

    # Act & Assert
    with pytest.raises(TourNotFoundException):
        await offer_service.get_tour_offers("missing")


@pytest.mark.asyncio
async def test_get_batch_offers(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tenant_id: str,
    make_offer,
) -> None:
    """Test listing-page badges per tour."""
    # Arrange
    await repository.create(make_offer(name="everywhere", discount_value=10))
    await repository.create(
        make_offer(name="featured", discount_value=5, priority=5, applicable_tours=["tour-a"])
    )
    await repository.create(make_offer(name="not b", excluded_tours=["tour-b"]))
    await repository.create(make_offer("promo_code", name="promo", code="SECRET"))

    # Act
    summaries = await offer_service.get_batch_offers(
        BatchOffersRequest(tenant_id=tenant_id, tour_ids=["tour-a", "tour-b"])
    )

    # Assert
    by_tour = {summary.tour_id: summary for summary in summaries}
    assert by_tour["tour-a"].offer_count == 3
    assert by_tour["tour-a"].best_offer.name == "featured"
    assert by_tour["tour-b"].offer_count == 1
    assert by_tour["tour-b"].best_offer.name == "everywhere"
    assert by_tour["tour-b"].best_offer.display_text == "10% OFF"


@pytest.mark.asyncio
async def test_get_batch_offers_tour_without_offers(
    offer_service: OfferService,
    tenant_id: str,
) -> None:
    """Test that tours without offers are still reported."""
    summaries = await offer_service.get_batch_offers(
        BatchOffersRequest(tenant_id=tenant_id, tour_ids=["tour-x"])
    )

    assert len(summaries) == 1
    assert summaries[0].has_offer is False
    assert summaries[0].best_offer is None


@pytest.mark.asyncio
async def test_quote_booking_applies_best_offer(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tenant_id: str,
    tour_id: str,
    make_offer,
) -> None:
    """Test server-side booking price."""
    # Arrange
    await repository.create(make_offer(name="ten", discount_value=10))
    group = await repository.create(make_offer("group", name="group", discount_value=20, min_group_size=4))
    request = BookingQuoteRequest(
        tenant_id=tenant_id,
        tour_id=tour_id,
        travel_date=_in_days(10),
        party_size=4,
        subtotal=400.0,
    )

    # Act
    quote = await offer_service.quote_booking(request)

    # Assert
    assert quote.original_price == 400.0
    assert quote.discount_amount == 80.0
    assert quote.final_price == 320.0
    assert quote.applied_offer is not None
    assert quote.applied_offer.id == group.id
    assert quote.applied_offer.offer_type == "group"
    assert quote.applied_offer.discount_value == 20


@pytest.mark.asyncio
async def test_quote_booking_with_promo_code(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tenant_id: str,
    tour_id: str,
    make_offer,
) -> None:
    """Test that an entered promo code competes with automatic offers."""
    # Arrange
    await repository.create(make_offer(name="ten", discount_value=10))
    await repository.create(make_offer("promo_code", name="promo", discount_value=30, code="SAVE30"))
    request = BookingQuoteRequest(
        tenant_id=tenant_id,
        tour_id=tour_id,
        travel_date=_in_days(10),
        subtotal=100.0,
        promo_code="save30",
    )

    # Act
    quote = await offer_service.quote_booking(request)

    # Assert
    assert quote.applied_offer.name == "promo"
    assert quote.final_price == 70.0


@pytest.mark.asyncio
async def test_quote_booking_without_offer(
    offer_service: OfferService,
    tenant_id: str,
    tour_id: str,
) -> None:
    """Test a quote when nothing applies."""
    request = BookingQuoteRequest(
        tenant_id=tenant_id, tour_id=tour_id, travel_date=_in_days(10), subtotal=150.0
    )

    quote = await offer_service.quote_booking(request)

    assert quote.final_price == 150.0
    assert quote.discount_amount == 0.0
    assert quote.applied_offer is None


@pytest.mark.asyncio
async def test_validate_promo_code(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tenant_id: str,
    tour_id: str,
    make_offer,
) -> None:
    """Test a valid promo code."""
    # Arrange
    await repository.create(make_offer("promo_code", discount_value=15, code="WELCOME"))
    request = PromoCodeValidationRequest(
        tenant_id=tenant_id, code="welcome", tour_id=tour_id, subtotal=200.0
    )

    # Act
    result = await offer_service.validate_promo_code(request)

    # Assert
    assert result.is_applicable is True
    assert result.discount_amount == 30.0
    assert result.discounted_price == 170.0


@pytest.mark.asyncio
async def test_validate_promo_code_not_found(
    offer_service: OfferService,
    tenant_id: str,
    tour_id: str,
) -> None:
    """Test an unknown promo code."""
    request = PromoCodeValidationRequest(
        tenant_id=tenant_id, code="NOPE", tour_id=tour_id, subtotal=100.0
    )

    with pytest.raises(PromoCodeNotFoundException):
        await offer_service.validate_promo_code(request)


@pytest.mark.asyncio
async def test_validate_promo_code_minimum_not_met(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tenant_id: str,
    tour_id: str,
    make_offer,
) -> None:
    """Test a promo code below its minimum booking value."""
    # Arrange
    await repository.create(make_offer("promo_code", code="BIG", min_booking_value=500))
    request = PromoCodeValidationRequest(
        tenant_id=tenant_id, code="BIG", tour_id=tour_id, subtotal=100.0
    )

    # Act & Assert
    with pytest.raises(PromoCodeNotApplicableException) as exc_info:
        await offer_service.validate_promo_code(request)
    assert exc_info.value.reason == "Minimum booking value of $500 required"


@pytest.mark.asyncio
async def test_validate_promo_code_wrong_tour(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tenant_id: str,
    tour_id: str,
    make_offer,
) -> None:
    """Test a promo code restricted to other tours."""
    # Arrange
    await repository.create(make_offer("promo_code", code="ONLYB", applicable_tours=["tour-b"]))
    request = PromoCodeValidationRequest(
        tenant_id=tenant_id, code="ONLYB", tour_id=tour_id, subtotal=100.0
    )

    # Act & Assert
    with pytest.raises(PromoCodeNotApplicableException):
        await offer_service.validate_promo_code(request)


@pytest.mark.asyncio
async def test_validate_expired_promo_code(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    tenant_id: str,
    tour_id: str,
    make_offer,
) -> None:
    """Test a promo code whose offer has ended."""
    # Arrange
    current = datetime.now(timezone.utc)
    await repository.create(
        make_offer(
            "promo_code",
            code="OLD",
            start_date=current - timedelta(days=30),
            end_date=current - timedelta(days=3),
        )
    )
    request = PromoCodeValidationRequest(
        tenant_id=tenant_id, code="OLD", tour_id=tour_id, subtotal=100.0
    )

    # Act & Assert
    with pytest.raises(PromoCodeNotApplicableException) as exc_info:
        await offer_service.validate_promo_code(request)
    assert exc_info.value.reason == "Offer is not currently active"


@pytest.mark.asyncio
async def test_redeem_offer(
    offer_service: OfferService,
    repository: PostgresOfferRepository,
    make_offer,
) -> None:
    """Test counting redemptions up to the limit."""
    # Arrange
    offer = await repository.create(make_offer(usage_limit=1))

    # Act
    response = await offer_service.redeem_offer(offer.id)

    # Assert
    assert response.used_count == 1
    assert response.usage_limit == 1
    with pytest.raises(OfferUsageLimitReachedException):
        await offer_service.redeem_offer(offer.id)


@pytest.mark.asyncio
async def test_redeem_unknown_offer(offer_service: OfferService) -> None:
    """Test redeeming an offer that does not exist."""
    with pytest.raises(OfferNotFoundException):
        await offer_service.redeem_offer(uuid4())
