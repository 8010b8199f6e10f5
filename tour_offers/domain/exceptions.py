"""Domain exceptions for Tour Offer Service."""


class DomainException(Exception):
    """Base domain exception."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class OfferNotFoundException(DomainException):
    """Offer not found exception."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(
            message=f"Offer with id {offer_id} not found",
            code="OFFER_NOT_FOUND",
        )


class OfferUsageLimitReachedException(DomainException):
    """Offer has no redemptions left."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(
            message=f"Offer {offer_id} has reached its usage limit",
            code="OFFER_USAGE_LIMIT_REACHED",
        )


class InvalidOfferException(DomainException):
    """Offer data rejected by validation."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message=message,
            code="INVALID_OFFER",
        )


class DuplicateOfferCodeException(DomainException):
    """Promo code already used by another offer of the tenant."""

    def __init__(self, code: str, tenant_id: str) -> None:
        super().__init__(
            message=f"Offer code {code} already exists for tenant {tenant_id}",
            code="DUPLICATE_OFFER_CODE",
        )


class PromoCodeNotFoundException(DomainException):
    """Promo code not found exception."""

    def __init__(self, code: str) -> None:
        super().__init__(
            message=f"Promo code {code} not found",
            code="PROMO_CODE_NOT_FOUND",
        )


class PromoCodeNotApplicableException(DomainException):
    """Promo code exists but cannot be used for this booking."""

    def __init__(self, code: str, reason: str) -> None:
        self.reason = reason
        super().__init__(
            message=f"Promo code {code} cannot be applied: {reason}",
            code="PROMO_CODE_NOT_APPLICABLE",
        )


class TourNotFoundException(DomainException):
    """Tour not found exception."""

    def __init__(self, tour_id: str) -> None:
        super().__init__(
            message=f"Tour {tour_id} not found",
            code="TOUR_NOT_FOUND",
        )


class TourCatalogUnavailableException(DomainException):
    """Tour catalog unavailable exception."""

    def __init__(self) -> None:
        super().__init__(
            message="Tour catalog is unavailable",
            code="TOUR_CATALOG_UNAVAILABLE",
        )
