"""Tour Offer Service: special offers and discount evaluation for tour bookings."""

__version__ = "1.0.0"
