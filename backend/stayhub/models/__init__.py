"""SQLAlchemy models for StayHub.

All models are imported here so that ``Base.metadata`` sees every table
before ``create_all`` runs. If you add a new model, import it in this file.
"""

from stayhub.models.booking import BookedNight, Booking
from stayhub.models.pricing import BookingRules, PriceAdjustment, PriceRules, ServiceFees
from stayhub.models.property import Property

__all__ = [
    "BookedNight",
    "Booking",
    "BookingRules",
    "PriceAdjustment",
    "PriceRules",
    "Property",
    "ServiceFees",
]
