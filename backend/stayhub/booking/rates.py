"""Nightly rate resolution.

Priority per night: unblocked override price, then weekend/weekday base rate
from the property's price rules, then the property's flat nightly price when
no price rules are configured.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from stayhub.booking.dates import is_weekend
from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.schemas.pricing import AdjustmentData, NightlyRate, PriceRulesData


def _override_prices(adjustments: Iterable[AdjustmentData]) -> dict[date, Decimal]:
    return {
        adj.date: adj.override_price
        for adj in adjustments
        if not adj.blocked and adj.override_price is not None
    }


def resolve_nightly_rates(
    nights: Sequence[date],
    price_rules: PriceRulesData | None,
    adjustments: Iterable[AdjustmentData] = (),
    price_per_night: Decimal | None = None,
) -> list[NightlyRate]:
    """Return one ``NightlyRate`` per night, in input order.

    Raises:
        BookingError: ``MissingPriceRules`` when neither price rules nor a
            flat ``price_per_night`` are available.
    """
    if price_rules is None and price_per_night is None:
        raise BookingError(
            ErrorKind.MISSING_PRICE_RULES,
            "No price rules or nightly price are configured for this property.",
        )

    overrides = _override_prices(adjustments)
    rates = []
    for night in nights:
        if night in overrides:
            rate = overrides[night]
        elif price_rules is None:
            rate = price_per_night
        elif is_weekend(night):
            rate = price_rules.base_price_per_night_weekend
        else:
            rate = price_rules.base_price_per_night
        rates.append(NightlyRate(date=night, rate=Decimal(rate)))
    return rates
