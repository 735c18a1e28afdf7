"""Price breakdown engine.

Steps run in a fixed order and each monetary step is rounded to cents
(half-up) before the next one uses it:

1. sub_total = sum of nightly rates
2. discount_percent = monthly (>= 30 nights) else weekly (>= 7 nights) else 0
3. discounted_sub_total = sub_total - discount
4. cleaning_fee
5. pet_fee (only when pets are travelling)
6. booking_fee = (discounted_sub_total + cleaning + pet) * guest fee %
7. vat = (discounted_sub_total + cleaning + pet + booking_fee) * VAT %
8. total = sum of the above
"""

import logging
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.schemas.pricing import (
    GuestInfo,
    NightlyRate,
    PriceBreakdown,
    PriceRulesData,
    ServiceFeesData,
)

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
WEEKLY_THRESHOLD_NIGHTS = 7
MONTHLY_THRESHOLD_NIGHTS = 30

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def to_cents(amount: Decimal | int | float | str) -> Decimal:
    return Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    return to_cents(amount * Decimal(percent) / _HUNDRED)


def select_discount_percent(nights: int, price_rules: PriceRulesData | None) -> Decimal:
    """Return the single length-of-stay discount tier for ``nights``.

    Tiers are exclusive and the longer tier wins whenever its threshold is
    met, even if the weekly percentage is larger.
    """
    if price_rules is None:
        return _ZERO
    if nights >= MONTHLY_THRESHOLD_NIGHTS:
        return Decimal(price_rules.monthly_discount or _ZERO)
    if nights >= WEEKLY_THRESHOLD_NIGHTS:
        return Decimal(price_rules.weekly_discount or _ZERO)
    return _ZERO


def serialize_breakdown(breakdown: PriceBreakdown) -> str:
    return breakdown.model_dump_json()


def compute_breakdown(
    nightly_rates: Sequence[NightlyRate],
    price_rules: PriceRulesData | None,
    guest_info: GuestInfo,
    service_fees: ServiceFeesData,
    vat_percent: Decimal,
    currency: str = "eur",
    max_bytes: int | None = None,
    include_nightly: bool = True,
) -> PriceBreakdown:
    """Compose the itemized price for a stay.

    Deterministic: identical inputs always serialize to identical bytes.

    Raises:
        BookingError: ``SerializedBreakdownTooLarge`` when ``max_bytes`` is
            given and the serialized breakdown exceeds it. Callers retry with
            ``include_nightly=False``.
    """
    rates = [NightlyRate(date=r.date, rate=to_cents(r.rate)) for r in nightly_rates]
    nights = len(rates)

    sub_total = to_cents(sum((r.rate for r in rates), _ZERO))
    discount_percent = select_discount_percent(nights, price_rules)
    discount = _percent_of(sub_total, discount_percent)
    discounted_sub_total = sub_total - discount

    cleaning_fee = to_cents(price_rules.cleaning_fee) if price_rules is not None else to_cents(_ZERO)
    if price_rules is not None and guest_info.pets > 0:
        pet_fee = to_cents(price_rules.pet_fee)
    else:
        pet_fee = to_cents(_ZERO)

    fee_base = discounted_sub_total + cleaning_fee + pet_fee
    booking_fee = _percent_of(fee_base, service_fees.guest_booking_fee_percent)
    vat = _percent_of(fee_base + booking_fee, vat_percent)
    total = fee_base + booking_fee + vat

    breakdown = PriceBreakdown(
        currency=currency,
        nights=nights,
        nightly_rates=rates if include_nightly else None,
        sub_total=sub_total,
        discount_percent=Decimal(discount_percent),
        discount=discount,
        discounted_sub_total=discounted_sub_total,
        cleaning_fee=cleaning_fee,
        pet_fee=pet_fee,
        booking_fee_percent=Decimal(service_fees.guest_booking_fee_percent),
        booking_fee=booking_fee,
        vat_percent=Decimal(vat_percent),
        vat=vat,
        total=total,
        guest_info=guest_info,
        service_fees=service_fees,
    )

    if max_bytes is not None:
        size = len(serialize_breakdown(breakdown).encode("utf-8"))
        if size > max_bytes:
            raise BookingError(
                ErrorKind.SERIALIZED_BREAKDOWN_TOO_LARGE,
                f"Serialized breakdown is {size} bytes, limit is {max_bytes}.",
            )
    return breakdown


def compute_storable_breakdown(
    nightly_rates: Sequence[NightlyRate],
    price_rules: PriceRulesData | None,
    guest_info: GuestInfo,
    service_fees: ServiceFeesData,
    vat_percent: Decimal,
    currency: str,
    max_bytes: int,
) -> PriceBreakdown:
    """Compute a breakdown that fits ``max_bytes``, dropping per-night detail if needed."""
    try:
        return compute_breakdown(
            nightly_rates, price_rules, guest_info, service_fees, vat_percent, currency, max_bytes
        )
    except BookingError as exc:
        if exc.kind != ErrorKind.SERIALIZED_BREAKDOWN_TOO_LARGE:
            raise
        logger.error("%s; retrying without nightly detail (%d nights)", exc.message, len(nightly_rates))
    return compute_breakdown(
        nightly_rates,
        price_rules,
        guest_info,
        service_fees,
        vat_percent,
        currency,
        max_bytes,
        include_nightly=False,
    )
