"""Push confirmed bookings to the host-facing reporting table.

Runs as a background task after the confirmation has committed. Export
failures are logged and retried here; they never touch the booking.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from stayhub.booking.errors import BookingError
from stayhub.booking.payloads import decode_payload
from stayhub.config import settings
from stayhub.models.booking import Booking
from stayhub.schemas.payment import BookingExportRecord

logger = logging.getLogger(__name__)


def build_export_record(booking: Booking) -> BookingExportRecord:
    """Snapshot the exported booking fields (call while the booking is loaded)."""
    return BookingExportRecord(
        booking_reference=booking.booking_reference,
        status=booking.status,
        user_id=booking.user_id,
        cancellation_policy=booking.cancellation_policy,
        start_date=booking.start_date,
        end_date=booking.end_date,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
        total_price=booking.total_price,
        adults=booking.adults,
        children=booking.children,
        babies=booking.babies,
        pets=booking.pets,
        property_id=str(booking.property_id),
        host_id=booking.property.host_id if booking.property is not None else None,
        payment_id=booking.payment_id,
        customer_email=booking.customer_email,
    )


def map_columns(record: BookingExportRecord, column_map: Mapping[str, str]) -> dict[str, Any]:
    """Rename record fields to the external table's column ids; unmapped fields are dropped."""
    values = record.model_dump(mode="json")
    return {column: values[field] for field, column in column_map.items() if field in values}


def build_mutation(record: BookingExportRecord) -> dict[str, Any]:
    return {
        "appID": settings.export_app_id,
        "mutations": [
            {
                "kind": "add-row-to-table",
                "tableName": settings.export_table_name,
                "columnValues": map_columns(record, settings.export_column_map),
            }
        ],
    }


async def push_booking(
    payload: BookingExportRecord | Mapping[str, Any] | str | bytes,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Post one booking row, retrying with exponential backoff.

    Returns True once the export endpoint accepts the row, False when the
    payload is malformed or every attempt failed.
    """
    if not settings.export_enabled:
        logger.debug("Booking export disabled, skipping")
        return False

    if isinstance(payload, BookingExportRecord):
        record = payload
    else:
        try:
            record = decode_payload(payload, BookingExportRecord)
        except BookingError as e:
            logger.error("Dropping booking export: %s", e.message)
            return False

    body = build_mutation(record)
    headers = {"Authorization": f"Bearer {settings.export_api_key}"}
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=settings.export_timeout_seconds)

    try:
        for attempt in range(1, settings.export_max_attempts + 1):
            try:
                response = await client.post(settings.export_endpoint, json=body, headers=headers)
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(
                    "Export of booking %s failed (attempt %d/%d): %s",
                    record.booking_reference,
                    attempt,
                    settings.export_max_attempts,
                    e,
                )
                if attempt < settings.export_max_attempts:
                    await asyncio.sleep(settings.export_retry_backoff_seconds * 2 ** (attempt - 1))
                continue
            logger.info("Exported booking %s to reporting table", record.booking_reference)
            return True
    finally:
        if owns_client:
            await client.aclose()

    logger.error(
        "Giving up exporting booking %s after %d attempts",
        record.booking_reference,
        settings.export_max_attempts,
    )
    return False
