"""Typed decoding for external payloads that may arrive double-encoded."""

import json
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from stayhub.booking.errors import BookingError, ErrorKind

ModelT = TypeVar("ModelT", bound=BaseModel)


def _load(raw: bytes | str | Mapping[str, Any]) -> Any:
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if not raw.strip():
        raise BookingError(ErrorKind.MALFORMED_PAYLOAD, "Payload is empty.")
    return json.loads(raw)


def decode_payload(raw: bytes | str | Mapping[str, Any], model: type[ModelT]) -> ModelT:
    """Parse ``raw`` into ``model``.

    Accepts a mapping, a JSON document, or a JSON document whose ``data`` key
    holds the real payload as a JSON string (one level of unwrapping).

    Raises:
        BookingError: ``MalformedPayload`` for invalid JSON or a payload that
            fails validation.
    """
    try:
        payload = _load(raw)
        if isinstance(payload, dict) and isinstance(payload.get("data"), str):
            payload = json.loads(payload["data"])
        if not isinstance(payload, dict):
            raise BookingError(ErrorKind.MALFORMED_PAYLOAD, "Payload must be a JSON object.")
        return model.model_validate(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BookingError(ErrorKind.MALFORMED_PAYLOAD, f"Payload is not valid JSON: {exc}") from exc
    except ValidationError as exc:
        raise BookingError(ErrorKind.MALFORMED_PAYLOAD, f"Payload failed validation: {exc}") from exc
