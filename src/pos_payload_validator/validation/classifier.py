"""Payload classification.

Decides which schema family a raw payload should be validated against.
Classification is provisional: it picks the schema, it does not decide
validity.
"""

import json
from collections.abc import Mapping
from typing import Any

from pos_payload_validator.models.validation_models import RequestType

UNKNOWN_REQUEST_TYPE_MESSAGE = (
    "Could not determine the request type. "
    "Ensure the payload has an `items` or `orderId` top-level key."
)

MALFORMED_PAYLOAD_MESSAGE = "Request body is not a valid JSON."


class MalformedPayloadError(ValueError):
    """Raised when a text body cannot be decoded as JSON."""


def parse_payload(payload: Any) -> Any:
    """Decode a JSON text body, leaving already-parsed values untouched.

    Args:
        payload: Parsed JSON value, or a str/bytes body that may be JSON encoded

    Returns:
        The decoded value

    Raises:
        MalformedPayloadError: If a text body is not valid JSON or is nested too deeply
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayloadError(str(e)) from e

    if not isinstance(payload, str):
        return payload

    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedPayloadError(str(e)) from e
    except RecursionError as e:
        raise MalformedPayloadError("JSON nesting is too deep") from e


def coerce_payload(payload: Any) -> Any:
    """Attempt to decode a JSON text body, falling back to the raw value."""
    try:
        return parse_payload(payload)
    except MalformedPayloadError:
        return payload


def classify(payload: Any) -> RequestType:
    """Classify a payload as a menu push, an order payload or unknown.

    Rules, in order:
    1. A non-empty ``items`` mapping and no ``orderId`` key is a menu push.
    2. Any payload with an ``orderId`` key is an order payload.
    3. Anything else is unknown.

    Args:
        payload: Parsed payload, or a string that may be JSON encoded

    Returns:
        The candidate request type
    """
    payload = coerce_payload(payload)
    if not isinstance(payload, Mapping):
        return RequestType.UNKNOWN

    items = payload.get("items")
    if isinstance(items, Mapping) and items and "orderId" not in payload:
        return RequestType.MENU_PUSH

    if "orderId" in payload:
        return RequestType.ORDER_PAYLOAD

    return RequestType.UNKNOWN
