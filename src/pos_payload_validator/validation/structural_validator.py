"""Structural validation of classified payloads.

Runs a payload through the schema of its request type and reports every
violation found, in the order the schema evaluator discovers them.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from pos_payload_validator.models.catalog_models import CATALOG_ITEM_TYPES, MenuPushPayload
from pos_payload_validator.models.order_models import OrderPayload
from pos_payload_validator.models.validation_models import RequestType, Violation

logger = logging.getLogger(__name__)

SCHEMAS: dict[RequestType, type[BaseModel]] = {
    RequestType.MENU_PUSH: MenuPushPayload,
    RequestType.ORDER_PAYLOAD: OrderPayload,
}


def describe_json_type(value: Any) -> str:
    """Name the JSON type of a decoded value (``object``, ``array``, ``number``...)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def find_violations(payload: Any, request_type: RequestType) -> list[Violation]:
    """Validate a payload against the schema of its request type.

    Args:
        payload: Decoded payload
        request_type: Classified request type, must not be UNKNOWN

    Returns:
        Every violation found, empty when the payload is valid

    Raises:
        ValueError: If no schema exists for the request type
    """
    schema = SCHEMAS.get(request_type)
    if schema is None:
        raise ValueError(f"No schema registered for request type {request_type.value!r}")

    try:
        schema.model_validate(payload)
    except ValidationError as e:
        violations = [_to_violation(error, payload, request_type) for error in e.errors()]
        logger.debug(
            f"{request_type.value} payload failed structural validation "
            f"with {len(violations)} violation(s)"
        )
        return violations

    return []


def _to_violation(error: Any, payload: Any, request_type: RequestType) -> Violation:
    """Convert a pydantic error entry into a Violation."""
    path = tuple(error["loc"])
    message = error["msg"]
    received = None if error["type"] == "missing" else error.get("input")
    expected = (error.get("ctx") or {}).get("expected", error["type"])

    if request_type is RequestType.MENU_PUSH and len(path) >= 2 and path[0] == "items":
        return _to_catalog_item_violation(error, payload, path, message, received, expected)

    return Violation(path=path, message=message, received_value=received, expected=expected)


def _to_catalog_item_violation(
    error: Any,
    payload: Any,
    path: tuple[str | int, ...],
    message: str,
    received: Any,
    expected: Any,
) -> Violation:
    """Normalize errors raised inside the discriminated item union.

    The union reports the selected tag as an extra path segment
    (``items.prod_1.Product.title``); it is dropped so paths mirror the payload.
    """
    item_id = path[1]
    items = payload.get("items") if isinstance(payload, Mapping) else None
    item = items.get(item_id) if isinstance(items, Mapping) else None

    if len(path) == 2 and not isinstance(item, Mapping):
        return Violation(
            path=path,
            message=f"Expected object, received {describe_json_type(item)}.",
            received_value=item,
            expected="object",
        )

    tag = item.get("type") if isinstance(item, Mapping) else None

    if error["type"] == "union_tag_invalid":
        return Violation(
            path=("items", item_id, "type"),
            message=(
                f"Unrecognized item type '{tag}'. "
                f"Expected one of: {', '.join(CATALOG_ITEM_TYPES)}."
            ),
            received_value=tag,
            expected=CATALOG_ITEM_TYPES,
        )

    if error["type"] == "union_tag_not_found":
        return Violation(
            path=("items", item_id, "type"),
            message="Item type is required.",
            received_value=None,
            expected=CATALOG_ITEM_TYPES,
        )

    if len(path) >= 3 and path[2] == tag:
        path = path[:2] + path[3:]

    return Violation(path=path, message=message, received_value=received, expected=expected)
