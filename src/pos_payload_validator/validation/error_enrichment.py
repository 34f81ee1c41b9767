"""Error enrichment.

Maps structural violations to stable error codes, a description of the
expected format and a suggested fix. Codes come from per-request-type path
tables; descriptions and suggestions come from ordered rule chains matched
against the lower-cased violation message and the path. The first matching
rule wins, so rule order is significant.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from pos_payload_validator.models.catalog_models import (
    CATALOG_ITEM_TYPES,
    IMAGE_FILE_EXTENSIONS,
    MENU_TYPES,
)
from pos_payload_validator.models.validation_models import (
    DetailedError,
    ErrorCode,
    RequestType,
    ValidationResult,
    Violation,
)

WILDCARD = "*"

MENU_PUSH_ERROR_CODES: dict[str, ErrorCode] = {
    "items": ErrorCode.MISSING_ITEMS,
    "title": ErrorCode.MISSING_TITLE,
    "menuType": ErrorCode.INVALID_MENU_TYPE,
    "products": ErrorCode.MISSING_PRODUCTS,
    "active": ErrorCode.INVALID_ACTIVE_STATUS,
    "url": ErrorCode.INVALID_IMAGE_URL,
    "price": ErrorCode.INVALID_ITEM_PRICE,
    "*.title": ErrorCode.MISSING_TITLE,
    "*.products": ErrorCode.MISSING_PRODUCTS,
}

ORDER_PAYLOAD_ERROR_CODES: dict[str, ErrorCode] = {
    "orderId": ErrorCode.MISSING_ORDER_ID,
    "customerDetails": ErrorCode.MISSING_CUSTOMER_NAME,
    "customerDetails.name": ErrorCode.MISSING_CUSTOMER_NAME,
    "customerDetails.phone": ErrorCode.MISSING_CUSTOMER_PHONE,
    "items": ErrorCode.MISSING_ORDER_ITEMS,
    "id": ErrorCode.INVALID_ITEM_ID,
    "quantity": ErrorCode.INVALID_ITEM_QUANTITY,
    "price": ErrorCode.INVALID_ITEM_PRICE,
    "totalAmount": ErrorCode.INVALID_TOTAL_AMOUNT,
    "currency": ErrorCode.INVALID_CURRENCY_CODE,
    "*.quantity": ErrorCode.INVALID_ITEM_QUANTITY,
    "*.price": ErrorCode.INVALID_ITEM_PRICE,
}

ERROR_CODE_TABLES: dict[RequestType, dict[str, ErrorCode]] = {
    RequestType.MENU_PUSH: MENU_PUSH_ERROR_CODES,
    RequestType.ORDER_PAYLOAD: ORDER_PAYLOAD_ERROR_CODES,
}

_TYPE_MISMATCH = re.compile(
    r"(?:input should be a valid|expected) (string|integer|number|boolean|list|array)\b"
)

_TYPE_NAMES = {
    "string": "a string",
    "integer": "a whole number",
    "number": "a number",
    "boolean": "a boolean (true or false)",
    "list": "an array",
    "array": "an array",
}


def lookup_error_code(path: str, request_type: RequestType) -> str:
    """Find the stable error code for a dotted violation path.

    Lookup order: exact path, final path segment, wildcard keys (``*`` stands
    for any map key or array index and is stripped before a substring match),
    then ``UNKNOWN_ERROR``.

    Args:
        path: Dotted violation path (e.g. ``items.0.quantity``)
        request_type: Request type selecting the code table

    Returns:
        The error code string
    """
    table = ERROR_CODE_TABLES.get(request_type, {})

    if path in table:
        return table[path].value

    last_segment = path.rsplit(".", 1)[-1]
    if last_segment in table:
        return table[last_segment].value

    for key, code in table.items():
        if WILDCARD in key and key.replace(WILDCARD, "") in path:
            return code.value

    return ErrorCode.UNKNOWN_ERROR.value


@dataclass(frozen=True)
class Rule:
    """A pattern check paired with the text it produces.

    ``matches`` receives the lower-cased message and the dotted path;
    ``render`` receives the violation, its dotted path and the request type.
    """

    name: str
    matches: Callable[[str, str], bool]
    render: Callable[[Violation, str, RequestType], str]


def _split_path(path: str) -> tuple[str, str]:
    parent, _, last = path.rpartition(".")
    return parent, last


def _suggest_type_change(violation: Violation, path: str, _request_type: RequestType) -> str:
    match = _TYPE_MISMATCH.search(violation.message.lower())
    type_name = _TYPE_NAMES[match.group(1)] if match else "the documented type"
    return f"Change the value at '{path}' to {type_name}."


def _suggest_object(violation: Violation, path: str, _request_type: RequestType) -> str:
    _, last = _split_path(path)
    if last in ("title", "description", "alt"):
        return f'Replace the value at \'{path}\' with an object such as {{"default": "..."}}.'
    return f"Replace the value at '{path}' with a JSON object."


def _suggest_required(violation: Violation, path: str, _request_type: RequestType) -> str:
    parent, last = _split_path(path)
    if parent:
        return f"Add the missing field '{last}' to '{parent}'."
    return f"Add the missing top-level field '{last}'."


def _suggest_image_url(violation: Violation, path: str, _request_type: RequestType) -> str:
    extensions = ", ".join(IMAGE_FILE_EXTENSIONS)
    return (
        f"Use a complete, publicly reachable image URL at '{path}' that ends in one of "
        f"{extensions} or points to a supported image CDN."
    )


def _suggest_menu_type(violation: Violation, path: str, _request_type: RequestType) -> str:
    return f"Set menuType to one of: {', '.join(MENU_TYPES)}."


def _suggest_at_least_one(violation: Violation, path: str, _request_type: RequestType) -> str:
    return f"Add at least one entry to '{path}'."


def _suggest_positive(violation: Violation, path: str, _request_type: RequestType) -> str:
    return f"Use a value greater than zero for '{path}'."


def _suggest_currency(violation: Violation, path: str, _request_type: RequestType) -> str:
    return 'Use a 3-letter ISO 4217 currency code, for example "AED".'


def _suggest_documentation(violation: Violation, path: str, _request_type: RequestType) -> str:
    return f"Review the API documentation for the expected format of '{path}'."


FIX_SUGGESTION_RULES: tuple[Rule, ...] = (
    Rule("type_mismatch", lambda m, p: _TYPE_MISMATCH.search(m) is not None, _suggest_type_change),
    Rule(
        "object_expected",
        lambda m, p: "valid dictionary" in m or "expected object" in m,
        _suggest_object,
    ),
    Rule("required", lambda m, p: "required" in m, _suggest_required),
    Rule(
        "image_url",
        lambda m, p: "url" in m or "incomplete" in m or "extension" in m,
        _suggest_image_url,
    ),
    Rule("menu_type", lambda m, p: p.endswith("menuType"), _suggest_menu_type),
    Rule("at_least_one", lambda m, p: "at least one" in m, _suggest_at_least_one),
    Rule("positive", lambda m, p: "positive" in m, _suggest_positive),
    Rule("currency", lambda m, p: p.endswith("currency"), _suggest_currency),
)


def _describe_type(violation: Violation, path: str, _request_type: RequestType) -> str:
    match = _TYPE_MISMATCH.search(violation.message.lower())
    type_name = _TYPE_NAMES[match.group(1)] if match else "a value of the documented type"
    return type_name[0].upper() + type_name[1:]


def _describe_price(violation: Violation, path: str, request_type: RequestType) -> str:
    if request_type is RequestType.MENU_PUSH:
        return 'A non-empty price string (e.g., "12.50")'
    return "A positive number"


def _fixed(text: str) -> Callable[[Violation, str, RequestType], str]:
    return lambda violation, path, request_type: text


def _last_segment_is(*names: str) -> Callable[[str, str], bool]:
    return lambda message, path: _split_path(path)[1] in names


EXPECTED_DESCRIPTION_RULES: tuple[Rule, ...] = (
    Rule("type_name", lambda m, p: _TYPE_MISMATCH.search(m) is not None, _describe_type),
    Rule(
        "object",
        lambda m, p: "valid dictionary" in m or "expected object" in m,
        _fixed("An object"),
    ),
    Rule("menu_type", _last_segment_is("menuType"), _fixed(f"One of: {', '.join(MENU_TYPES)}")),
    Rule(
        "item_type",
        lambda m, p: p.startswith("items.") and p.endswith(".type"),
        _fixed(f"One of: {', '.join(CATALOG_ITEM_TYPES)}"),
    ),
    Rule(
        "image_url",
        _last_segment_is("url"),
        _fixed("A complete http(s) image URL with a file extension"),
    ),
    Rule(
        "localized_text",
        lambda m, p: ".title" in f".{p}" or ".description" in f".{p}",
        _fixed('A localized string object with a non-empty "default" key'),
    ),
    Rule("currency", _last_segment_is("currency"), _fixed("A 3-letter currency code (e.g., AED)")),
    Rule("quantity", _last_segment_is("quantity"), _fixed("A positive integer")),
    Rule("price", _last_segment_is("price"), _describe_price),
    Rule("total_amount", _last_segment_is("totalAmount"), _fixed("A positive number")),
    Rule("items", _last_segment_is("items", "products"), _fixed("A non-empty collection")),
    Rule(
        "non_empty_text",
        _last_segment_is("orderId", "name", "phone", "id"),
        _fixed("A non-empty string"),
    ),
)


def _apply_rules(
    rules: tuple[Rule, ...],
    fallback: Callable[[Violation, str, RequestType], str],
    violation: Violation,
    request_type: RequestType,
) -> str:
    message = violation.message.lower()
    path = violation.dotted_path
    for rule in rules:
        if rule.matches(message, path):
            return rule.render(violation, path, request_type)
    return fallback(violation, path, request_type)


def generate_fix_suggestion(violation: Violation, request_type: RequestType) -> str:
    """Produce a fix suggestion using the first matching suggestion rule."""
    return _apply_rules(FIX_SUGGESTION_RULES, _suggest_documentation, violation, request_type)


def describe_expected(violation: Violation, request_type: RequestType) -> str:
    """Describe the expected format using the first matching description rule."""
    return _apply_rules(
        EXPECTED_DESCRIPTION_RULES, _fixed("See documentation"), violation, request_type
    )


def enrich_violation(violation: Violation, request_type: RequestType) -> DetailedError:
    """Annotate a single violation with its code, expectation and fix suggestion."""
    path = violation.dotted_path
    return DetailedError(
        path=path,
        message=violation.message,
        error_code=lookup_error_code(path, request_type),
        received_value=violation.received_value,
        expected_description=describe_expected(violation, request_type),
        fix_suggestion=generate_fix_suggestion(violation, request_type),
    )


def enrich_violations(
    violations: list[Violation], request_type: RequestType
) -> list[DetailedError]:
    """Enrich violations, preserving their order."""
    return [enrich_violation(violation, request_type) for violation in violations]


def build_result(violations: list[Violation], request_type: RequestType) -> ValidationResult:
    """Build the primary validation result for a classified payload.

    Args:
        violations: Structural violations in discovery order
        request_type: Classified request type

    Returns:
        A passing result when there are no violations, otherwise a failing
        result whose messages, codes and detailed errors are aligned
    """
    if not violations:
        return ValidationResult.success(request_type)
    return ValidationResult.failure(request_type, enrich_violations(violations, request_type))
