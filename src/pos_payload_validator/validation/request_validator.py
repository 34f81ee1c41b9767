"""Validation entrypoints.

``validate_request`` classifies a payload, validates it structurally and
enriches the violations. It performs no I/O and never raises.
``validate_image_dimensions`` is the asynchronous follow-up for catalog
pushes that already passed structural validation.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pos_payload_validator.models.catalog_models import has_image_extension
from pos_payload_validator.models.validation_models import (
    DetailedError,
    ErrorCode,
    ImageValidationCriteria,
    RequestType,
    ValidationResult,
)
from pos_payload_validator.observability import traced
from pos_payload_validator.validation.classifier import (
    MALFORMED_PAYLOAD_MESSAGE,
    UNKNOWN_REQUEST_TYPE_MESSAGE,
    MalformedPayloadError,
    classify,
    parse_payload,
)
from pos_payload_validator.validation.error_enrichment import build_result
from pos_payload_validator.validation.image_criteria import STANDARD
from pos_payload_validator.validation.image_validator import validate_image_urls
from pos_payload_validator.validation.logo_filter import is_logo_image
from pos_payload_validator.validation.result_merger import ImageTarget, image_failures_to_errors
from pos_payload_validator.validation.structural_validator import find_violations

logger = logging.getLogger(__name__)

UNKNOWN_REQUEST_TYPE_SUGGESTION = (
    "Send either a menu push with a non-empty `items` object, "
    "or an order payload with an `orderId` field."
)


def _unknown_result(message: str, code: ErrorCode, suggestion: str) -> ValidationResult:
    return ValidationResult.failure(
        RequestType.UNKNOWN,
        [
            DetailedError(
                path="",
                message=message,
                error_code=code.value,
                expected_description="A menu push or an order payload",
                fix_suggestion=suggestion,
            )
        ],
    )


@traced("validate_request")
def validate_request(payload: Any) -> ValidationResult:
    """Classify and structurally validate a webhook payload.

    Args:
        payload: Decoded JSON value, or a str/bytes body that may be JSON encoded

    Returns:
        ValidationResult; malformed or unrecognized payloads are reported as
        UNKNOWN results rather than raised
    """
    try:
        payload = parse_payload(payload)
    except MalformedPayloadError as e:
        logger.info(f"Rejected malformed payload: {e}")
        return _unknown_result(
            MALFORMED_PAYLOAD_MESSAGE,
            ErrorCode.UNKNOWN_REQUEST_TYPE,
            "Send a well-formed JSON document as the request body.",
        )

    try:
        request_type = classify(payload)
        if request_type is RequestType.UNKNOWN:
            return _unknown_result(
                UNKNOWN_REQUEST_TYPE_MESSAGE,
                ErrorCode.UNKNOWN_REQUEST_TYPE,
                UNKNOWN_REQUEST_TYPE_SUGGESTION,
            )

        violations = find_violations(payload, request_type)
        return build_result(violations, request_type)
    except Exception as e:
        logger.exception("Unexpected error while validating payload")
        return _unknown_result(
            f"Validation could not be completed: {e}",
            ErrorCode.UNKNOWN_ERROR,
            "Review the API documentation for the expected payload format.",
        )


def collect_image_targets(payload: Any) -> list[ImageTarget]:
    """List the non-logo Image items of a catalog push, in payload order."""
    items = payload.get("items") if isinstance(payload, Mapping) else None
    if not isinstance(items, Mapping):
        return []

    targets: list[ImageTarget] = []
    for item_id, item in items.items():
        if not isinstance(item, Mapping) or item.get("type") != "Image":
            continue
        url = item.get("url")
        if not isinstance(url, str) or not url:
            continue
        if is_logo_image(item_id, item):
            logger.debug(f"Skipping logo image {item_id} during dimension validation")
            continue
        targets.append(ImageTarget(item_id=str(item_id), url=url))
    return targets


def contains_validatable_images(payload: Any) -> bool:
    """Detect non-logo Image items whose URLs end in a recognized image extension."""
    return any(has_image_extension(target.url) for target in collect_image_targets(payload))


@traced("validate_image_dimensions")
async def validate_image_dimensions(
    payload: Any, criteria: ImageValidationCriteria | None = None
) -> ValidationResult:
    """Fetch every non-logo image of a catalog push and check its dimensions.

    Only meaningful for payloads that ``validate_request`` classified as a menu
    push and reported valid. All images are fetched concurrently.

    Args:
        payload: Decoded catalog push payload
        criteria: Constraints to enforce (the ``standard`` preset when omitted)

    Returns:
        A passing MENU_PUSH result, or a failing one with one detailed error
        per violated constraint per image
    """
    criteria = criteria or STANDARD
    targets = collect_image_targets(payload)
    if not targets:
        return ValidationResult.success(RequestType.MENU_PUSH)

    logger.info(f"Validating dimensions of {len(targets)} image(s)")
    results = await validate_image_urls([target.url for target in targets], criteria)

    detailed_errors = image_failures_to_errors(targets, results, criteria)
    if not detailed_errors:
        return ValidationResult.success(RequestType.MENU_PUSH)

    logger.info(f"Image dimension validation found {len(detailed_errors)} problem(s)")
    return ValidationResult.failure(RequestType.MENU_PUSH, detailed_errors)
