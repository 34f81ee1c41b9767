"""Service orchestrating payload validation and history recording."""

import logging
from datetime import UTC, datetime
from typing import Any

from pos_payload_validator.models.history_models import HistoryEntry
from pos_payload_validator.models.validation_models import (
    ImageValidationCriteria,
    RequestType,
    ValidationResult,
)
from pos_payload_validator.observability.metrics import record_payload_validation
from pos_payload_validator.repositories.history_repository import ValidationHistoryRepository
from pos_payload_validator.validation import (
    contains_validatable_images,
    merge_results,
    validate_image_dimensions,
    validate_request,
)
from pos_payload_validator.validation.classifier import MalformedPayloadError, parse_payload
from pos_payload_validator.validation.image_criteria import STANDARD

logger = logging.getLogger(__name__)


class ValidationService:
    """Runs the full validation pipeline for incoming webhooks.

    The pipeline is: structural validation, then (for valid menu pushes with
    images) concurrent image dimension checks merged into the primary result,
    then an append to the test history.
    """

    def __init__(
        self,
        history_repository: ValidationHistoryRepository,
        image_criteria: ImageValidationCriteria = STANDARD,
        image_validation_enabled: bool = True,
    ) -> None:
        """Initialize the ValidationService.

        Args:
            history_repository: Log receiving one entry per validated payload
            image_criteria: Constraints applied to catalog images
            image_validation_enabled: Whether images are checked when detected heuristically
        """
        self.history_repository = history_repository
        self.image_criteria = image_criteria
        self.image_validation_enabled = image_validation_enabled

    def should_check_images(
        self, payload: Any, result: ValidationResult, check_images: bool | None
    ) -> bool:
        """Decide whether image dimension validation applies.

        Images are only checked for structurally valid menu pushes. An explicit
        ``check_images`` wins; otherwise the payload must contain non-logo images
        with recognized extensions and image validation must be enabled.
        """
        if not result.is_valid or result.request_type is not RequestType.MENU_PUSH:
            return False
        if check_images is not None:
            return check_images
        return self.image_validation_enabled and contains_validatable_images(payload)

    async def validate(
        self,
        payload: Any,
        check_images: bool | None = None,
        record: bool = True,
    ) -> ValidationResult:
        """Validate a payload end to end.

        Args:
            payload: Decoded JSON value, or a raw str/bytes body
            check_images: Force image checks on (True) or off (False); None uses detection
            record: Whether to append the outcome to the history log

        Returns:
            The final ValidationResult
        """
        result = validate_request(payload)
        try:
            decoded = parse_payload(payload)
        except MalformedPayloadError:
            decoded = {"error": "Invalid JSON in request body"}

        if self.should_check_images(decoded, result, check_images):
            image_result = await validate_image_dimensions(decoded, self.image_criteria)
            result = merge_results(result, image_result)

        record_payload_validation(result.request_type.value, result.is_valid)
        logger.info(
            f"Validated {result.request_type.value} payload: "
            f"{'valid' if result.is_valid else 'invalid'}",
            extra={"error_codes": result.error_codes},
        )

        if record:
            self.history_repository.append(
                HistoryEntry(
                    timestamp=datetime.now(UTC),
                    request_type=result.request_type,
                    passed=result.is_valid,
                    error_codes=list(result.error_codes),
                    payload_sample=decoded,
                )
            )

        return result

    def get_history(self, limit: int | None = None) -> list[HistoryEntry]:
        """Return recorded validations, newest first."""
        return self.history_repository.list_entries(limit=limit)
