"""Merging of image dimension outcomes into the primary validation result."""

from dataclasses import dataclass

from pos_payload_validator.models.validation_models import (
    DetailedError,
    ErrorCode,
    ImageValidationCriteria,
    ImageValidationResult,
    ValidationResult,
)


@dataclass(frozen=True)
class ImageTarget:
    """An Image catalog item selected for dimension validation."""

    item_id: str
    url: str

    @property
    def path(self) -> str:
        return f"items.{self.item_id}.url"


def describe_criteria(criteria: ImageValidationCriteria) -> str:
    """Summarize a criteria set, e.g. ``min width 800px, max area 16Mpx²``."""
    parts: list[str] = []
    if criteria.min_width is not None:
        parts.append(f"min width {criteria.min_width}px")
    if criteria.max_width is not None:
        parts.append(f"max width {criteria.max_width}px")
    if criteria.min_height is not None:
        parts.append(f"min height {criteria.min_height}px")
    if criteria.max_height is not None:
        parts.append(f"max height {criteria.max_height}px")
    if criteria.max_area is not None:
        parts.append(f"max area {criteria.max_area:g}Mpx²")
    if criteria.aspect_ratio is not None:
        parts.append(
            f"aspect ratio {criteria.aspect_ratio:.2f} ± {criteria.aspect_ratio_tolerance:g}"
        )
    if criteria.max_file_size is not None:
        parts.append(f"max file size {criteria.max_file_size / (1024 * 1024):.2f}MB")
    return ", ".join(parts) if parts else "Any reachable image"


def image_failures_to_errors(
    targets: list[ImageTarget],
    results: dict[str, ImageValidationResult],
    criteria: ImageValidationCriteria,
) -> list[DetailedError]:
    """Turn failed image checks into detailed errors.

    One entry is produced per violated constraint per image, in target order.
    Images that could not be fetched or decoded (neither size nor dimensions
    known) use IMAGE_VALIDATION_ERROR.
    """
    expected = describe_criteria(criteria)
    detailed_errors: list[DetailedError] = []

    for target in targets:
        result = results.get(target.url)
        if result is None or result.is_valid:
            continue

        if result.dimensions is None and result.file_size is None:
            code = ErrorCode.IMAGE_VALIDATION_ERROR
            received = target.url
            suggestion = (
                "Make sure the image URL is publicly reachable and returns an image "
                "content type (image/*)."
            )
        else:
            code = ErrorCode.INVALID_IMAGE_DIMENSIONS
            if result.dimensions is None:
                received = f"{result.file_size} bytes"
            else:
                received = f"{result.dimensions.width}x{result.dimensions.height}px"
            suggestion = f"Upload a version of the image that satisfies: {expected}."

        for message in result.errors:
            detailed_errors.append(
                DetailedError(
                    path=target.path,
                    message=message,
                    error_code=code.value,
                    received_value=received,
                    expected_description=expected,
                    fix_suggestion=suggestion,
                )
            )

    return detailed_errors


def merge_results(primary: ValidationResult, image_result: ValidationResult) -> ValidationResult:
    """Combine the structural result with the image dimension result.

    Args:
        primary: Result of structural validation
        image_result: Result of image dimension validation

    Returns:
        ``primary`` unchanged when images passed, otherwise a new failing
        result carrying only the image errors and the primary request type
    """
    if image_result.is_valid:
        return primary

    return ValidationResult.failure(primary.request_type, list(image_result.detailed_errors))
