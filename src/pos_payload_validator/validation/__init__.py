"""Webhook payload validation engine."""

from pos_payload_validator.validation.classifier import classify
from pos_payload_validator.validation.image_criteria import (
    IMAGE_CRITERIA_PRESETS,
    get_image_criteria,
)
from pos_payload_validator.validation.request_validator import (
    contains_validatable_images,
    validate_image_dimensions,
    validate_request,
)
from pos_payload_validator.validation.result_merger import merge_results

__all__ = [
    "IMAGE_CRITERIA_PRESETS",
    "classify",
    "contains_validatable_images",
    "get_image_criteria",
    "merge_results",
    "validate_image_dimensions",
    "validate_request",
]
