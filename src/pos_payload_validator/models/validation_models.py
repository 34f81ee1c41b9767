"""Validation result and image criteria models.

These models are the public contract of the validation engine. They are
serialized with camelCase keys so consumers of the HTTP layer receive the
same field names the POS integration documentation uses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class RequestType(str, Enum):
    """Semantic type of an incoming webhook payload."""

    MENU_PUSH = "Menu Push"
    ORDER_PAYLOAD = "Order Payload"
    UNKNOWN = "Unknown"


class ErrorCode(str, Enum):
    """Stable error codes exposed to consumers."""

    MISSING_ITEMS = "MISSING_ITEMS"
    MISSING_TITLE = "MISSING_TITLE"
    INVALID_MENU_TYPE = "INVALID_MENU_TYPE"
    MISSING_PRODUCTS = "MISSING_PRODUCTS"
    INVALID_ACTIVE_STATUS = "INVALID_ACTIVE_STATUS"
    INVALID_IMAGE_URL = "INVALID_IMAGE_URL"
    MISSING_ORDER_ID = "MISSING_ORDER_ID"
    MISSING_CUSTOMER_NAME = "MISSING_CUSTOMER_NAME"
    MISSING_CUSTOMER_PHONE = "MISSING_CUSTOMER_PHONE"
    MISSING_ORDER_ITEMS = "MISSING_ORDER_ITEMS"
    INVALID_ITEM_ID = "INVALID_ITEM_ID"
    INVALID_ITEM_QUANTITY = "INVALID_ITEM_QUANTITY"
    INVALID_ITEM_PRICE = "INVALID_ITEM_PRICE"
    INVALID_TOTAL_AMOUNT = "INVALID_TOTAL_AMOUNT"
    INVALID_CURRENCY_CODE = "INVALID_CURRENCY_CODE"
    INVALID_IMAGE_DIMENSIONS = "INVALID_IMAGE_DIMENSIONS"
    IMAGE_VALIDATION_ERROR = "IMAGE_VALIDATION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    UNKNOWN_REQUEST_TYPE = "UNKNOWN_REQUEST_TYPE"


@dataclass(frozen=True)
class Violation:
    """A single structural rule failure, before code and suggestion enrichment.

    Attributes:
        path: Location of the failure as key/index segments
        message: Message produced by the schema evaluator
        received_value: The offending input value, None when the field is missing
        expected: Raw schema expectation (constraint name or expected value)
    """

    path: tuple[str | int, ...]
    message: str
    received_value: Any = None
    expected: Any = None

    @property
    def dotted_path(self) -> str:
        """Join the path segments with dots (e.g. ``items.0.quantity``)."""
        return ".".join(str(segment) for segment in self.path)


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DetailedError(CamelModel):
    """A violation annotated with a stable code and a fix suggestion."""

    path: str = Field(..., description="Dotted path of the offending field")
    message: str = Field(..., description="Human readable description of the failure")
    error_code: str = Field(..., description="Stable error code")
    received_value: Any = Field(None, description="Value found at the path, if any")
    expected_description: str | None = Field(None, description="Description of the expected format")
    fix_suggestion: str | None = Field(None, description="Suggested fix for the integrator")


class ValidationResult(CamelModel):
    """Outcome of validating one payload.

    A valid result never carries errors. Results are never mutated after
    they are returned; merging image failures produces a new copy.
    """

    is_valid: bool
    request_type: RequestType
    errors: list[str] | None = None
    error_codes: list[str] = Field(default_factory=list)
    detailed_errors: list[DetailedError] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_consistency(self) -> "ValidationResult":
        """Validate that a valid result carries no errors and codes align with details."""
        if self.is_valid and (self.errors or self.error_codes or self.detailed_errors):
            raise ValueError("a valid result cannot carry errors")
        if len(self.error_codes) != len(self.detailed_errors):
            raise ValueError("error_codes and detailed_errors must have the same length")
        return self

    @classmethod
    def success(cls, request_type: RequestType) -> "ValidationResult":
        """Create a passing result for the given request type."""
        return cls(is_valid=True, request_type=request_type, errors=None)

    @classmethod
    def failure(
        cls, request_type: RequestType, detailed_errors: list[DetailedError]
    ) -> "ValidationResult":
        """Create a failing result whose messages and codes follow the detailed errors.

        Args:
            request_type: Classified type of the payload
            detailed_errors: Enriched errors, in discovery order

        Returns:
            ValidationResult with positionally aligned errors, codes and details
        """
        return cls(
            is_valid=False,
            request_type=request_type,
            errors=[format_error_message(e.path, e.message) for e in detailed_errors],
            error_codes=[e.error_code for e in detailed_errors],
            detailed_errors=detailed_errors,
        )


def format_error_message(path: str, message: str) -> str:
    """Render an error as ``[path] message``; root-level errors omit the brackets."""
    if not path:
        return message
    return f"[{path}] {message}"


class ImageValidationCriteria(CamelModel):
    """Constraints an image must satisfy. Absent fields are unconstrained."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    min_width: int | None = Field(None, ge=0)
    max_width: int | None = Field(None, ge=0)
    min_height: int | None = Field(None, ge=0)
    max_height: int | None = Field(None, ge=0)
    max_area: float | None = Field(None, gt=0, description="Maximum area in megapixels")
    aspect_ratio: float | None = Field(None, gt=0, description="Width divided by height")
    aspect_ratio_tolerance: float = Field(0.01, ge=0)
    max_file_size: int | None = Field(None, gt=0, description="Maximum file size in bytes")


class ImageDimensions(CamelModel):
    """Pixel dimensions of a fetched image."""

    width: int
    height: int

    @property
    def area_megapixels(self) -> float:
        """Area in megapixels (width x height / 1,000,000)."""
        return (self.width * self.height) / 1_000_000


class ImageValidationResult(CamelModel):
    """Outcome of fetching and measuring a single image."""

    is_valid: bool
    dimensions: ImageDimensions | None = None
    file_size: int | None = None
    errors: list[str] = Field(default_factory=list)
