"""Custom metrics for payload validation."""

from opentelemetry import metrics

meter = metrics.get_meter("payload-validator")

payload_validation_counter = meter.create_counter(
    name="payload_validation_total",
    description="Total number of validated payloads by request type and outcome",
    unit="1",
)

image_validation_counter = meter.create_counter(
    name="image_validation_total",
    description="Total number of image dimension checks by outcome",
    unit="1",
)

image_fetch_duration_histogram = meter.create_histogram(
    name="image_fetch_duration_seconds",
    description="Duration of image fetch-and-measure operations",
    unit="s",
)


def record_payload_validation(request_type: str, is_valid: bool) -> None:
    """Record the outcome of a payload validation.

    Args:
        request_type: Classified request type (e.g. "Menu Push")
        is_valid: Whether the payload passed validation
    """
    payload_validation_counter.add(
        1, {"request_type": request_type, "outcome": "valid" if is_valid else "invalid"}
    )


def record_image_validation(is_valid: bool, duration_seconds: float) -> None:
    """Record a single image dimension check.

    Args:
        is_valid: Whether the image satisfied its criteria
        duration_seconds: Time spent fetching and measuring the image
    """
    outcome = "valid" if is_valid else "invalid"
    image_validation_counter.add(1, {"outcome": outcome})
    image_fetch_duration_histogram.record(duration_seconds, {"outcome": outcome})
