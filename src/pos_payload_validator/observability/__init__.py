"""OpenTelemetry instrumentation and structured logging utilities."""

from pos_payload_validator.observability.config import configure_logging, setup_observability
from pos_payload_validator.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
