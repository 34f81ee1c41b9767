"""Test history models.

Each validated webhook is recorded as a history entry so integrators can
review past attempts and the pass/fail ratio on the dashboard.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from pos_payload_validator.models.validation_models import CamelModel, RequestType


class HistoryEntry(CamelModel):
    """Outcome of a single validated webhook."""

    timestamp: datetime = Field(..., description="When the payload was validated (UTC)")
    request_type: RequestType = Field(..., description="Classified payload type")
    passed: bool = Field(..., description="Whether validation succeeded")
    error_codes: list[str] = Field(default_factory=list, description="Codes of failed checks")
    payload_sample: Any = Field(None, description="The payload as received")


class HistorySummary(CamelModel):
    """Aggregate counts over the history log."""

    total: int = Field(0, ge=0)
    passed: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
