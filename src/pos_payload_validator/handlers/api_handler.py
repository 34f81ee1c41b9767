"""FastAPI application exposing the webhook simulator and test history."""

import logging
from typing import Any

from fastapi import FastAPI, Query, Request
from pydantic import BaseModel

from pos_payload_validator.models.history_models import HistoryEntry, HistorySummary
from pos_payload_validator.models.validation_models import CamelModel, ValidationResult
from pos_payload_validator.repositories.history_repository import ValidationHistoryRepository
from pos_payload_validator.services.validation_service import ValidationService

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class SimulatorResponse(CamelModel):
    """Response returned to a POS vendor posting to a simulator endpoint."""

    success: bool
    message: str
    simulator_id: str
    validation: ValidationResult


def create_app(
    validation_service: ValidationService,
    history_repository: ValidationHistoryRepository,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        validation_service: Service running the validation pipeline
        history_repository: Process-wide test history log

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="POS Payload Validator",
        description="Validate POS vendor webhook payloads and get actionable feedback",
        version="1.0.0",
    )

    app.state.validation_service = validation_service
    app.state.history_repository = history_repository

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    @app.post(
        "/simulator/{simulator_id}",
        response_model=SimulatorResponse,
        response_model_by_alias=True,
        tags=["Simulator"],
    )
    async def receive_webhook(simulator_id: str, request: Request) -> SimulatorResponse:
        """Receive a webhook from a POS vendor and validate it.

        The raw body is validated as-is, so malformed JSON is reported in the
        validation result instead of being rejected by the framework.

        Args:
            simulator_id: Identifier of the simulator session the vendor posts to

        Returns:
            Acknowledgement including the validation result
        """
        body = await request.body()
        result = await app.state.validation_service.validate(body)

        logger.info(
            f"Simulator {simulator_id} received {result.request_type.value} request "
            f"(valid={result.is_valid})"
        )

        return SimulatorResponse(
            success=True,
            message="Request received",
            simulator_id=simulator_id,
            validation=result,
        )

    @app.post(
        "/validate",
        response_model=ValidationResult,
        response_model_by_alias=True,
        tags=["Validation"],
    )
    async def validate_payload(
        request: Request,
        check_images: bool | None = Query(None, alias="checkImages"),
    ) -> ValidationResult:
        """Validate a payload and return the detailed result.

        Args:
            check_images: Force image dimension checks on or off; detected when omitted

        Returns:
            The validation result
        """
        body = await request.body()
        result: ValidationResult = await app.state.validation_service.validate(
            body, check_images=check_images
        )
        return result

    @app.get(
        "/test-history",
        response_model=list[HistoryEntry],
        response_model_by_alias=True,
        tags=["History"],
    )
    async def get_test_history(limit: int | None = Query(None, ge=1)) -> list[HistoryEntry]:
        """List recorded validations, newest first.

        Args:
            limit: Maximum number of entries to return

        Returns:
            History entries
        """
        entries: list[HistoryEntry] = app.state.history_repository.list_entries(limit=limit)
        return entries

    @app.get(
        "/test-history/summary",
        response_model=HistorySummary,
        tags=["History"],
    )
    async def get_test_history_summary() -> HistorySummary:
        """Count passed and failed validations."""
        summary: HistorySummary = app.state.history_repository.summary()
        return summary

    @app.delete("/test-history", tags=["History"])
    async def clear_test_history() -> dict[str, Any]:
        """Remove every recorded validation."""
        removed = len(app.state.history_repository)
        app.state.history_repository.clear()
        logger.info(f"Cleared {removed} history entries")
        return {"cleared": removed}

    return app
