"""Main application entry point for the POS payload validator.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os

from fastapi import FastAPI

from pos_payload_validator.handlers.api_handler import create_app
from pos_payload_validator.models.validation_models import ImageValidationCriteria
from pos_payload_validator.observability import configure_logging, setup_observability
from pos_payload_validator.repositories.history_repository import ValidationHistoryRepository
from pos_payload_validator.services.validation_service import ValidationService
from pos_payload_validator.validation.image_criteria import get_image_criteria

logger = logging.getLogger(__name__)


def get_image_criteria_from_env() -> ImageValidationCriteria:
    """Resolve the image criteria preset named by IMAGE_CRITERIA_PRESET.

    Returns:
        The configured preset (``standard`` by default)

    Raises:
        ValueError: If the preset name is unknown
    """
    preset = os.getenv("IMAGE_CRITERIA_PRESET", "standard")
    criteria = get_image_criteria(preset)
    logger.info(f"Image criteria preset: {preset}")
    return criteria


def create_history_repository() -> ValidationHistoryRepository:
    """Create the process-wide history log sized from HISTORY_MAX_ENTRIES.

    Raises:
        ValueError: If HISTORY_MAX_ENTRIES is not a positive integer
    """
    max_entries = int(os.getenv("HISTORY_MAX_ENTRIES", "1000"))
    return ValidationHistoryRepository(max_entries=max_entries)


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the history repository
    3. Creates the validation service
    4. Creates the FastAPI app
    5. Sets up observability

    Returns:
        Configured FastAPI application instance
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    configure_logging(log_level)

    logger.info("Initializing POS payload validator...")

    history_repository = create_history_repository()
    image_validation_enabled = os.getenv("ENABLE_IMAGE_VALIDATION", "true").lower() == "true"

    validation_service = ValidationService(
        history_repository=history_repository,
        image_criteria=get_image_criteria_from_env(),
        image_validation_enabled=image_validation_enabled,
    )

    logger.info(
        f"Validation service initialized (image validation "
        f"{'enabled' if image_validation_enabled else 'disabled'})"
    )

    app = create_app(
        validation_service=validation_service,
        history_repository=history_repository,
    )

    setup_observability(app)

    logger.info("POS payload validator initialized successfully")

    return app


# Create the FastAPI application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    app = FastAPI()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8001"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
