"""Shared pytest fixtures and configuration for all tests."""

import os
from collections.abc import Callable, Mapping
from io import BytesIO
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from PIL import Image

# Keep main.py from building the real application at import time
os.environ.setdefault("ENVIRONMENT", "test")


@pytest.fixture
def order_payload() -> dict[str, Any]:
    """Fixture providing a valid order payload."""
    return {
        "orderId": "order_1001",
        "customerDetails": {"name": "Amira", "phone": "+971500000000"},
        "items": [
            {"id": "item_1", "quantity": 2, "price": 12.5},
            {"id": "item_2", "quantity": 1, "price": 9, "specialInstructions": "No onions"},
        ],
        "totalAmount": 34,
        "currency": "AED",
    }


@pytest.fixture
def menu_push_payload() -> dict[str, Any]:
    """Fixture providing a valid catalog push with a menu, a product and an image."""
    return {
        "items": {
            "menu_1": {
                "id": "menu_1",
                "type": "Menu",
                "title": {"default": "Dinner", "ar": "عشاء"},
                "menuType": "DELIVERY",
                "products": {"prod_1": {"id": "prod_1", "type": "Product"}},
                "schedule": {"sched_1": {"id": "sched_1", "type": "ScheduleEntry"}},
            },
            "prod_1": {
                "id": "prod_1",
                "type": "Product",
                "title": {"default": "Shawarma"},
                "price": "18.00",
                "images": {"img_1": {"id": "img_1", "type": "Image"}},
                "vendorSku": "SKU-1",
            },
            "img_1": {
                "id": "img_1",
                "type": "Image",
                "url": "https://cdn.example.com/images/shawarma.jpg",
            },
            "sched_1": {"id": "sched_1", "type": "ScheduleEntry", "startTime": "10:00"},
            "cat_1": {"id": "cat_1", "type": "Category"},
        }
    }


@pytest.fixture
def make_png() -> Callable[[int, int], bytes]:
    """Fixture providing a factory for in-memory PNG images of a given size."""

    def _make(width: int, height: int) -> bytes:
        buffer = BytesIO()
        Image.new("RGB", (width, height), color=(200, 30, 30)).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


@pytest.fixture
def make_image_response() -> Callable[..., MagicMock]:
    """Fixture providing a factory for mocked httpx image responses."""

    def _make(
        content: bytes = b"",
        status_code: int = 200,
        content_type: str | None = "image/png",
        content_length: int | None = None,
        reason_phrase: str = "OK",
    ) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.reason_phrase = reason_phrase
        response.content = content
        response.aread = AsyncMock(return_value=content)
        headers: dict[str, str] = {}
        if content_type is not None:
            headers["content-type"] = content_type
        if content_length is not None:
            headers["content-length"] = str(content_length)
        response.headers = headers
        return response

    return _make


ImageFetchOutcome = MagicMock | Exception


@pytest.fixture
def patch_image_fetch() -> Callable[..., Any]:
    """Fixture providing a patcher for ``httpx.AsyncClient.stream``.

    Takes one outcome used for every URL, or a mapping of URL to outcome. An
    outcome is a mocked response or an exception raised when the stream opens.
    The patcher returns the ``patch`` context manager; calls are recorded with
    ``("GET", url)`` as their positional arguments.
    """

    def _patch(outcomes: ImageFetchOutcome | Mapping[str, ImageFetchOutcome]) -> Any:
        def _stream(method: str, url: str, **kwargs: Any) -> MagicMock:
            outcome = outcomes[url] if isinstance(outcomes, Mapping) else outcomes
            stream = MagicMock()
            if isinstance(outcome, Exception):
                stream.__aenter__.side_effect = outcome
            else:
                stream.__aenter__.return_value = outcome
            stream.__aexit__.return_value = False
            return stream

        return patch("httpx.AsyncClient.stream", side_effect=_stream)

    return _patch
