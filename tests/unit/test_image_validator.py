"""Unit tests for image fetching and dimension checks."""

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest
from PIL import Image, UnidentifiedImageError

from pos_payload_validator.models.validation_models import (
    ImageDimensions,
    ImageValidationCriteria,
)
from pos_payload_validator.validation.image_validator import (
    check_criteria,
    measure_image,
    measure_svg,
    validate_image_url,
    validate_image_urls,
)

IMAGE_URL = "https://cdn.example.com/images/shawarma.jpg"


@pytest.mark.unit
class TestMeasureImage:
    """Test suite for measure_image."""

    def test_reads_dimensions(self, make_png: Callable[[int, int], bytes]) -> None:
        """Test that pixel dimensions are read from encoded bytes."""
        dimensions = measure_image(make_png(64, 32))

        assert dimensions == ImageDimensions(width=64, height=32)

    def test_rejects_non_image_bytes(self) -> None:
        """Test that undecodable bytes raise."""
        with pytest.raises(UnidentifiedImageError):
            measure_image(b"definitely not an image")

    def test_decompression_bomb_is_still_measured(
        self, make_png: Callable[[int, int], bytes]
    ) -> None:
        """Test that images above the decoder pixel limit report their header size."""
        content = make_png(50, 50)

        with patch.object(Image, "MAX_IMAGE_PIXELS", 100):
            dimensions = measure_image(content)
            assert Image.MAX_IMAGE_PIXELS == 100

        assert dimensions == ImageDimensions(width=50, height=50)

    @pytest.mark.asyncio
    async def test_decompression_bomb_fails_the_area_check(
        self,
        make_png: Callable[[int, int], bytes],
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that an over-limit image becomes an area violation."""
        response = make_image_response(content=make_png(2000, 1000))
        criteria = ImageValidationCriteria(max_area=1)

        with patch.object(Image, "MAX_IMAGE_PIXELS", 1000), patch_image_fetch(response):
            result = await validate_image_url(IMAGE_URL, criteria)

        assert result.is_valid is False
        assert result.dimensions == ImageDimensions(width=2000, height=1000)
        assert result.errors == [
            "Image area (2.00Mpx² from 2000x1000px) exceeds maximum allowed (1Mpx²)"
        ]


@pytest.mark.unit
class TestMeasureSvg:
    """Test suite for measure_svg."""

    @pytest.mark.parametrize(
        ("document", "expected"),
        [
            (b'<svg xmlns="http://www.w3.org/2000/svg" width="640" height="480"/>', (640, 480)),
            (b'<svg width="120.6px" height="80px"/>', (121, 80)),
            (b'<svg viewBox="0 0 1024 768"/>', (1024, 768)),
            (b'<svg width="100%" height="100%" viewBox="0,0,300,150"/>', (300, 150)),
        ],
    )
    def test_declared_size(self, document: bytes, expected: tuple[int, int]) -> None:
        """Test that width/height attributes win and viewBox is the fallback."""
        width, height = expected

        assert measure_svg(document) == ImageDimensions(width=width, height=height)

    @pytest.mark.parametrize(
        "document",
        [
            b'<svg xmlns="http://www.w3.org/2000/svg"/>',
            b'<svg width="10em" height="5em"/>',
            b'<svg viewBox="0 0 auto auto"/>',
        ],
    )
    def test_no_usable_size(self, document: bytes) -> None:
        """Test that relative or missing sizes yield no dimensions."""
        assert measure_svg(document) is None

    def test_rejects_non_svg_root(self) -> None:
        """Test that other XML documents are not accepted as SVG."""
        with pytest.raises(ValueError, match="not <svg>"):
            measure_svg(b"<html><body/></html>")

    def test_rejects_malformed_xml(self) -> None:
        """Test that broken markup is reported as invalid."""
        with pytest.raises(ValueError, match="Invalid SVG document"):
            measure_svg(b"<svg width='10'")

    def test_rejects_entity_declarations(self) -> None:
        """Test that documents declaring entities are refused."""
        document = (
            b'<?xml version="1.0"?><!DOCTYPE svg [<!ENTITY big "xxxxxxxx">]>'
            b'<svg width="&big;" height="1"/>'
        )

        with pytest.raises(ValueError):
            measure_svg(document)


@pytest.mark.unit
class TestCheckCriteria:
    """Test suite for check_criteria."""

    def test_unconstrained_criteria_pass(self) -> None:
        """Test that an empty criteria set accepts anything."""
        dimensions = ImageDimensions(width=1, height=1)

        assert check_criteria(dimensions, 10, ImageValidationCriteria()) == []

    def test_min_width_and_height(self) -> None:
        """Test minimum dimension checks."""
        criteria = ImageValidationCriteria(min_width=800, min_height=800)

        errors = check_criteria(ImageDimensions(width=640, height=480), None, criteria)

        assert errors == [
            "Image width (640px) is less than minimum required (800px)",
            "Image height (480px) is less than minimum required (800px)",
        ]

    def test_max_width_and_height(self) -> None:
        """Test maximum dimension checks."""
        criteria = ImageValidationCriteria(max_width=100, max_height=100)

        errors = check_criteria(ImageDimensions(width=200, height=150), None, criteria)

        assert errors == [
            "Image width (200px) exceeds maximum allowed (100px)",
            "Image height (150px) exceeds maximum allowed (100px)",
        ]

    def test_area_limit_allows_one_large_side(self) -> None:
        """Test that a wide image within the area limit passes."""
        criteria = ImageValidationCriteria(max_area=16)

        assert check_criteria(ImageDimensions(width=6000, height=2000), None, criteria) == []

    def test_area_limit_exceeded(self) -> None:
        """Test that an image above the area limit fails."""
        criteria = ImageValidationCriteria(max_area=16)

        errors = check_criteria(ImageDimensions(width=5000, height=4000), None, criteria)

        assert len(errors) == 1
        assert errors[0].startswith("Image area (20.00Mpx² from 5000x4000px)")

    def test_aspect_ratio_within_tolerance(self) -> None:
        """Test that small aspect ratio deviations are tolerated."""
        criteria = ImageValidationCriteria(aspect_ratio=16 / 9, aspect_ratio_tolerance=0.01)

        assert check_criteria(ImageDimensions(width=1920, height=1080), None, criteria) == []

    def test_aspect_ratio_mismatch(self) -> None:
        """Test that a square image fails a 16:9 requirement."""
        criteria = ImageValidationCriteria(aspect_ratio=16 / 9)

        errors = check_criteria(ImageDimensions(width=1000, height=1000), None, criteria)

        assert errors == ["Image aspect ratio (1.00) does not match required ratio (1.78)"]

    def test_file_size_limit(self) -> None:
        """Test that oversized files fail."""
        criteria = ImageValidationCriteria(max_file_size=1024 * 1024)

        errors = check_criteria(ImageDimensions(width=10, height=10), 3 * 1024 * 1024, criteria)

        assert errors == ["Image file size (3.00MB) exceeds maximum allowed (1.00MB)"]

    def test_unknown_file_size_is_not_checked(self) -> None:
        """Test that the size check is skipped when the size is unknown."""
        criteria = ImageValidationCriteria(max_file_size=1)

        assert check_criteria(ImageDimensions(width=10, height=10), None, criteria) == []


@pytest.mark.unit
class TestValidateImageUrl:
    """Test suite for validate_image_url."""

    @pytest.mark.asyncio
    async def test_valid_image(
        self,
        make_png: Callable[[int, int], bytes],
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that a reachable image within criteria passes."""
        content = make_png(900, 900)
        response = make_image_response(content=content)
        criteria = ImageValidationCriteria(min_width=800, min_height=800)

        with patch_image_fetch(response) as mock_stream:
            result = await validate_image_url(IMAGE_URL, criteria)

        assert result.is_valid is True
        assert result.dimensions == ImageDimensions(width=900, height=900)
        assert result.file_size == len(content)
        assert result.errors == []
        assert mock_stream.call_args.args == ("GET", IMAGE_URL)

    @pytest.mark.asyncio
    async def test_criteria_failure_keeps_measurements(
        self,
        make_png: Callable[[int, int], bytes],
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that a too-small image fails with its dimensions reported."""
        response = make_image_response(content=make_png(100, 50))
        criteria = ImageValidationCriteria(min_width=800)

        with patch_image_fetch(response):
            result = await validate_image_url(IMAGE_URL, criteria)

        assert result.is_valid is False
        assert result.dimensions == ImageDimensions(width=100, height=50)
        assert result.errors == ["Image width (100px) is less than minimum required (800px)"]

    @pytest.mark.asyncio
    async def test_content_length_header_wins(
        self,
        make_png: Callable[[int, int], bytes],
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that the declared Content-Length is used as the file size."""
        response = make_image_response(content=make_png(10, 10), content_length=512 * 1024)
        criteria = ImageValidationCriteria(max_file_size=1024 * 1024)

        with patch_image_fetch(response):
            result = await validate_image_url(IMAGE_URL, criteria)

        assert result.file_size == 512 * 1024
        assert result.is_valid is True

    @pytest.mark.asyncio
    async def test_oversized_content_length_skips_download(
        self,
        make_png: Callable[[int, int], bytes],
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that a body declared larger than the limit is never read."""
        response = make_image_response(content=make_png(10, 10), content_length=5 * 1024 * 1024)
        criteria = ImageValidationCriteria(max_file_size=1024 * 1024, min_width=800)

        with patch_image_fetch(response):
            result = await validate_image_url(IMAGE_URL, criteria)

        assert result.is_valid is False
        assert result.file_size == 5 * 1024 * 1024
        assert result.dimensions is None
        assert result.errors == ["Image file size (5.00MB) exceeds maximum allowed (1.00MB)"]
        response.aread.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_http_error_status(
        self,
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that a non-2xx status is reported without reading the body."""
        response = make_image_response(status_code=404, reason_phrase="Not Found")

        with patch_image_fetch(response):
            result = await validate_image_url(IMAGE_URL)

        assert result.is_valid is False
        assert result.dimensions is None
        assert result.errors == ["Failed to fetch image: 404 Not Found"]
        response.aread.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_image_content_type(
        self,
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that non-image responses are rejected before decoding."""
        response = make_image_response(content=b"<html></html>", content_type="text/html")

        with patch_image_fetch(response):
            result = await validate_image_url(IMAGE_URL)

        assert result.is_valid is False
        assert result.errors == ["URL does not point to an image. Content-Type: text/html"]

    @pytest.mark.asyncio
    async def test_missing_content_type(
        self,
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that a response without a content type is rejected."""
        response = make_image_response(content=b"...", content_type=None)

        with patch_image_fetch(response):
            result = await validate_image_url(IMAGE_URL)

        assert result.errors == ["URL does not point to an image. Content-Type: None"]

    @pytest.mark.asyncio
    async def test_network_error(self, patch_image_fetch: Callable[..., Any]) -> None:
        """Test that transport errors are reported instead of raised."""
        with patch_image_fetch(httpx.ConnectError("connection refused")):
            result = await validate_image_url(IMAGE_URL)

        assert result.is_valid is False
        assert result.dimensions is None
        assert result.errors == ["Error validating image: connection refused"]

    @pytest.mark.asyncio
    async def test_undecodable_image(
        self,
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that corrupt image data is reported."""
        response = make_image_response(content=b"not really a png")

        with patch_image_fetch(response):
            result = await validate_image_url(IMAGE_URL)

        assert result.is_valid is False
        assert result.errors[0].startswith("Error validating image:")

    @pytest.mark.asyncio
    async def test_svg_is_measured_from_its_declared_size(
        self,
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that SVG images are checked against their width and height attributes."""
        response = make_image_response(
            content=b'<svg xmlns="http://www.w3.org/2000/svg" width="400" height="300"/>',
            content_type="image/svg+xml",
        )
        criteria = ImageValidationCriteria(min_width=800)

        with patch_image_fetch(response):
            result = await validate_image_url(IMAGE_URL, criteria)

        assert result.is_valid is False
        assert result.dimensions == ImageDimensions(width=400, height=300)
        assert result.errors == ["Image width (400px) is less than minimum required (800px)"]

    @pytest.mark.asyncio
    async def test_unsized_svg_checks_file_size_only(
        self,
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that an SVG without a declared size passes the pixel constraints."""
        content = b'<svg xmlns="http://www.w3.org/2000/svg"><rect width="10" height="10"/></svg>'
        response = make_image_response(
            content=content, content_type="image/svg+xml; charset=utf-8"
        )
        criteria = ImageValidationCriteria(min_width=800, min_height=800, max_file_size=1024)

        with patch_image_fetch(response):
            result = await validate_image_url(IMAGE_URL, criteria)

        assert result.is_valid is True
        assert result.dimensions is None
        assert result.file_size == len(content)

    @pytest.mark.asyncio
    async def test_records_metrics(
        self,
        make_png: Callable[[int, int], bytes],
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that each check is recorded."""
        response = make_image_response(content=make_png(10, 10))

        with (
            patch_image_fetch(response),
            patch(
                "pos_payload_validator.validation.image_validator.record_image_validation"
            ) as mock_record,
        ):
            await validate_image_url(IMAGE_URL)

        mock_record.assert_called_once()
        assert mock_record.call_args.args[0] is True


@pytest.mark.unit
class TestValidateImageUrls:
    """Test suite for concurrent image validation."""

    @pytest.mark.asyncio
    async def test_results_are_keyed_by_url(
        self,
        make_png: Callable[[int, int], bytes],
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that each URL maps to its own outcome."""
        responses = {
            "https://cdn.example.com/big.png": make_image_response(content=make_png(900, 900)),
            "https://cdn.example.com/small.png": make_image_response(content=make_png(10, 10)),
            "https://cdn.example.com/gone.png": make_image_response(
                status_code=404, reason_phrase="Not Found"
            ),
        }
        criteria = ImageValidationCriteria(min_width=800)

        with patch_image_fetch(responses):
            results = await validate_image_urls(list(responses), criteria)

        assert set(results) == set(responses)
        assert results["https://cdn.example.com/big.png"].is_valid is True
        assert results["https://cdn.example.com/small.png"].is_valid is False
        assert results["https://cdn.example.com/gone.png"].errors == [
            "Failed to fetch image: 404 Not Found"
        ]

    @pytest.mark.asyncio
    async def test_one_failure_does_not_cancel_others(
        self,
        make_png: Callable[[int, int], bytes],
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test that a raising fetch leaves the other results intact."""
        outcomes = {
            "https://cdn.example.com/broken.png": httpx.ReadTimeout("timed out"),
            "https://cdn.example.com/fine.png": make_image_response(content=make_png(10, 10)),
        }

        with patch_image_fetch(outcomes):
            results = await validate_image_urls(list(outcomes))

        assert results["https://cdn.example.com/broken.png"].errors == [
            "Error validating image: timed out"
        ]
        assert results["https://cdn.example.com/fine.png"].is_valid is True

    @pytest.mark.asyncio
    async def test_duplicate_urls_are_fetched_once(
        self,
        make_png: Callable[[int, int], bytes],
        make_image_response: Callable[..., MagicMock],
        patch_image_fetch: Callable[..., Any],
    ) -> None:
        """Test de-duplication of URLs."""
        response = make_image_response(content=make_png(10, 10))

        with patch_image_fetch(response) as mock_stream:
            results = await validate_image_urls([IMAGE_URL, IMAGE_URL])

        assert list(results) == [IMAGE_URL]
        assert mock_stream.call_count == 1

    @pytest.mark.asyncio
    async def test_no_urls(self, patch_image_fetch: Callable[..., Any]) -> None:
        """Test that an empty list performs no requests."""
        with patch_image_fetch({}) as mock_stream:
            results = await validate_image_urls([])

        assert results == {}
        mock_stream.assert_not_called()
