"""Image dimension validation.

Fetches images over HTTP, measures their pixel dimensions and file size and
checks them against a criteria set. Every failure (network error, non-2xx
status, non-image content, undecodable data) is reported in the returned
ImageValidationResult; nothing is raised to the caller.

Raster formats are measured with Pillow. SVG documents have no pixel grid, so
their size comes from the root element's width/height or viewBox; an SVG that
declares neither is checked for file size only.
"""

import asyncio
import logging
import re
import time
from io import BytesIO

import httpx
from defusedxml import ElementTree
from PIL import Image

from pos_payload_validator.models.validation_models import (
    ImageDimensions,
    ImageValidationCriteria,
    ImageValidationResult,
)
from pos_payload_validator.observability.metrics import record_image_validation

logger = logging.getLogger(__name__)

BYTES_PER_MEGABYTE = 1024 * 1024
SVG_CONTENT_TYPE = "image/svg+xml"

# Absolute SVG lengths only; percentages and em/ex depend on the embedding page
_SVG_PIXEL_LENGTH = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*(?:px)?\s*$")


def measure_image(content: bytes) -> ImageDimensions:
    """Read pixel dimensions from encoded image bytes.

    Only the image header is read, so images above Pillow's decompression bomb
    limit are still measured and left to the area check.

    Raises:
        PIL.UnidentifiedImageError: If the bytes are not a supported image format
    """
    try:
        with Image.open(BytesIO(content)) as image:
            width, height = image.size
    except Image.DecompressionBombError:
        pixel_limit = Image.MAX_IMAGE_PIXELS
        Image.MAX_IMAGE_PIXELS = None
        try:
            with Image.open(BytesIO(content)) as image:
                width, height = image.size
        finally:
            Image.MAX_IMAGE_PIXELS = pixel_limit
        logger.info(f"Image of {width}x{height}px exceeds the decoder pixel limit")
    return ImageDimensions(width=width, height=height)


def _svg_length(value: str | None) -> float | None:
    if value is None:
        return None
    match = _SVG_PIXEL_LENGTH.match(value)
    return float(match.group(1)) if match else None


def measure_svg(content: bytes) -> ImageDimensions | None:
    """Read the intrinsic size of an SVG document.

    The root ``width`` and ``height`` are used when both are absolute lengths,
    otherwise the width and height of the ``viewBox``.

    Returns:
        The declared size rounded to whole pixels, None when the document
        declares no usable size

    Raises:
        ValueError: If the document is not well-formed XML, uses DTD entities,
            or its root element is not ``<svg>``
    """
    try:
        root = ElementTree.fromstring(content)
    except ElementTree.ParseError as e:
        raise ValueError(f"Invalid SVG document: {e}") from e
    if root.tag.rsplit("}", 1)[-1] != "svg":
        raise ValueError(f"Document root is <{root.tag}>, not <svg>")

    width = _svg_length(root.get("width"))
    height = _svg_length(root.get("height"))
    if width is None or height is None:
        view_box = (root.get("viewBox") or "").replace(",", " ").split()
        if len(view_box) != 4:
            return None
        width, height = _svg_length(view_box[2]), _svg_length(view_box[3])
        if width is None or height is None:
            return None

    return ImageDimensions(width=round(width), height=round(height))


def check_file_size(file_size: int | None, criteria: ImageValidationCriteria) -> list[str]:
    """Check a size in bytes against ``max_file_size``; unknown sizes pass."""
    if criteria.max_file_size is None or file_size is None:
        return []
    if file_size <= criteria.max_file_size:
        return []
    return [
        f"Image file size ({file_size / BYTES_PER_MEGABYTE:.2f}MB) exceeds maximum "
        f"allowed ({criteria.max_file_size / BYTES_PER_MEGABYTE:.2f}MB)"
    ]


def check_criteria(
    dimensions: ImageDimensions,
    file_size: int | None,
    criteria: ImageValidationCriteria,
) -> list[str]:
    """Check measured values against every configured constraint.

    Args:
        dimensions: Measured pixel dimensions
        file_size: Size in bytes, None when unknown
        criteria: Constraints to enforce; unset fields are skipped

    Returns:
        One message per violated constraint, empty when all pass
    """
    errors = check_file_size(file_size, criteria)
    width, height = dimensions.width, dimensions.height

    if criteria.min_width is not None and width < criteria.min_width:
        errors.append(
            f"Image width ({width}px) is less than minimum required ({criteria.min_width}px)"
        )

    if criteria.max_width is not None and width > criteria.max_width:
        errors.append(f"Image width ({width}px) exceeds maximum allowed ({criteria.max_width}px)")

    if criteria.min_height is not None and height < criteria.min_height:
        errors.append(
            f"Image height ({height}px) is less than minimum required ({criteria.min_height}px)"
        )

    if criteria.max_height is not None and height > criteria.max_height:
        errors.append(
            f"Image height ({height}px) exceeds maximum allowed ({criteria.max_height}px)"
        )

    if criteria.max_area is not None:
        area = dimensions.area_megapixels
        if area > criteria.max_area:
            errors.append(
                f"Image area ({area:.2f}Mpx² from {width}x{height}px) exceeds maximum "
                f"allowed ({criteria.max_area:g}Mpx²)"
            )

    if criteria.aspect_ratio is not None:
        if height == 0:
            errors.append("Image aspect ratio cannot be computed for an image with zero height")
        else:
            actual_ratio = width / height
            if abs(actual_ratio - criteria.aspect_ratio) > criteria.aspect_ratio_tolerance:
                errors.append(
                    f"Image aspect ratio ({actual_ratio:.2f}) does not match required "
                    f"ratio ({criteria.aspect_ratio:.2f})"
                )

    return errors


async def _fetch_and_check(
    client: httpx.AsyncClient, url: str, criteria: ImageValidationCriteria
) -> ImageValidationResult:
    async with client.stream("GET", url) as response:
        if not 200 <= response.status_code < 300:
            return ImageValidationResult(
                is_valid=False,
                errors=[f"Failed to fetch image: {response.status_code} {response.reason_phrase}"],
            )

        content_type = response.headers.get("content-type")
        if not content_type or not content_type.startswith("image/"):
            return ImageValidationResult(
                is_valid=False,
                errors=[f"URL does not point to an image. Content-Type: {content_type}"],
            )

        content_length = response.headers.get("content-length")
        if content_length:
            file_size = int(content_length)
            size_errors = check_file_size(file_size, criteria)
            if size_errors:
                # Declared size already fails; skip the download
                return ImageValidationResult(
                    is_valid=False, file_size=file_size, errors=size_errors
                )

        content = await response.aread()

    file_size = int(content_length) if content_length else len(content)

    if content_type.split(";", 1)[0].strip().lower() == SVG_CONTENT_TYPE:
        dimensions = measure_svg(content)
    else:
        dimensions = measure_image(content)

    if dimensions is None:
        errors = check_file_size(file_size, criteria)
    else:
        errors = check_criteria(dimensions, file_size, criteria)

    return ImageValidationResult(
        is_valid=not errors,
        dimensions=dimensions,
        file_size=file_size,
        errors=errors,
    )


async def validate_image_url(
    url: str,
    criteria: ImageValidationCriteria | None = None,
    client: httpx.AsyncClient | None = None,
) -> ImageValidationResult:
    """Fetch an image and validate it against the given criteria.

    Args:
        url: Image URL to fetch
        criteria: Constraints to enforce (unconstrained when omitted)
        client: Optional shared HTTP client; a short-lived one is created otherwise

    Returns:
        ImageValidationResult; fetch and decode failures are reported as errors
    """
    criteria = criteria or ImageValidationCriteria()
    started = time.perf_counter()

    try:
        if client is not None:
            result = await _fetch_and_check(client, url, criteria)
        else:
            async with httpx.AsyncClient(follow_redirects=True) as own_client:
                result = await _fetch_and_check(own_client, url, criteria)
    except Exception as e:
        logger.warning(f"Image validation failed for {url}: {e}")
        result = ImageValidationResult(is_valid=False, errors=[f"Error validating image: {e}"])

    record_image_validation(result.is_valid, time.perf_counter() - started)
    return result


async def validate_image_urls(
    urls: list[str], criteria: ImageValidationCriteria | None = None
) -> dict[str, ImageValidationResult]:
    """Validate several image URLs concurrently.

    All fetches run to completion; one failure does not cancel the others.
    Duplicate URLs are fetched once.

    Args:
        urls: Image URLs to validate
        criteria: Constraints applied to every image

    Returns:
        Mapping of URL to its ImageValidationResult
    """
    unique_urls = list(dict.fromkeys(urls))
    if not unique_urls:
        return {}

    async with httpx.AsyncClient(follow_redirects=True) as client:
        results = await asyncio.gather(
            *(validate_image_url(url, criteria, client=client) for url in unique_urls)
        )

    return dict(zip(unique_urls, results))
