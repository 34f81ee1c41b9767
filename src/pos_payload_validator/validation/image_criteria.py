"""Image quality presets.

Platform image guidelines:
- Maximum file size: 20MB
- Maximum area: 16 megapixels (e.g. 4000x4000px)
- Accepted formats: GIF, JPEG, Lottie, PNG, SVG, TIFF, WebP

An image under 4000px in both dimensions is always within the area limit;
one dimension above 4000px is accepted as long as the total area stays
within 16 megapixels (6000x2000 passes, 5000x4000 does not).
"""

from types import MappingProxyType

from pos_payload_validator.models.validation_models import ImageValidationCriteria

MAX_IMAGE_AREA_MEGAPIXELS = 16
MAX_IMAGE_FILE_SIZE = 20 * 1024 * 1024

STANDARD = ImageValidationCriteria(
    max_area=MAX_IMAGE_AREA_MEGAPIXELS,
    max_file_size=MAX_IMAGE_FILE_SIZE,
)

# Product photos, with recommended minimum dimensions
PRODUCT = ImageValidationCriteria(
    min_width=800,
    min_height=800,
    max_area=MAX_IMAGE_AREA_MEGAPIXELS,
    max_file_size=MAX_IMAGE_FILE_SIZE,
)

# Menu and category banners
MENU = ImageValidationCriteria(
    min_width=1200,
    min_height=400,
    max_area=MAX_IMAGE_AREA_MEGAPIXELS,
    max_file_size=MAX_IMAGE_FILE_SIZE,
)

THUMBNAIL = ImageValidationCriteria(
    min_width=200,
    min_height=200,
    max_area=MAX_IMAGE_AREA_MEGAPIXELS,
    max_file_size=MAX_IMAGE_FILE_SIZE,
)

IMAGE_CRITERIA_PRESETS = MappingProxyType(
    {
        "standard": STANDARD,
        "product": PRODUCT,
        "menu": MENU,
        "thumbnail": THUMBNAIL,
    }
)


def get_image_criteria(preset: str) -> ImageValidationCriteria:
    """Look up a criteria preset by name.

    Args:
        preset: One of ``standard``, ``product``, ``menu``, ``thumbnail`` (case-insensitive)

    Returns:
        The matching ImageValidationCriteria

    Raises:
        ValueError: If the preset name is unknown
    """
    try:
        return IMAGE_CRITERIA_PRESETS[preset.strip().lower()]
    except KeyError:
        available = ", ".join(IMAGE_CRITERIA_PRESETS)
        raise ValueError(
            f"Unknown image criteria preset '{preset}'. Available presets: {available}"
        ) from None
