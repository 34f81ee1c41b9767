"""Catalog (menu push) payload models.

A catalog push is a flat mapping of caller-assigned item ids to typed
catalog items. The ``type`` field selects one of six variants; every variant
accepts additional vendor fields without validating them.
"""

import re
from typing import Annotated, Literal, Union
from urllib.parse import urlparse

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from pos_payload_validator.models.constraints import non_empty, require

IMAGE_FILE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".tif", ".tiff")

# Image CDNs that serve extension-less URLs
CDN_URL_PATTERNS = (
    re.compile(r"res\.cloudinary\.com/.+/image/upload/", re.IGNORECASE),
    re.compile(r"[a-z0-9-]+\.imgix\.net/", re.IGNORECASE),
    re.compile(r"images\.deliveryhero\.io/", re.IGNORECASE),
    re.compile(r"lh\d+\.googleusercontent\.com/", re.IGNORECASE),
    re.compile(r"images\.unsplash\.com/photo-", re.IGNORECASE),
)

MIN_CDN_URL_LENGTH = 40

CATALOG_ITEM_TYPES = ("Menu", "Product", "Category", "Topping", "Image", "ScheduleEntry")

MENU_TYPES = ("DELIVERY", "DINE_IN", "PICK_UP")

_http_url_adapter = TypeAdapter(AnyHttpUrl)


def is_valid_http_url(url: str) -> bool:
    """Check that a string parses as an absolute http(s) URL."""
    try:
        _http_url_adapter.validate_python(url)
    except ValidationError:
        return False
    return True


def has_image_extension(url: str) -> bool:
    """Check whether the URL path ends in a recognized image file extension."""
    path = urlparse(url).path.lower()
    return path.endswith(IMAGE_FILE_EXTENSIONS)


def is_complete_image_url(url: str) -> bool:
    """Guard against truncated image URLs.

    A URL is accepted when it ends in an image extension, or when it matches
    a known image CDN pattern and is long enough to carry an asset identifier.
    """
    if has_image_extension(url):
        return True
    if len(url) < MIN_CDN_URL_LENGTH:
        return False
    return any(pattern.search(url) for pattern in CDN_URL_PATTERNS)


class LocalizedString(BaseModel):
    """Text with a mandatory ``default`` entry plus optional locale entries."""

    model_config = ConfigDict(strict=True, extra="allow")

    __pydantic_extra__: dict[str, str]

    default: Annotated[
        str, require(non_empty, "Localized text must have a non-empty default value.")
    ]


class ItemReference(BaseModel):
    """Pointer to another catalog item by id and type."""

    model_config = ConfigDict(strict=True, extra="allow")

    id: Annotated[str, require(non_empty, "Reference ID cannot be empty.")]
    type: str


ReferenceMap = dict[str, ItemReference]


class CatalogItemBase(BaseModel):
    """Fields shared by every catalog item variant."""

    model_config = ConfigDict(strict=True, extra="allow", populate_by_name=True)

    id: str | None = None


class MenuItem(CatalogItemBase):
    type: Literal["Menu"]
    title: LocalizedString
    menu_type: Literal["DELIVERY", "DINE_IN", "PICK_UP"] = Field(..., alias="menuType")
    products: Annotated[
        ReferenceMap, require(non_empty, "Menu must reference at least one product.")
    ]
    schedule: ReferenceMap | None = None
    active: bool = True
    images: ReferenceMap | None = None


class ProductItem(CatalogItemBase):
    """Sellable product. ``price`` stays a string to keep the vendor's formatting."""

    type: Literal["Product"]
    title: LocalizedString
    price: Annotated[str, require(non_empty, "Price cannot be empty.")]
    description: LocalizedString | None = None
    images: ReferenceMap | None = None
    active: bool = True
    toppings: ReferenceMap | None = None


class CategoryItem(CatalogItemBase):
    type: Literal["Category"]


class ToppingItem(CatalogItemBase):
    type: Literal["Topping"]


class ScheduleEntryItem(CatalogItemBase):
    type: Literal["ScheduleEntry"]


class ImageItem(CatalogItemBase):
    type: Literal["Image"]
    url: Annotated[
        str,
        require(is_valid_http_url, "Invalid URL", "url_parsing"),
        require(
            is_complete_image_url,
            "Image URL appears to be incomplete or is missing a file extension.",
            "image_url",
        ),
    ]
    alt: dict[str, str] | None = None


CatalogItem = Annotated[
    Union[MenuItem, ProductItem, CategoryItem, ToppingItem, ImageItem, ScheduleEntryItem],
    Field(discriminator="type"),
]


class MenuPushPayload(BaseModel):
    """Catalog push: a non-empty mapping of item id to catalog item."""

    model_config = ConfigDict(strict=True, extra="allow")

    items: Annotated[
        dict[str, CatalogItem], require(non_empty, "Catalog must contain at least one item.")
    ]
