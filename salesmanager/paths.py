"""URL builders for static content and product images."""
from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from .filemanager import FileContentType, split_path

STATIC_FILES_PREFIX = "/static/files"
PRODUCT_IMAGES_PREFIX = "/static/products"

SMALL_IMAGE = "SMALL"
LARGE_IMAGE = "LARGE"


def _segment(value: str) -> str:
    return quote(value.strip(), safe="")


def build_static_file_path(
    store_code: str, file_type: FileContentType, file_name: str, path: Optional[str] = None
) -> str:
    segments = [_segment(store_code), file_type.value]
    segments.extend(_segment(part) for part in split_path(path))
    segments.append(_segment(file_name))
    return STATIC_FILES_PREFIX + "/" + "/".join(segments)


def build_product_image_path(store_code: str, sku: str, image_name: str, size: str = SMALL_IMAGE) -> str:
    if size not in {SMALL_IMAGE, LARGE_IMAGE}:
        raise ValueError(f"Unknown image size '{size}'")
    return f"{PRODUCT_IMAGES_PREFIX}/{_segment(store_code)}/{_segment(sku)}/{size}/{_segment(image_name)}"


def absolute_url(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + "/" + path.lstrip("/")


__all__ = [
    "LARGE_IMAGE",
    "SMALL_IMAGE",
    "absolute_url",
    "build_product_image_path",
    "build_static_file_path",
]
