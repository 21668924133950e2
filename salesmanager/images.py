"""Product image scaling helpers built on Pillow."""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from .errors import ServiceError
from .filemanager import FileContentType, InputContentFile

logger = logging.getLogger("salesmanager.images")

_RESAMPLE = Image.Resampling.BILINEAR

_FORMAT_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
}


class ImageProcessingError(ServiceError):
    """Raised when uploaded image data cannot be decoded or resized."""


def _check_dimensions(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ImageProcessingError(f"Target size {width}x{height} must be positive")


def resize(image: Image.Image, width: int, height: int) -> Image.Image:
    """Scale ``image`` to exactly ``width`` x ``height`` in a single pass."""

    _check_dimensions(width, height)
    return image.resize((width, height), _RESAMPLE)


def resize_with_hint(
    image: Image.Image,
    width: int,
    height: int,
    *,
    higher_quality: bool = True,
) -> Image.Image:
    """Scale ``image`` to the target size using progressive downscaling.

    A single bilinear pass loses detail when the reduction factor exceeds two,
    so in ``higher_quality`` mode each dimension is halved per pass until it
    reaches its target. Dimensions already below the target are scaled up in
    the first pass.
    """

    _check_dimensions(width, height)
    if not higher_quality:
        return resize(image, width, height)

    current = image
    w, h = image.size
    while (w, h) != (width, height):
        if w > width:
            w = max(w // 2, width)
        elif w < width:
            w = width
        if h > height:
            h = max(h // 2, height)
        elif h < height:
            h = height
        current = current.resize((w, h), _RESAMPLE)
    if current is image:
        return image.copy()
    return current


def fit_within(source: Tuple[int, int], bounds: Tuple[int, int]) -> Tuple[int, int]:
    """Return the largest size with the ratio of ``source`` that fits ``bounds``.

    A zero bound means the source dimension is used. Sources already inside the
    bounds are returned unchanged.
    """

    src_w, src_h = source
    max_w = bounds[0] or src_w
    max_h = bounds[1] or src_h
    if src_w <= max_w and src_h <= max_h:
        return src_w, src_h
    scale = min(max_w / src_w, max_h / src_h)
    fitted_w = min(max_w, max(1, round(src_w * scale)))
    fitted_h = min(max_h, max(1, round(src_h * scale)))
    return fitted_w, fitted_h


def resize_with_ratio(image: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """Scale ``image`` down so it fits the bounding box, preserving its ratio."""

    if max_width < 0 or max_height < 0:
        raise ImageProcessingError("Bounding box dimensions must not be negative")
    width, height = fit_within(image.size, (max_width, max_height))
    if (width, height) == image.size:
        return image.copy()
    return resize_with_hint(image, width, height)


def load_image(data: bytes) -> Image.Image:
    if not data:
        raise ImageProcessingError("Image data is empty")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageProcessingError("Uploaded file is not a supported image") from exc
    return image


def encode_image(image: Image.Image, image_format: str) -> bytes:
    fmt = image_format.upper()
    if fmt == "JPG":
        fmt = "JPEG"
    output = image
    if fmt == "JPEG" and image.mode not in {"RGB", "L"}:
        output = image.convert("RGB")
    buffer = io.BytesIO()
    try:
        output.save(buffer, format=fmt)
    except (KeyError, OSError, ValueError) as exc:
        raise ImageProcessingError(f"Unable to encode image as {image_format}") from exc
    return buffer.getvalue()


@dataclass(frozen=True)
class ProductImageVariants:
    small: InputContentFile
    large: InputContentFile
    width: int
    height: int


def build_product_image_variants(
    data: bytes,
    file_name: str,
    *,
    small: Tuple[int, int],
    large: Tuple[int, int],
) -> ProductImageVariants:
    """Decode an upload and produce the small and large product renditions."""

    image = load_image(data)
    image_format = image.format or (PurePosixPath(file_name).suffix.lstrip(".") or "PNG")
    mime_type = _FORMAT_MIME_TYPES.get(image_format.upper(), "application/octet-stream")

    small_image = resize_with_ratio(image, *small)
    large_image = resize_with_ratio(image, *large)
    logger.debug(
        "Resized %s from %sx%s to %s (small) and %s (large)",
        file_name,
        image.width,
        image.height,
        small_image.size,
        large_image.size,
    )

    return ProductImageVariants(
        small=InputContentFile(
            file_name=file_name,
            data=encode_image(small_image, image_format),
            file_content_type=FileContentType.PRODUCT,
            mime_type=mime_type,
        ),
        large=InputContentFile(
            file_name=file_name,
            data=encode_image(large_image, image_format),
            file_content_type=FileContentType.PRODUCTLG,
            mime_type=mime_type,
        ),
        width=image.width,
        height=image.height,
    )


__all__ = [
    "ImageProcessingError",
    "ProductImageVariants",
    "build_product_image_variants",
    "encode_image",
    "fit_within",
    "load_image",
    "resize",
    "resize_with_hint",
    "resize_with_ratio",
]
