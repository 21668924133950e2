"""Domain records persisted by the storefront database."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Language:
    id: int
    code: str
    sort_order: int = 0


@dataclass(frozen=True)
class MerchantStore:
    """A tenant of the storefront with its own catalog, content, and customers."""

    id: int
    code: str
    name: str
    email: str
    country: str
    currency: str
    default_language: Language
    languages: Tuple[Language, ...]
    domain: Optional[str]
    retailer: bool
    parent_id: Optional[int]
    created_at: datetime

    def supports(self, language_code: str) -> bool:
        code = language_code.strip().lower()
        return any(language.code == code for language in self.languages)


@dataclass(frozen=True)
class Category:
    id: int
    store_id: int
    parent_id: Optional[int]
    code: str
    sort_order: int
    visible: bool
    depth: int
    lineage: str
    created_at: datetime
    names: Dict[str, str] = field(default_factory=dict)
    descriptions: Dict[str, str] = field(default_factory=dict)
    seo_urls: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ProductType:
    id: int
    store_id: Optional[int]
    code: str
    name: str
    allow_add_to_cart: bool
    visible: bool


@dataclass(frozen=True)
class Product:
    id: int
    store_id: int
    sku: str
    type_id: Optional[int]
    category_id: Optional[int]
    price_cents: int
    available: bool
    created_at: datetime
    names: Dict[str, str] = field(default_factory=dict)
    descriptions: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ProductImageDescription:
    """Localised metadata attached to a product image."""

    image_id: int
    language_code: str
    name: Optional[str]
    alt_tag: Optional[str]


@dataclass(frozen=True)
class ProductImage:
    id: int
    product_id: int
    image_name: str
    default_image: bool
    sort_order: int
    descriptions: Tuple[ProductImageDescription, ...] = ()


@dataclass(frozen=True)
class ProductVariantImage:
    id: int
    variant_id: int
    variant_code: str
    product_id: int
    image_name: str


@dataclass(frozen=True)
class ProductAvailability:
    id: int
    product_id: int
    region: str
    quantity: int
    free_shipping: bool


@dataclass(frozen=True)
class ContentEntity:
    """A CMS page, box, or section with per-language text."""

    id: int
    store_id: int
    code: str
    content_type: str
    position: Optional[str]
    visible: bool
    sort_order: int
    created_at: datetime
    names: Dict[str, str] = field(default_factory=dict)
    titles: Dict[str, str] = field(default_factory=dict)
    bodies: Dict[str, str] = field(default_factory=dict)
    seo_urls: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Customer:
    id: int
    store_id: int
    email: str
    first_name: str
    last_name: str
    gender: Optional[str]
    language_code: str
    created_at: datetime


@dataclass(frozen=True)
class OrderProductDownload:
    id: int
    store_id: int
    order_id: int
    file_name: str
    max_days: int
    max_downloads: int
    download_count: int
    created_at: datetime


@dataclass(frozen=True)
class ShippingOrigin:
    store_id: int
    active: bool
    address: Optional[str]
    city: Optional[str]
    postal_code: Optional[str]
    state: Optional[str]
    country: Optional[str]


__all__ = [
    "Category",
    "ContentEntity",
    "Customer",
    "Language",
    "MerchantStore",
    "OrderProductDownload",
    "Product",
    "ProductAvailability",
    "ProductImage",
    "ProductImageDescription",
    "ProductType",
    "ProductVariantImage",
    "ShippingOrigin",
]
