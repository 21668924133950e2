"""Catalog facade: categories, products, images, and availability."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Dict, List, Mapping, Optional, Tuple

import anyio.to_thread

from .criteria import ProductCriteria
from .database import Database
from .errors import NotFoundError, ServiceError
from .filemanager import (
    FileContentType,
    InputContentFile,
    OutputContentFile,
    StaticContentFileManager,
    validate_file_name,
)
from .images import build_product_image_variants, load_image
from .models import (
    Category,
    Language,
    MerchantStore,
    Product,
    ProductAvailability,
    ProductImage,
    ProductType,
    ProductVariantImage,
)
from .paths import LARGE_IMAGE, SMALL_IMAGE, absolute_url, build_product_image_path, build_static_file_path

logger = logging.getLogger("salesmanager.catalog")


@dataclass
class CategoryNode:
    category: Category
    name: str
    children: List["CategoryNode"] = field(default_factory=list)


@dataclass(frozen=True)
class ProductImageView:
    image: ProductImage
    small_url: str
    large_url: str


@dataclass(frozen=True)
class VariantImageView:
    image: ProductVariantImage
    url: str


def localized(values: Mapping[str, str], language: Language, fallback: Language) -> Optional[str]:
    """Pick the text for ``language``, falling back to the store default."""

    if language.code in values:
        return values[language.code]
    if fallback.code in values:
        return values[fallback.code]
    return next(iter(values.values()), None)


class CatalogFacade:
    """Aggregate catalog repository calls for the API layer."""

    def __init__(
        self,
        database: Database,
        file_manager: StaticContentFileManager,
        *,
        small_image_size: Tuple[int, int] = (110, 110),
        large_image_size: Tuple[int, int] = (900, 900),
        public_base_url: str = "",
    ) -> None:
        self._database = database
        self._files = file_manager
        self._small_image_size = small_image_size
        self._large_image_size = large_image_size
        self._public_base_url = public_base_url

    def _url(self, path: str) -> str:
        if not self._public_base_url:
            return path
        return absolute_url(self._public_base_url, path)

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------
    def get_store(self, code: str) -> MerchantStore:
        store = self._database.get_store(code)
        if store is None:
            raise NotFoundError(f"Store '{code}' not found")
        return store

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------
    def category_tree(self, store: MerchantStore, language: Language, *, visible_only: bool = True) -> List[CategoryNode]:
        """Return the store's categories as nested nodes named in ``language``."""

        nodes: Dict[int, CategoryNode] = {}
        roots: List[CategoryNode] = []
        # ordered by depth, so parents are always seen before children
        for category in self._database.list_categories(store.id):
            if visible_only and not category.visible:
                continue
            node = CategoryNode(
                category=category,
                name=localized(category.names, language, store.default_language) or category.code,
            )
            nodes[category.id] = node
            if category.parent_id is None:
                roots.append(node)
            elif category.parent_id in nodes:
                nodes[category.parent_id].children.append(node)
        return roots

    def child_categories(self, store: MerchantStore, parent_id: Optional[int]) -> List[Category]:
        if parent_id is not None:
            self.get_category(store, parent_id)
        return self._database.list_categories_by_store_and_parent(store.id, parent_id)

    def get_category(self, store: MerchantStore, category_id: int) -> Category:
        category = self._database.get_category(store.id, category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    def create_category(
        self,
        store: MerchantStore,
        *,
        code: str,
        names: Mapping[str, str],
        parent_id: Optional[int] = None,
        descriptions: Optional[Mapping[str, str]] = None,
        seo_urls: Optional[Mapping[str, str]] = None,
        sort_order: int = 0,
        visible: bool = True,
    ) -> Category:
        self._require_languages(store, names)
        if parent_id is not None:
            self.get_category(store, parent_id)
        try:
            category = self._database.create_category(
                store.id,
                code=code,
                names=names,
                parent_id=parent_id,
                descriptions=descriptions,
                seo_urls=seo_urls,
                sort_order=sort_order,
                visible=visible,
            )
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc
        logger.info("Created category %s in store %s (lineage %s)", category.code, store.code, category.lineage)
        return category

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------
    def create_product(
        self,
        store: MerchantStore,
        *,
        sku: str,
        names: Mapping[str, str],
        descriptions: Optional[Mapping[str, str]] = None,
        price_cents: int = 0,
        category_id: Optional[int] = None,
        type_code: Optional[str] = None,
        available: bool = True,
    ) -> Product:
        self._require_languages(store, names)
        if category_id is not None:
            self.get_category(store, category_id)

        type_id: Optional[int] = None
        if type_code:
            product_type = next(
                (item for item in self._database.list_product_types(store.id) if item.code == type_code),
                None,
            )
            if product_type is None:
                raise NotFoundError(f"Product type '{type_code}' not found")
            type_id = product_type.id

        try:
            product = self._database.create_product(
                store.id,
                sku=sku,
                names=names,
                descriptions=descriptions,
                price_cents=price_cents,
                category_id=category_id,
                type_id=type_id,
                available=available,
            )
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc
        logger.info("Created product %s in store %s", product.sku, store.code)
        return product

    def get_product(self, store: MerchantStore, product_id: int) -> Product:
        product = self._database.get_product(store.id, product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def list_products(self, store: MerchantStore, criteria: ProductCriteria) -> Tuple[List[Product], int]:
        if criteria.category_id is not None:
            self.get_category(store, criteria.category_id)
        return self._database.list_products(store.id, criteria)

    def product_types(self, store: MerchantStore) -> List[ProductType]:
        return self._database.list_product_types(store.id)

    def create_product_type(self, store: MerchantStore, *, code: str, name: str, allow_add_to_cart: bool = True) -> ProductType:
        try:
            return self._database.create_product_type(
                store.id, code=code, name=name, allow_add_to_cart=allow_add_to_cart
            )
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc

    # ------------------------------------------------------------------
    # Product images
    # ------------------------------------------------------------------
    async def upload_product_image(
        self,
        store: MerchantStore,
        product_id: int,
        *,
        file_name: str,
        data: bytes,
        descriptions: Optional[Mapping[str, Tuple[Optional[str], Optional[str]]]] = None,
        default_image: bool = False,
    ) -> ProductImageView:
        """Resize an uploaded image, store both renditions, and record it."""

        product = self.get_product(store, product_id)
        variants = await anyio.to_thread.run_sync(
            partial(
                build_product_image_variants,
                data,
                file_name,
                small=self._small_image_size,
                large=self._large_image_size,
            )
        )
        validate_file_name(variants.small.file_name)
        try:
            image = self._database.add_product_image(
                product.id,
                image_name=variants.small.file_name,
                descriptions=descriptions,
                default_image=default_image,
            )
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc
        try:
            self._files.add_files(store.code, [variants.small, variants.large], path=product.sku)
        except ServiceError:
            self._database.remove_product_image(image.id)
            raise
        logger.info(
            "Stored image %s (%sx%s) for product %s in store %s",
            image.image_name,
            variants.width,
            variants.height,
            product.sku,
            store.code,
        )
        return self._image_view(store, product, image)

    def product_images(self, store: MerchantStore, product_id: int) -> List[ProductImageView]:
        product = self.get_product(store, product_id)
        return [self._image_view(store, product, image) for image in self._database.list_product_images(product.id)]

    def product_image_file(self, store_code: str, sku: str, image_name: str, size: str) -> Optional[OutputContentFile]:
        file_type = FileContentType.PRODUCTLG if size.upper() == LARGE_IMAGE else FileContentType.PRODUCT
        return self._files.get_file(store_code, file_type, image_name, path=sku)

    def _image_view(self, store: MerchantStore, product: Product, image: ProductImage) -> ProductImageView:
        return ProductImageView(
            image=image,
            small_url=self._url(build_product_image_path(store.code, product.sku, image.image_name, SMALL_IMAGE)),
            large_url=self._url(build_product_image_path(store.code, product.sku, image.image_name, LARGE_IMAGE)),
        )

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------
    def create_variant(self, store: MerchantStore, product_id: int, *, code: str, sku: Optional[str] = None) -> int:
        product = self.get_product(store, product_id)
        try:
            return self._database.create_product_variant(product.id, code=code, sku=sku)
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc

    async def upload_variant_image(
        self,
        store: MerchantStore,
        product_id: int,
        variant_id: int,
        *,
        file_name: str,
        data: bytes,
    ) -> VariantImageView:
        product = self.get_product(store, product_id)
        name = validate_file_name(file_name)
        await anyio.to_thread.run_sync(load_image, data)
        if any(item.image.image_name == name for item in self.variant_images(store, product.id)):
            raise ServiceError(f"Variant image '{name}' already exists for this product")
        try:
            image_id = self._database.add_variant_image(product.id, variant_id, name)
        except ValueError as exc:
            raise NotFoundError(str(exc)) from exc
        try:
            self._files.add_file(
                store.code,
                InputContentFile(file_name=name, data=data, file_content_type=FileContentType.VARIANT),
                path=product.sku,
            )
        except ServiceError:
            self._database.remove_variant_image(image_id)
            raise
        view = next(item for item in self.variant_images(store, product.id) if item.image.id == image_id)
        logger.info("Stored variant image %s for product %s in store %s", name, product.sku, store.code)
        return view

    def variant_images(self, store: MerchantStore, product_id: int) -> List[VariantImageView]:
        product = self.get_product(store, product_id)
        return [
            VariantImageView(
                image=image,
                url=self._url(
                    build_static_file_path(store.code, FileContentType.VARIANT, image.image_name, product.sku)
                ),
            )
            for image in self._database.list_variant_images_for_product(store.id, product.id)
        ]

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------
    def availability(self, store: MerchantStore, product_id: int) -> List[ProductAvailability]:
        product = self.get_product(store, product_id)
        return self._database.list_product_availabilities(product.id)

    def update_availability(
        self,
        store: MerchantStore,
        product_id: int,
        *,
        quantity: int,
        region: str = "*",
        free_shipping: bool = False,
    ) -> ProductAvailability:
        product = self.get_product(store, product_id)
        try:
            return self._database.set_product_availability(
                product.id, region=region, quantity=quantity, free_shipping=free_shipping
            )
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc

    @staticmethod
    def _require_languages(store: MerchantStore, texts: Mapping[str, object]) -> None:
        unsupported = sorted(code for code in texts if not store.supports(code))
        if unsupported:
            raise ServiceError(f"Store {store.code} does not support language(s): {', '.join(unsupported)}")


__all__ = [
    "CatalogFacade",
    "CategoryNode",
    "ProductImageView",
    "VariantImageView",
    "localized",
]
