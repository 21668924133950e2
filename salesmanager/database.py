"""SQLite-backed persistence for stores, catalog, content, and customers."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from passlib.context import CryptContext

from .criteria import CriteriaOrderBy, MerchantStoreCriteria, ProductCriteria
from .models import (
    Category,
    ContentEntity,
    Customer,
    Language,
    MerchantStore,
    OrderProductDownload,
    Product,
    ProductAvailability,
    ProductImage,
    ProductImageDescription,
    ProductType,
    ProductVariantImage,
    ShippingOrigin,
)

CONTENT_TYPES = ("PAGE", "BOX", "SECTION")

_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the storefront database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "salesmanager.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def _verify_password(password: str, hashed: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        return False


def _placeholders(values: Sequence[object]) -> str:
    return ", ".join("?" for _ in values)


class Database:
    """Simple wrapper around SQLite for the storefront repositories."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS languages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    code TEXT NOT NULL UNIQUE,
                    sort_order INTEGER NOT NULL DEFAULT 0
                );

                CREATE TABLE IF NOT EXISTS merchant_stores (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    code TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL,
                    country TEXT NOT NULL,
                    currency TEXT NOT NULL,
                    default_language_id INTEGER NOT NULL REFERENCES languages(id),
                    domain TEXT,
                    is_retailer INTEGER NOT NULL DEFAULT 0,
                    parent_id INTEGER REFERENCES merchant_stores(id) ON DELETE SET NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS store_languages (
                    store_id INTEGER NOT NULL REFERENCES merchant_stores(id) ON DELETE CASCADE,
                    language_id INTEGER NOT NULL REFERENCES languages(id),
                    PRIMARY KEY (store_id, language_id)
                );

                CREATE TABLE IF NOT EXISTS categories (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    store_id INTEGER NOT NULL REFERENCES merchant_stores(id) ON DELETE CASCADE,
                    parent_id INTEGER REFERENCES categories(id) ON DELETE CASCADE,
                    code TEXT NOT NULL,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    visible INTEGER NOT NULL DEFAULT 1,
                    depth INTEGER NOT NULL DEFAULT 0,
                    lineage TEXT NOT NULL DEFAULT '/',
                    created_at TEXT NOT NULL,
                    UNIQUE (store_id, code)
                );

                CREATE TABLE IF NOT EXISTS category_descriptions (
                    category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
                    language_id INTEGER NOT NULL REFERENCES languages(id),
                    name TEXT NOT NULL,
                    description TEXT,
                    seo_url TEXT,
                    PRIMARY KEY (category_id, language_id)
                );

                CREATE TABLE IF NOT EXISTS product_types (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    store_id INTEGER REFERENCES merchant_stores(id) ON DELETE CASCADE,
                    code TEXT NOT NULL,
                    name TEXT NOT NULL,
                    allow_add_to_cart INTEGER NOT NULL DEFAULT 1,
                    visible INTEGER NOT NULL DEFAULT 1,
                    UNIQUE (store_id, code)
                );

                CREATE TABLE IF NOT EXISTS products (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    store_id INTEGER NOT NULL REFERENCES merchant_stores(id) ON DELETE CASCADE,
                    sku TEXT NOT NULL,
                    type_id INTEGER REFERENCES product_types(id) ON DELETE SET NULL,
                    category_id INTEGER REFERENCES categories(id) ON DELETE SET NULL,
                    price_cents INTEGER NOT NULL DEFAULT 0,
                    available INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL,
                    UNIQUE (store_id, sku)
                );

                CREATE TABLE IF NOT EXISTS product_descriptions (
                    product_id INTEGER NOT NULL REFERENCES products(id) ON DELETE CASCADE,
                    language_id INTEGER NOT NULL REFERENCES languages(id),
                    name TEXT NOT NULL,
                    description TEXT,
                    PRIMARY KEY (product_id, language_id)
                );

                CREATE TABLE IF NOT EXISTS product_images (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    product_id INTEGER NOT NULL REFERENCES products(id) ON DELETE CASCADE,
                    image_name TEXT NOT NULL,
                    default_image INTEGER NOT NULL DEFAULT 0,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    UNIQUE (product_id, image_name)
                );

                CREATE TABLE IF NOT EXISTS product_image_descriptions (
                    image_id INTEGER NOT NULL REFERENCES product_images(id) ON DELETE CASCADE,
                    language_id INTEGER NOT NULL REFERENCES languages(id),
                    name TEXT,
                    alt_tag TEXT,
                    PRIMARY KEY (image_id, language_id)
                );

                CREATE TABLE IF NOT EXISTS product_variants (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    product_id INTEGER NOT NULL REFERENCES products(id) ON DELETE CASCADE,
                    code TEXT NOT NULL,
                    sku TEXT,
                    UNIQUE (product_id, code)
                );

                CREATE TABLE IF NOT EXISTS product_variant_images (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    variant_id INTEGER NOT NULL REFERENCES product_variants(id) ON DELETE CASCADE,
                    image_name TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS product_availabilities (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    product_id INTEGER NOT NULL REFERENCES products(id) ON DELETE CASCADE,
                    region TEXT NOT NULL DEFAULT '*',
                    quantity INTEGER NOT NULL DEFAULT 0,
                    free_shipping INTEGER NOT NULL DEFAULT 0,
                    UNIQUE (product_id, region)
                );

                CREATE TABLE IF NOT EXISTS content (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    store_id INTEGER NOT NULL REFERENCES merchant_stores(id) ON DELETE CASCADE,
                    code TEXT NOT NULL,
                    content_type TEXT NOT NULL,
                    position TEXT,
                    visible INTEGER NOT NULL DEFAULT 1,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    UNIQUE (store_id, code)
                );

                CREATE TABLE IF NOT EXISTS content_descriptions (
                    content_id INTEGER NOT NULL REFERENCES content(id) ON DELETE CASCADE,
                    language_id INTEGER NOT NULL REFERENCES languages(id),
                    name TEXT NOT NULL,
                    title TEXT,
                    body TEXT,
                    seo_url TEXT,
                    PRIMARY KEY (content_id, language_id)
                );

                CREATE TABLE IF NOT EXISTS customers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    store_id INTEGER NOT NULL REFERENCES merchant_stores(id) ON DELETE CASCADE,
                    email TEXT NOT NULL,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL,
                    gender TEXT,
                    language_id INTEGER NOT NULL REFERENCES languages(id),
                    password_hash TEXT NOT NULL,
                    reset_token_hash TEXT,
                    reset_token_expires_at TEXT,
                    created_at TEXT NOT NULL,
                    UNIQUE (store_id, email)
                );

                CREATE TABLE IF NOT EXISTS order_product_downloads (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    store_id INTEGER NOT NULL REFERENCES merchant_stores(id) ON DELETE CASCADE,
                    order_id INTEGER NOT NULL,
                    file_name TEXT NOT NULL,
                    max_days INTEGER NOT NULL DEFAULT 0,
                    max_downloads INTEGER NOT NULL DEFAULT 0,
                    download_count INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS shipping_origins (
                    store_id INTEGER PRIMARY KEY REFERENCES merchant_stores(id) ON DELETE CASCADE,
                    active INTEGER NOT NULL DEFAULT 0,
                    address TEXT,
                    city TEXT,
                    postal_code TEXT,
                    state TEXT,
                    country TEXT
                );

                CREATE TABLE IF NOT EXISTS search_terms (
                    store_id INTEGER NOT NULL REFERENCES merchant_stores(id) ON DELETE CASCADE,
                    product_id INTEGER NOT NULL REFERENCES products(id) ON DELETE CASCADE,
                    language_id INTEGER NOT NULL REFERENCES languages(id),
                    term TEXT NOT NULL,
                    PRIMARY KEY (product_id, language_id, term)
                );

                CREATE INDEX IF NOT EXISTS idx_categories_parent ON categories(store_id, parent_id);
                CREATE INDEX IF NOT EXISTS idx_products_store ON products(store_id);
                CREATE INDEX IF NOT EXISTS idx_downloads_order ON order_product_downloads(store_id, order_id);
                CREATE INDEX IF NOT EXISTS idx_search_terms_lookup ON search_terms(store_id, language_id, term);
                """
            )

    # ------------------------------------------------------------------
    # Languages
    # ------------------------------------------------------------------
    def create_language(self, code: str, sort_order: int = 0) -> Language:
        normalized = code.strip().lower()
        if not normalized:
            raise ValueError("Language code must not be empty")
        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO languages (code, sort_order) VALUES (?, ?)",
                    (normalized, sort_order),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Language '{normalized}' already exists") from exc
        return Language(id=int(cursor.lastrowid), code=normalized, sort_order=sort_order)

    def ensure_languages(self, codes: Iterable[str]) -> List[Language]:
        languages: List[Language] = []
        for index, code in enumerate(codes):
            existing = self.get_language(code)
            languages.append(existing if existing is not None else self.create_language(code, index))
        return languages

    def get_language(self, code: str) -> Optional[Language]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM languages WHERE code = ?", (code.strip().lower(),)).fetchone()
        if row is None:
            return None
        return self._row_to_language(row)

    def list_languages(self) -> List[Language]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM languages ORDER BY sort_order, code").fetchall()
        return [self._row_to_language(row) for row in rows]

    def _require_language_id(self, conn: sqlite3.Connection, code: str) -> int:
        row = conn.execute("SELECT id FROM languages WHERE code = ?", (code.strip().lower(),)).fetchone()
        if row is None:
            raise ValueError(f"Unknown language '{code}'")
        return int(row["id"])

    # ------------------------------------------------------------------
    # Merchant stores
    # ------------------------------------------------------------------
    def create_store(
        self,
        code: str,
        *,
        name: str,
        email: str,
        country: str,
        currency: str,
        default_language: str,
        languages: Sequence[str] = (),
        domain: Optional[str] = None,
        retailer: bool = False,
        parent_code: Optional[str] = None,
    ) -> MerchantStore:
        normalized_code = code.strip()
        if not normalized_code:
            raise ValueError("Store code must not be empty")

        with self._connect() as conn:
            default_language_id = self._require_language_id(conn, default_language)
            language_ids = {default_language_id}
            for language_code in languages:
                language_ids.add(self._require_language_id(conn, language_code))

            parent_id: Optional[int] = None
            if parent_code:
                parent = conn.execute(
                    "SELECT id FROM merchant_stores WHERE code = ?", (parent_code,)
                ).fetchone()
                if parent is None:
                    raise ValueError(f"Parent store '{parent_code}' does not exist")
                parent_id = int(parent["id"])

            try:
                cursor = conn.execute(
                    """
                    INSERT INTO merchant_stores (
                        code, name, email, country, currency, default_language_id,
                        domain, is_retailer, parent_id, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        normalized_code,
                        name.strip(),
                        email.strip().lower(),
                        country.strip().upper(),
                        currency.strip().upper(),
                        default_language_id,
                        domain,
                        int(bool(retailer)),
                        parent_id,
                        _serialize_datetime(_current_timestamp()),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"A store with code '{normalized_code}' already exists") from exc

            store_id = int(cursor.lastrowid)
            conn.executemany(
                "INSERT INTO store_languages (store_id, language_id) VALUES (?, ?)",
                [(store_id, language_id) for language_id in sorted(language_ids)],
            )

        store = self.get_store(normalized_code)
        if store is None:
            raise RuntimeError("Failed to load store after creation")
        return store

    def get_store(self, code: str) -> Optional[MerchantStore]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM merchant_stores WHERE code = ?", (code,)).fetchone()
            if row is None:
                return None
            return self._row_to_store(conn, row)

    def list_stores(self, criteria: MerchantStoreCriteria) -> Tuple[List[MerchantStore], int]:
        """Return stores matching ``criteria`` together with the unpaged total."""

        clauses: List[str] = []
        values: List[object] = []
        if criteria.code:
            clauses.append("code LIKE ?")
            values.append(f"%{criteria.code}%")
        if criteria.name:
            clauses.append("LOWER(name) LIKE ?")
            values.append(f"%{criteria.name.lower()}%")
        if criteria.retailers:
            clauses.append("is_retailer = 1")
        if criteria.stores:
            clauses.append("parent_id IS NOT NULL")
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        order_field = criteria.criteria_order_by_field if criteria.criteria_order_by_field in {
            "id",
            "code",
            "name",
            "created_at",
        } else "id"
        direction = "DESC" if criteria.criteria_order_by is CriteriaOrderBy.DESC else "ASC"
        limit_clause, limit_values = self._limit_clause(criteria.start_index, criteria.max_count)

        with self._connect() as conn:
            total = int(conn.execute(f"SELECT COUNT(*) FROM merchant_stores {where}", values).fetchone()[0])
            rows = conn.execute(
                f"SELECT * FROM merchant_stores {where} ORDER BY {order_field} {direction} {limit_clause}",
                [*values, *limit_values],
            ).fetchall()
            return [self._row_to_store(conn, row) for row in rows], total

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------
    def create_category(
        self,
        store_id: int,
        *,
        code: str,
        names: Mapping[str, str],
        parent_id: Optional[int] = None,
        descriptions: Optional[Mapping[str, str]] = None,
        seo_urls: Optional[Mapping[str, str]] = None,
        sort_order: int = 0,
        visible: bool = True,
    ) -> Category:
        if not names:
            raise ValueError("A category requires at least one name")
        descriptions = descriptions or {}
        seo_urls = seo_urls or {}

        with self._connect() as conn:
            depth = 0
            parent_lineage = "/"
            if parent_id is not None:
                parent = conn.execute(
                    "SELECT depth, lineage FROM categories WHERE id = ? AND store_id = ?",
                    (parent_id, store_id),
                ).fetchone()
                if parent is None:
                    raise ValueError("Parent category not found")
                depth = int(parent["depth"]) + 1
                parent_lineage = str(parent["lineage"])

            try:
                cursor = conn.execute(
                    """
                    INSERT INTO categories (store_id, parent_id, code, sort_order, visible, depth, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        store_id,
                        parent_id,
                        code.strip(),
                        sort_order,
                        int(bool(visible)),
                        depth,
                        _serialize_datetime(_current_timestamp()),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"A category with code '{code}' already exists") from exc

            category_id = int(cursor.lastrowid)
            conn.execute(
                "UPDATE categories SET lineage = ? WHERE id = ?",
                (f"{parent_lineage}{category_id}/", category_id),
            )
            for language_code, name in names.items():
                conn.execute(
                    """
                    INSERT INTO category_descriptions (category_id, language_id, name, description, seo_url)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        category_id,
                        self._require_language_id(conn, language_code),
                        name,
                        descriptions.get(language_code),
                        seo_urls.get(language_code),
                    ),
                )

        category = self.get_category(store_id, category_id)
        if category is None:
            raise RuntimeError("Failed to load category after creation")
        return category

    def get_category(self, store_id: int, category_id: int) -> Optional[Category]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE store_id = ? AND id = ?",
                (store_id, category_id),
            ).fetchone()
            if row is None:
                return None
            return self._rows_to_categories(conn, [row])[0]

    def get_category_by_code(self, store_id: int, code: str) -> Optional[Category]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE store_id = ? AND code = ?",
                (store_id, code),
            ).fetchone()
            if row is None:
                return None
            return self._rows_to_categories(conn, [row])[0]

    def list_categories_by_store_and_parent(self, store_id: int, parent_id: Optional[int]) -> List[Category]:
        """List direct children of ``parent_id``; ``None`` lists root categories."""

        if parent_id is None:
            query = "SELECT * FROM categories WHERE store_id = ? AND parent_id IS NULL ORDER BY sort_order, code"
            params: Tuple[object, ...] = (store_id,)
        else:
            query = "SELECT * FROM categories WHERE store_id = ? AND parent_id = ? ORDER BY sort_order, code"
            params = (store_id, parent_id)
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return self._rows_to_categories(conn, rows)

    def list_categories(self, store_id: int) -> List[Category]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM categories WHERE store_id = ? ORDER BY depth, sort_order, code",
                (store_id,),
            ).fetchall()
            return self._rows_to_categories(conn, rows)

    # ------------------------------------------------------------------
    # Product types
    # ------------------------------------------------------------------
    def create_product_type(
        self,
        store_id: Optional[int],
        *,
        code: str,
        name: str,
        allow_add_to_cart: bool = True,
        visible: bool = True,
    ) -> ProductType:
        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO product_types (store_id, code, name, allow_add_to_cart, visible)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (store_id, code.strip(), name.strip(), int(bool(allow_add_to_cart)), int(bool(visible))),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"A product type with code '{code}' already exists") from exc
        return ProductType(
            id=int(cursor.lastrowid),
            store_id=store_id,
            code=code.strip(),
            name=name.strip(),
            allow_add_to_cart=allow_add_to_cart,
            visible=visible,
        )

    def list_product_types(self, store_id: int) -> List[ProductType]:
        """List the store's product types plus the shared ones."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM product_types WHERE store_id = ? OR store_id IS NULL ORDER BY code",
                (store_id,),
            ).fetchall()
        return [self._row_to_product_type(row) for row in rows]

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------
    def create_product(
        self,
        store_id: int,
        *,
        sku: str,
        names: Mapping[str, str],
        descriptions: Optional[Mapping[str, str]] = None,
        price_cents: int = 0,
        category_id: Optional[int] = None,
        type_id: Optional[int] = None,
        available: bool = True,
    ) -> Product:
        if not names:
            raise ValueError("A product requires at least one name")
        if price_cents < 0:
            raise ValueError("Price must not be negative")
        descriptions = descriptions or {}

        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO products (store_id, sku, type_id, category_id, price_cents, available, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        store_id,
                        sku.strip(),
                        type_id,
                        category_id,
                        price_cents,
                        int(bool(available)),
                        _serialize_datetime(_current_timestamp()),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"A product with SKU '{sku}' already exists") from exc

            product_id = int(cursor.lastrowid)
            for language_code, name in names.items():
                conn.execute(
                    """
                    INSERT INTO product_descriptions (product_id, language_id, name, description)
                    VALUES (?, ?, ?, ?)
                    """,
                    (product_id, self._require_language_id(conn, language_code), name, descriptions.get(language_code)),
                )

        product = self.get_product(store_id, product_id)
        if product is None:
            raise RuntimeError("Failed to load product after creation")
        return product

    def get_product(self, store_id: int, product_id: int) -> Optional[Product]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM products WHERE store_id = ? AND id = ?",
                (store_id, product_id),
            ).fetchone()
            if row is None:
                return None
            return self._rows_to_products(conn, [row])[0]

    def get_products(self, store_id: int, product_ids: Sequence[int]) -> Dict[int, Product]:
        if not product_ids:
            return {}
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM products WHERE store_id = ? AND id IN ({_placeholders(product_ids)})",
                (store_id, *product_ids),
            ).fetchall()
            return {product.id: product for product in self._rows_to_products(conn, rows)}

    def list_products(self, store_id: int, criteria: ProductCriteria) -> Tuple[List[Product], int]:
        clauses = ["p.store_id = ?"]
        values: List[object] = [store_id]
        if criteria.category_id is not None:
            clauses.append(
                "p.category_id IN (SELECT id FROM categories WHERE store_id = ? AND lineage LIKE "
                "(SELECT lineage FROM categories WHERE id = ?) || '%')"
            )
            values.extend([store_id, criteria.category_id])
        if criteria.available is not None:
            clauses.append("p.available = ?")
            values.append(int(criteria.available))
        if criteria.sku:
            clauses.append("p.sku = ?")
            values.append(criteria.sku)
        name_filter = criteria.product_name or criteria.name
        if name_filter:
            clauses.append(
                "EXISTS (SELECT 1 FROM product_descriptions d WHERE d.product_id = p.id AND LOWER(d.name) LIKE ?)"
            )
            values.append(f"%{name_filter.lower()}%")
        where = " AND ".join(clauses)

        order_field = criteria.criteria_order_by_field if criteria.criteria_order_by_field in {
            "id",
            "sku",
            "price_cents",
            "created_at",
        } else "id"
        direction = "DESC" if criteria.criteria_order_by is CriteriaOrderBy.DESC else "ASC"
        limit_clause, limit_values = self._limit_clause(criteria.start_index, criteria.max_count)

        with self._connect() as conn:
            total = int(conn.execute(f"SELECT COUNT(*) FROM products p WHERE {where}", values).fetchone()[0])
            rows = conn.execute(
                f"SELECT p.* FROM products p WHERE {where} ORDER BY p.{order_field} {direction} {limit_clause}",
                [*values, *limit_values],
            ).fetchall()
            return self._rows_to_products(conn, rows), total

    def list_all_products(self, store_id: int) -> List[Product]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM products WHERE store_id = ? ORDER BY id", (store_id,)).fetchall()
            return self._rows_to_products(conn, rows)

    # ------------------------------------------------------------------
    # Product images and variants
    # ------------------------------------------------------------------
    def add_product_image(
        self,
        product_id: int,
        *,
        image_name: str,
        descriptions: Optional[Mapping[str, Tuple[Optional[str], Optional[str]]]] = None,
        default_image: bool = False,
    ) -> ProductImage:
        """Attach an image to a product; the first image becomes the default."""

        descriptions = descriptions or {}
        with self._connect() as conn:
            existing = conn.execute(
                "SELECT COUNT(*), COALESCE(MAX(sort_order), -1) FROM product_images WHERE product_id = ?",
                (product_id,),
            ).fetchone()
            count, max_order = int(existing[0]), int(existing[1])
            is_default = default_image or count == 0
            if is_default:
                conn.execute("UPDATE product_images SET default_image = 0 WHERE product_id = ?", (product_id,))
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO product_images (product_id, image_name, default_image, sort_order)
                    VALUES (?, ?, ?, ?)
                    """,
                    (product_id, image_name, int(is_default), max_order + 1),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Image '{image_name}' is already attached to this product") from exc
            image_id = int(cursor.lastrowid)
            for language_code, (name, alt_tag) in descriptions.items():
                conn.execute(
                    """
                    INSERT INTO product_image_descriptions (image_id, language_id, name, alt_tag)
                    VALUES (?, ?, ?, ?)
                    """,
                    (image_id, self._require_language_id(conn, language_code), name, alt_tag),
                )

        for image in self.list_product_images(product_id):
            if image.id == image_id:
                return image
        raise RuntimeError("Failed to load product image after creation")

    def remove_product_image(self, image_id: int) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM product_images WHERE id = ?", (image_id,))

    def list_product_images(self, product_id: int) -> List[ProductImage]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM product_images WHERE product_id = ? ORDER BY sort_order, id",
                (product_id,),
            ).fetchall()
            description_rows = conn.execute(
                """
                SELECT d.*, l.code AS language_code
                  FROM product_image_descriptions d
                  JOIN languages l ON l.id = d.language_id
                  JOIN product_images i ON i.id = d.image_id
                 WHERE i.product_id = ?
                """,
                (product_id,),
            ).fetchall()

        by_image: Dict[int, List[ProductImageDescription]] = {}
        for row in description_rows:
            by_image.setdefault(int(row["image_id"]), []).append(
                ProductImageDescription(
                    image_id=int(row["image_id"]),
                    language_code=str(row["language_code"]),
                    name=row["name"],
                    alt_tag=row["alt_tag"],
                )
            )
        return [
            ProductImage(
                id=int(row["id"]),
                product_id=int(row["product_id"]),
                image_name=str(row["image_name"]),
                default_image=bool(row["default_image"]),
                sort_order=int(row["sort_order"]),
                descriptions=tuple(by_image.get(int(row["id"]), ())),
            )
            for row in rows
        ]

    def create_product_variant(self, product_id: int, *, code: str, sku: Optional[str] = None) -> int:
        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO product_variants (product_id, code, sku) VALUES (?, ?, ?)",
                    (product_id, code.strip(), sku),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"A variant with code '{code}' already exists") from exc
        return int(cursor.lastrowid)

    def add_variant_image(self, product_id: int, variant_id: int, image_name: str) -> int:
        with self._connect() as conn:
            variant = conn.execute(
                "SELECT id FROM product_variants WHERE id = ? AND product_id = ?",
                (variant_id, product_id),
            ).fetchone()
            if variant is None:
                raise ValueError("Variant not found for this product")
            cursor = conn.execute(
                "INSERT INTO product_variant_images (variant_id, image_name) VALUES (?, ?)",
                (variant_id, image_name),
            )
        return int(cursor.lastrowid)

    def remove_variant_image(self, image_id: int) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM product_variant_images WHERE id = ?", (image_id,))

    def list_variant_images_for_product(self, store_id: int, product_id: int) -> List[ProductVariantImage]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT vi.id, vi.variant_id, vi.image_name, v.code AS variant_code, v.product_id
                  FROM product_variant_images vi
                  JOIN product_variants v ON v.id = vi.variant_id
                  JOIN products p ON p.id = v.product_id
                 WHERE p.store_id = ? AND p.id = ?
                 ORDER BY v.code, vi.id
                """,
                (store_id, product_id),
            ).fetchall()
        return [
            ProductVariantImage(
                id=int(row["id"]),
                variant_id=int(row["variant_id"]),
                variant_code=str(row["variant_code"]),
                product_id=int(row["product_id"]),
                image_name=str(row["image_name"]),
            )
            for row in rows
        ]

    def set_product_availability(
        self,
        product_id: int,
        *,
        region: str = "*",
        quantity: int,
        free_shipping: bool = False,
    ) -> ProductAvailability:
        if quantity < 0:
            raise ValueError("Quantity must not be negative")
        normalized_region = region.strip().upper() or "*"
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO product_availabilities (product_id, region, quantity, free_shipping)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (product_id, region)
                DO UPDATE SET quantity = excluded.quantity, free_shipping = excluded.free_shipping
                """,
                (product_id, normalized_region, quantity, int(bool(free_shipping))),
            )
        for availability in self.list_product_availabilities(product_id):
            if availability.region == normalized_region:
                return availability
        raise RuntimeError("Failed to load availability after update")

    def list_product_availabilities(self, product_id: int) -> List[ProductAvailability]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM product_availabilities WHERE product_id = ? ORDER BY region",
                (product_id,),
            ).fetchall()
        return [
            ProductAvailability(
                id=int(row["id"]),
                product_id=int(row["product_id"]),
                region=str(row["region"]),
                quantity=int(row["quantity"]),
                free_shipping=bool(row["free_shipping"]),
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------
    def save_content(
        self,
        store_id: int,
        *,
        code: str,
        content_type: str,
        texts: Mapping[str, Mapping[str, Optional[str]]],
        position: Optional[str] = None,
        visible: bool = True,
        sort_order: int = 0,
    ) -> ContentEntity:
        """Create or replace a content entity and its per-language texts.

        ``texts`` maps a language code to ``name``, ``title``, ``body`` and
        ``seo_url`` entries; ``name`` is required.
        """

        normalized_type = content_type.strip().upper()
        if normalized_type not in CONTENT_TYPES:
            raise ValueError(f"Content type must be one of: {', '.join(CONTENT_TYPES)}")
        if not texts:
            raise ValueError("Content requires at least one description")

        with self._connect() as conn:
            row = conn.execute(
                "SELECT id FROM content WHERE store_id = ? AND code = ?",
                (store_id, code.strip()),
            ).fetchone()
            if row is None:
                cursor = conn.execute(
                    """
                    INSERT INTO content (store_id, code, content_type, position, visible, sort_order, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        store_id,
                        code.strip(),
                        normalized_type,
                        position,
                        int(bool(visible)),
                        sort_order,
                        _serialize_datetime(_current_timestamp()),
                    ),
                )
                content_id = int(cursor.lastrowid)
            else:
                content_id = int(row["id"])
                conn.execute(
                    """
                    UPDATE content SET content_type = ?, position = ?, visible = ?, sort_order = ?
                     WHERE id = ?
                    """,
                    (normalized_type, position, int(bool(visible)), sort_order, content_id),
                )
                conn.execute("DELETE FROM content_descriptions WHERE content_id = ?", (content_id,))

            for language_code, text in texts.items():
                name = (text.get("name") or "").strip()
                if not name:
                    raise ValueError(f"Content name is required for language '{language_code}'")
                conn.execute(
                    """
                    INSERT INTO content_descriptions (content_id, language_id, name, title, body, seo_url)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        content_id,
                        self._require_language_id(conn, language_code),
                        name,
                        text.get("title"),
                        text.get("body"),
                        text.get("seo_url"),
                    ),
                )

        content = self.get_content(store_id, code.strip())
        if content is None:
            raise RuntimeError("Failed to load content after saving")
        return content

    def get_content(self, store_id: int, code: str, content_type: Optional[str] = None) -> Optional[ContentEntity]:
        query = "SELECT * FROM content WHERE store_id = ? AND code = ?"
        params: List[object] = [store_id, code]
        if content_type is not None:
            query += " AND content_type = ?"
            params.append(content_type.upper())
        with self._connect() as conn:
            row = conn.execute(query, params).fetchone()
            if row is None:
                return None
            return self._rows_to_content(conn, [row])[0]

    def list_content(self, store_id: int, content_type: str, *, visible_only: bool = False) -> List[ContentEntity]:
        query = "SELECT * FROM content WHERE store_id = ? AND content_type = ?"
        if visible_only:
            query += " AND visible = 1"
        query += " ORDER BY sort_order, code"
        with self._connect() as conn:
            rows = conn.execute(query, (store_id, content_type.upper())).fetchall()
            return self._rows_to_content(conn, rows)

    def delete_content(self, store_id: int, code: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM content WHERE store_id = ? AND code = ?", (store_id, code))
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------
    def create_customer(
        self,
        store_id: int,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        language_code: str,
        gender: Optional[str] = None,
    ) -> Customer:
        if not password:
            raise ValueError("Password must not be empty")
        normalized_email = email.strip().lower()
        with self._connect() as conn:
            language_id = self._require_language_id(conn, language_code)
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO customers (
                        store_id, email, first_name, last_name, gender, language_id, password_hash, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        store_id,
                        normalized_email,
                        first_name.strip(),
                        last_name.strip(),
                        gender,
                        language_id,
                        _hash_password(password),
                        _serialize_datetime(_current_timestamp()),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError("A customer with that email already exists") from exc
            customer_id = int(cursor.lastrowid)

        customer = self.get_customer(store_id, customer_id)
        if customer is None:
            raise RuntimeError("Failed to load customer after creation")
        return customer

    def get_customer(self, store_id: int, customer_id: int) -> Optional[Customer]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT c.*, l.code AS language_code FROM customers c
                  JOIN languages l ON l.id = c.language_id
                 WHERE c.store_id = ? AND c.id = ?
                """,
                (store_id, customer_id),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_customer(row)

    def get_customer_by_email(self, store_id: int, email: str) -> Optional[Customer]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT c.*, l.code AS language_code FROM customers c
                  JOIN languages l ON l.id = c.language_id
                 WHERE c.store_id = ? AND c.email = ?
                """,
                (store_id, email.strip().lower()),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_customer(row)

    def authenticate_customer(self, store_id: int, email: str, password: str) -> Optional[Customer]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, password_hash FROM customers WHERE store_id = ? AND email = ?",
                (store_id, email.strip().lower()),
            ).fetchone()
        if row is None or not _verify_password(password, str(row["password_hash"])):
            return None
        return self.get_customer(store_id, int(row["id"]))

    def verify_customer_password(self, customer_id: int, password: str) -> bool:
        with self._connect() as conn:
            row = conn.execute("SELECT password_hash FROM customers WHERE id = ?", (customer_id,)).fetchone()
        if row is None:
            return False
        return _verify_password(password, str(row["password_hash"]))

    def set_customer_password(self, customer_id: int, password: str) -> None:
        """Replace the password hash and invalidate any pending reset token."""

        if not password:
            raise ValueError("Password must not be empty")
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE customers
                   SET password_hash = ?, reset_token_hash = NULL, reset_token_expires_at = NULL
                 WHERE id = ?
                """,
                (_hash_password(password), customer_id),
            )

    def set_customer_reset_token(self, customer_id: int, token_hash: str, expires_at: datetime) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE customers SET reset_token_hash = ?, reset_token_expires_at = ? WHERE id = ?",
                (token_hash, _serialize_datetime(expires_at), customer_id),
            )

    def get_customer_reset_token(self, customer_id: int) -> Optional[Tuple[str, datetime]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT reset_token_hash, reset_token_expires_at FROM customers WHERE id = ?",
                (customer_id,),
            ).fetchone()
        if row is None or not row["reset_token_hash"] or not row["reset_token_expires_at"]:
            return None
        return str(row["reset_token_hash"]), _parse_datetime(str(row["reset_token_expires_at"]))

    # ------------------------------------------------------------------
    # Order downloads
    # ------------------------------------------------------------------
    def create_order_download(
        self,
        store_id: int,
        order_id: int,
        *,
        file_name: str,
        max_days: int = 0,
        max_downloads: int = 0,
    ) -> OrderProductDownload:
        created_at = _current_timestamp()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO order_product_downloads (store_id, order_id, file_name, max_days, max_downloads, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (store_id, order_id, file_name, max_days, max_downloads, _serialize_datetime(created_at)),
            )
        return OrderProductDownload(
            id=int(cursor.lastrowid),
            store_id=store_id,
            order_id=order_id,
            file_name=file_name,
            max_days=max_days,
            max_downloads=max_downloads,
            download_count=0,
            created_at=created_at,
        )

    def list_order_downloads(self, store_id: int, order_id: int) -> List[OrderProductDownload]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM order_product_downloads WHERE store_id = ? AND order_id = ? ORDER BY id",
                (store_id, order_id),
            ).fetchall()
        return [self._row_to_download(row) for row in rows]

    def get_order_download(self, store_id: int, download_id: int) -> Optional[OrderProductDownload]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM order_product_downloads WHERE store_id = ? AND id = ?",
                (store_id, download_id),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_download(row)

    def increment_download_count(self, download_id: int) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE order_product_downloads SET download_count = download_count + 1 WHERE id = ?",
                (download_id,),
            )

    # ------------------------------------------------------------------
    # Shipping origin
    # ------------------------------------------------------------------
    def get_shipping_origin(self, store_id: int) -> Optional[ShippingOrigin]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM shipping_origins WHERE store_id = ?", (store_id,)).fetchone()
        if row is None:
            return None
        return ShippingOrigin(
            store_id=int(row["store_id"]),
            active=bool(row["active"]),
            address=row["address"],
            city=row["city"],
            postal_code=row["postal_code"],
            state=row["state"],
            country=row["country"],
        )

    def save_shipping_origin(self, origin: ShippingOrigin) -> ShippingOrigin:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO shipping_origins (store_id, active, address, city, postal_code, state, country)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (store_id) DO UPDATE SET
                    active = excluded.active,
                    address = excluded.address,
                    city = excluded.city,
                    postal_code = excluded.postal_code,
                    state = excluded.state,
                    country = excluded.country
                """,
                (
                    origin.store_id,
                    int(bool(origin.active)),
                    origin.address,
                    origin.city,
                    origin.postal_code,
                    origin.state,
                    origin.country.upper() if origin.country else None,
                ),
            )
        saved = self.get_shipping_origin(origin.store_id)
        if saved is None:
            raise RuntimeError("Failed to load shipping origin after saving")
        return saved

    # ------------------------------------------------------------------
    # Search index
    # ------------------------------------------------------------------
    def replace_search_terms(self, store_id: int, product_id: int, terms: Mapping[str, Iterable[str]]) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM search_terms WHERE product_id = ?", (product_id,))
            for language_code, language_terms in terms.items():
                language_id = self._require_language_id(conn, language_code)
                conn.executemany(
                    "INSERT OR IGNORE INTO search_terms (store_id, product_id, language_id, term) VALUES (?, ?, ?, ?)",
                    [(store_id, product_id, language_id, term) for term in language_terms],
                )

    def clear_search_terms(self, store_id: int) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM search_terms WHERE store_id = ?", (store_id,))

    def search_products(
        self,
        store_id: int,
        language_code: str,
        terms: Sequence[str],
        *,
        offset: int = 0,
        limit: int = 0,
    ) -> Tuple[List[Tuple[int, int]], int]:
        """Return ``(product_id, matched_terms)`` pairs ranked by matches, and the total."""

        if not terms:
            return [], 0
        base = f"""
            FROM search_terms s
            JOIN languages l ON l.id = s.language_id
           WHERE s.store_id = ? AND l.code = ? AND s.term IN ({_placeholders(terms)})
        """
        values: List[object] = [store_id, language_code, *terms]
        limit_clause, limit_values = self._limit_clause(offset, limit)
        with self._connect() as conn:
            total = int(conn.execute(f"SELECT COUNT(DISTINCT s.product_id) {base}", values).fetchone()[0])
            rows = conn.execute(
                f"""
                SELECT s.product_id, COUNT(*) AS matches {base}
                 GROUP BY s.product_id
                 ORDER BY matches DESC, s.product_id ASC
                 {limit_clause}
                """,
                [*values, *limit_values],
            ).fetchall()
        return [(int(row["product_id"]), int(row["matches"])) for row in rows], total

    def autocomplete_terms(self, store_id: int, language_code: str, prefix: str, limit: int) -> List[str]:
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT s.term, COUNT(*) AS hits
                  FROM search_terms s
                  JOIN languages l ON l.id = s.language_id
                 WHERE s.store_id = ? AND l.code = ? AND s.term LIKE ? ESCAPE '\\'
                 GROUP BY s.term
                 ORDER BY hits DESC, s.term ASC
                 LIMIT ?
                """,
                (store_id, language_code, f"{escaped}%", limit),
            ).fetchall()
        return [str(row["term"]) for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _limit_clause(start_index: int, max_count: int) -> Tuple[str, List[object]]:
        if max_count and max_count > 0:
            return "LIMIT ? OFFSET ?", [max_count, max(start_index, 0)]
        if start_index > 0:
            return "LIMIT -1 OFFSET ?", [start_index]
        return "", []

    @staticmethod
    def _descriptions(
        conn: sqlite3.Connection,
        table: str,
        key_column: str,
        ids: Sequence[int],
    ) -> Dict[int, List[sqlite3.Row]]:
        if not ids:
            return {}
        rows = conn.execute(
            f"""
            SELECT d.*, l.code AS language_code FROM {table} d
              JOIN languages l ON l.id = d.language_id
             WHERE d.{key_column} IN ({_placeholders(ids)})
            """,
            list(ids),
        ).fetchall()
        grouped: Dict[int, List[sqlite3.Row]] = {}
        for row in rows:
            grouped.setdefault(int(row[key_column]), []).append(row)
        return grouped

    def _row_to_language(self, row: sqlite3.Row) -> Language:
        return Language(id=int(row["id"]), code=str(row["code"]), sort_order=int(row["sort_order"]))

    def _row_to_store(self, conn: sqlite3.Connection, row: sqlite3.Row) -> MerchantStore:
        language_rows = conn.execute(
            """
            SELECT l.* FROM store_languages sl JOIN languages l ON l.id = sl.language_id
             WHERE sl.store_id = ? ORDER BY l.sort_order, l.code
            """,
            (row["id"],),
        ).fetchall()
        languages = tuple(self._row_to_language(item) for item in language_rows)
        default = next(language for language in languages if language.id == int(row["default_language_id"]))
        return MerchantStore(
            id=int(row["id"]),
            code=str(row["code"]),
            name=str(row["name"]),
            email=str(row["email"]),
            country=str(row["country"]),
            currency=str(row["currency"]),
            default_language=default,
            languages=languages,
            domain=row["domain"],
            retailer=bool(row["is_retailer"]),
            parent_id=row["parent_id"],
            created_at=_parse_datetime(str(row["created_at"])),
        )

    def _rows_to_categories(self, conn: sqlite3.Connection, rows: Sequence[sqlite3.Row]) -> List[Category]:
        descriptions = self._descriptions(conn, "category_descriptions", "category_id", [int(r["id"]) for r in rows])
        categories: List[Category] = []
        for row in rows:
            texts = descriptions.get(int(row["id"]), [])
            categories.append(
                Category(
                    id=int(row["id"]),
                    store_id=int(row["store_id"]),
                    parent_id=row["parent_id"],
                    code=str(row["code"]),
                    sort_order=int(row["sort_order"]),
                    visible=bool(row["visible"]),
                    depth=int(row["depth"]),
                    lineage=str(row["lineage"]),
                    created_at=_parse_datetime(str(row["created_at"])),
                    names={str(t["language_code"]): str(t["name"]) for t in texts},
                    descriptions={str(t["language_code"]): t["description"] for t in texts if t["description"]},
                    seo_urls={str(t["language_code"]): t["seo_url"] for t in texts if t["seo_url"]},
                )
            )
        return categories

    def _row_to_product_type(self, row: sqlite3.Row) -> ProductType:
        return ProductType(
            id=int(row["id"]),
            store_id=row["store_id"],
            code=str(row["code"]),
            name=str(row["name"]),
            allow_add_to_cart=bool(row["allow_add_to_cart"]),
            visible=bool(row["visible"]),
        )

    def _rows_to_products(self, conn: sqlite3.Connection, rows: Sequence[sqlite3.Row]) -> List[Product]:
        descriptions = self._descriptions(conn, "product_descriptions", "product_id", [int(r["id"]) for r in rows])
        products: List[Product] = []
        for row in rows:
            texts = descriptions.get(int(row["id"]), [])
            products.append(
                Product(
                    id=int(row["id"]),
                    store_id=int(row["store_id"]),
                    sku=str(row["sku"]),
                    type_id=row["type_id"],
                    category_id=row["category_id"],
                    price_cents=int(row["price_cents"]),
                    available=bool(row["available"]),
                    created_at=_parse_datetime(str(row["created_at"])),
                    names={str(t["language_code"]): str(t["name"]) for t in texts},
                    descriptions={str(t["language_code"]): t["description"] for t in texts if t["description"]},
                )
            )
        return products

    def _rows_to_content(self, conn: sqlite3.Connection, rows: Sequence[sqlite3.Row]) -> List[ContentEntity]:
        descriptions = self._descriptions(conn, "content_descriptions", "content_id", [int(r["id"]) for r in rows])
        entities: List[ContentEntity] = []
        for row in rows:
            texts = descriptions.get(int(row["id"]), [])
            entities.append(
                ContentEntity(
                    id=int(row["id"]),
                    store_id=int(row["store_id"]),
                    code=str(row["code"]),
                    content_type=str(row["content_type"]),
                    position=row["position"],
                    visible=bool(row["visible"]),
                    sort_order=int(row["sort_order"]),
                    created_at=_parse_datetime(str(row["created_at"])),
                    names={str(t["language_code"]): str(t["name"]) for t in texts},
                    titles={str(t["language_code"]): t["title"] for t in texts if t["title"]},
                    bodies={str(t["language_code"]): t["body"] for t in texts if t["body"]},
                    seo_urls={str(t["language_code"]): t["seo_url"] for t in texts if t["seo_url"]},
                )
            )
        return entities

    def _row_to_customer(self, row: sqlite3.Row) -> Customer:
        return Customer(
            id=int(row["id"]),
            store_id=int(row["store_id"]),
            email=str(row["email"]),
            first_name=str(row["first_name"]),
            last_name=str(row["last_name"]),
            gender=row["gender"],
            language_code=str(row["language_code"]),
            created_at=_parse_datetime(str(row["created_at"])),
        )

    def _row_to_download(self, row: sqlite3.Row) -> OrderProductDownload:
        return OrderProductDownload(
            id=int(row["id"]),
            store_id=int(row["store_id"]),
            order_id=int(row["order_id"]),
            file_name=str(row["file_name"]),
            max_days=int(row["max_days"]),
            max_downloads=int(row["max_downloads"]),
            download_count=int(row["download_count"]),
            created_at=_parse_datetime(str(row["created_at"])),
        )


__all__ = ["CONTENT_TYPES", "Database", "resolve_database_path"]
