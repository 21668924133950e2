from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from salesmanager.criteria import CriteriaOrderBy, MerchantStoreCriteria, ProductCriteria
from salesmanager.database import Database, resolve_database_path
from salesmanager.models import MerchantStore, ShippingOrigin


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db_path = tmp_path / "salesmanager.sqlite3"
    db = Database(db_path)
    db.initialize()
    db.ensure_languages(["en", "fr"])
    return db


@pytest.fixture()
def store(database: Database) -> MerchantStore:
    return database.create_store(
        "DEFAULT",
        name="Default store",
        email="Shop@Example.com",
        country="ca",
        currency="cad",
        default_language="en",
        languages=["fr"],
    )


def test_resolve_database_path_prefers_explicit_value(tmp_path: Path) -> None:
    assert resolve_database_path(str(tmp_path / "x.sqlite3")) == (tmp_path / "x.sqlite3").resolve()
    assert resolve_database_path(None).name == "salesmanager.sqlite3"


def test_languages_are_normalised_and_unique(database: Database) -> None:
    assert [language.code for language in database.list_languages()] == ["en", "fr"]
    assert database.get_language("FR") is not None
    with pytest.raises(ValueError):
        database.create_language("EN")
    with pytest.raises(ValueError):
        database.create_language("  ")
    assert len(database.ensure_languages(["en", "de"])) == 2
    assert database.get_language("de") is not None


def test_create_store_normalises_fields(store: MerchantStore) -> None:
    assert store.email == "shop@example.com"
    assert store.country == "CA"
    assert store.currency == "CAD"
    assert store.default_language.code == "en"
    assert [language.code for language in store.languages] == ["en", "fr"]
    assert store.supports("fr")
    assert store.supports(" FR ")
    assert not store.supports("de")
    assert not store.retailer


def test_create_store_rejects_duplicates_and_unknown_languages(database: Database, store: MerchantStore) -> None:
    with pytest.raises(ValueError):
        database.create_store(
            "DEFAULT", name="Again", email="a@example.com", country="CA", currency="CAD", default_language="en"
        )
    with pytest.raises(ValueError):
        database.create_store(
            "OTHER", name="Other", email="o@example.com", country="CA", currency="CAD", default_language="xx"
        )
    with pytest.raises(ValueError):
        database.create_store(
            "CHILD",
            name="Child",
            email="c@example.com",
            country="CA",
            currency="CAD",
            default_language="en",
            parent_code="MISSING",
        )
    assert database.get_store("OTHER") is None


def test_list_stores_filters_and_pages(database: Database, store: MerchantStore) -> None:
    database.create_store(
        "RETAIL", name="Retail HQ", email="r@example.com", country="US", currency="USD",
        default_language="en", retailer=True,
    )
    database.create_store(
        "BRANCH", name="Retail branch", email="b@example.com", country="US", currency="USD",
        default_language="en", parent_code="RETAIL",
    )

    stores, total = database.list_stores(MerchantStoreCriteria(retailers=True))
    assert total == 1 and stores[0].code == "RETAIL"

    stores, total = database.list_stores(MerchantStoreCriteria(stores=True))
    assert [item.code for item in stores] == ["BRANCH"]

    stores, total = database.list_stores(MerchantStoreCriteria(name="retail"))
    assert total == 2

    criteria = MerchantStoreCriteria(
        criteria_order_by=CriteriaOrderBy.DESC, criteria_order_by_field="code", start_index=1, max_count=1
    )
    stores, total = database.list_stores(criteria)
    assert total == 3
    assert [item.code for item in stores] == ["DEFAULT"]


def test_unknown_order_field_falls_back_to_id(database: Database, store: MerchantStore) -> None:
    stores, _ = database.list_stores(MerchantStoreCriteria(criteria_order_by_field="name; DROP TABLE x"))
    assert [item.code for item in stores] == ["DEFAULT"]


def test_category_hierarchy(database: Database, store: MerchantStore) -> None:
    clothing = database.create_category(store.id, code="clothing", names={"en": "Clothing", "fr": "Vêtements"})
    shirts = database.create_category(
        store.id, code="shirts", names={"en": "Shirts"}, parent_id=clothing.id, seo_urls={"en": "shirts"}
    )
    database.create_category(store.id, code="shoes", names={"en": "Shoes"}, sort_order=5)

    assert clothing.depth == 0
    assert clothing.lineage == f"/{clothing.id}/"
    assert shirts.depth == 1
    assert shirts.lineage == f"/{clothing.id}/{shirts.id}/"
    assert shirts.seo_urls == {"en": "shirts"}
    assert clothing.names["fr"] == "Vêtements"

    roots = database.list_categories_by_store_and_parent(store.id, None)
    assert [category.code for category in roots] == ["clothing", "shoes"]
    children = database.list_categories_by_store_and_parent(store.id, clothing.id)
    assert [category.code for category in children] == ["shirts"]
    assert [category.code for category in database.list_categories(store.id)][-1] == "shirts"
    assert database.get_category_by_code(store.id, "shirts").id == shirts.id


def test_category_errors(database: Database, store: MerchantStore) -> None:
    database.create_category(store.id, code="clothing", names={"en": "Clothing"})
    with pytest.raises(ValueError):
        database.create_category(store.id, code="clothing", names={"en": "Again"})
    with pytest.raises(ValueError):
        database.create_category(store.id, code="orphan", names={"en": "Orphan"}, parent_id=999)
    with pytest.raises(ValueError):
        database.create_category(store.id, code="empty", names={})
    with pytest.raises(ValueError):
        database.create_category(store.id, code="klingon", names={"tlh": "Name"})
    assert database.get_category_by_code(store.id, "klingon") is None


def test_product_types_include_shared_types(database: Database, store: MerchantStore) -> None:
    database.create_product_type(None, code="GENERAL", name="General")
    database.create_product_type(store.id, code="DIGITAL", name="Digital", allow_add_to_cart=False)

    types = database.list_product_types(store.id)

    assert [item.code for item in types] == ["DIGITAL", "GENERAL"]
    assert types[0].allow_add_to_cart is False


def test_products_filter_by_category_subtree(database: Database, store: MerchantStore) -> None:
    clothing = database.create_category(store.id, code="clothing", names={"en": "Clothing"})
    shirts = database.create_category(store.id, code="shirts", names={"en": "Shirts"}, parent_id=clothing.id)
    shoes = database.create_category(store.id, code="shoes", names={"en": "Shoes"})

    database.create_product(store.id, sku="SHIRT-1", names={"en": "Red shirt"}, price_cents=1999, category_id=shirts.id)
    database.create_product(store.id, sku="COAT-1", names={"en": "Blue coat"}, price_cents=9999, category_id=clothing.id)
    database.create_product(
        store.id, sku="SHOE-1", names={"en": "Red shoe"}, price_cents=4999, category_id=shoes.id, available=False
    )

    products, total = database.list_products(store.id, ProductCriteria(category_id=clothing.id))
    assert total == 2
    assert {product.sku for product in products} == {"SHIRT-1", "COAT-1"}

    products, total = database.list_products(store.id, ProductCriteria(product_name="red"))
    assert {product.sku for product in products} == {"SHIRT-1", "SHOE-1"}

    products, total = database.list_products(store.id, ProductCriteria(available=True))
    assert total == 2

    products, _ = database.list_products(store.id, ProductCriteria(sku="SHOE-1"))
    assert [product.sku for product in products] == ["SHOE-1"]

    criteria = ProductCriteria(criteria_order_by=CriteriaOrderBy.DESC, criteria_order_by_field="price_cents")
    criteria.max_count = 2
    products, total = database.list_products(store.id, criteria)
    assert total == 3
    assert [product.sku for product in products] == ["COAT-1", "SHOE-1"]


def test_product_validation(database: Database, store: MerchantStore) -> None:
    database.create_product(store.id, sku="SKU-1", names={"en": "Thing"})
    with pytest.raises(ValueError):
        database.create_product(store.id, sku="SKU-1", names={"en": "Thing again"})
    with pytest.raises(ValueError):
        database.create_product(store.id, sku="SKU-2", names={"en": "Cheap"}, price_cents=-1)
    with pytest.raises(ValueError):
        database.create_product(store.id, sku="SKU-3", names={})


def test_get_products_is_scoped_to_store(database: Database, store: MerchantStore) -> None:
    other = database.create_store(
        "OTHER", name="Other", email="o@example.com", country="CA", currency="CAD", default_language="en"
    )
    mine = database.create_product(store.id, sku="SKU-1", names={"en": "Mine"})
    theirs = database.create_product(other.id, sku="SKU-1", names={"en": "Theirs"})

    assert set(database.get_products(store.id, [mine.id, theirs.id])) == {mine.id}
    assert database.get_product(store.id, theirs.id) is None
    assert database.get_products(store.id, []) == {}


def test_product_images_track_default(database: Database, store: MerchantStore) -> None:
    product = database.create_product(store.id, sku="SKU-1", names={"en": "Thing"})

    first = database.add_product_image(product.id, image_name="front.png", descriptions={"en": ("Front", "Front view")})
    second = database.add_product_image(product.id, image_name="back.png")
    assert first.default_image is True
    assert second.default_image is False
    assert first.descriptions[0].alt_tag == "Front view"

    database.add_product_image(product.id, image_name="side.png", default_image=True)
    images = database.list_product_images(product.id)
    assert [image.image_name for image in images] == ["front.png", "back.png", "side.png"]
    assert [image.default_image for image in images] == [False, False, True]

    with pytest.raises(ValueError):
        database.add_product_image(product.id, image_name="front.png")


def test_variant_images_require_matching_product(database: Database, store: MerchantStore) -> None:
    product = database.create_product(store.id, sku="SKU-1", names={"en": "Thing"})
    other = database.create_product(store.id, sku="SKU-2", names={"en": "Other"})
    variant_id = database.create_product_variant(product.id, code="RED")

    database.add_variant_image(product.id, variant_id, "red.png")
    with pytest.raises(ValueError):
        database.add_variant_image(other.id, variant_id, "blue.png")

    images = database.list_variant_images_for_product(store.id, product.id)
    assert [(image.variant_code, image.image_name) for image in images] == [("RED", "red.png")]
    assert database.list_variant_images_for_product(store.id, other.id) == []


def test_availability_upserts_by_region(database: Database, store: MerchantStore) -> None:
    product = database.create_product(store.id, sku="SKU-1", names={"en": "Thing"})

    database.set_product_availability(product.id, quantity=5)
    database.set_product_availability(product.id, region="ca", quantity=2, free_shipping=True)
    updated = database.set_product_availability(product.id, quantity=7)

    assert updated.quantity == 7
    availabilities = database.list_product_availabilities(product.id)
    assert [(item.region, item.quantity, item.free_shipping) for item in availabilities] == [
        ("*", 7, False),
        ("CA", 2, True),
    ]
    with pytest.raises(ValueError):
        database.set_product_availability(product.id, quantity=-1)


def test_content_save_replaces_descriptions(database: Database, store: MerchantStore) -> None:
    database.save_content(
        store.id,
        code="about",
        content_type="page",
        texts={"en": {"name": "About", "body": "<p>Hi</p>"}, "fr": {"name": "À propos"}},
    )
    updated = database.save_content(
        store.id, code="about", content_type="PAGE", texts={"en": {"name": "About us"}}, visible=False
    )

    assert updated.content_type == "PAGE"
    assert updated.names == {"en": "About us"}
    assert updated.bodies == {}
    assert database.list_content(store.id, "page") == [updated]
    assert database.list_content(store.id, "PAGE", visible_only=True) == []
    assert database.get_content(store.id, "about", "BOX") is None

    assert database.delete_content(store.id, "about") is True
    assert database.delete_content(store.id, "about") is False


def test_content_validation(database: Database, store: MerchantStore) -> None:
    with pytest.raises(ValueError):
        database.save_content(store.id, code="x", content_type="BANNER", texts={"en": {"name": "X"}})
    with pytest.raises(ValueError):
        database.save_content(store.id, code="x", content_type="BOX", texts={"en": {"title": "No name"}})
    with pytest.raises(ValueError):
        database.save_content(store.id, code="x", content_type="BOX", texts={})
    assert database.get_content(store.id, "x") is None


def test_customer_authentication_and_password_reset_token(database: Database, store: MerchantStore) -> None:
    customer = database.create_customer(
        store.id,
        email="Jane@Example.com",
        password="s3cret-pass",
        first_name=" Jane ",
        last_name="Doe",
        language_code="fr",
        gender="F",
    )

    assert customer.email == "jane@example.com"
    assert customer.first_name == "Jane"
    assert customer.language_code == "fr"
    assert database.authenticate_customer(store.id, "JANE@example.com", "s3cret-pass").id == customer.id
    assert database.authenticate_customer(store.id, "jane@example.com", "wrong") is None
    assert database.verify_customer_password(customer.id, "s3cret-pass")

    with pytest.raises(ValueError):
        database.create_customer(
            store.id, email="jane@example.com", password="x" * 8, first_name="J", last_name="D", language_code="en"
        )

    expires = datetime(2030, 1, 1, tzinfo=timezone.utc)
    database.set_customer_reset_token(customer.id, "abc123", expires)
    assert database.get_customer_reset_token(customer.id) == ("abc123", expires)

    database.set_customer_password(customer.id, "n3w-password")
    assert database.get_customer_reset_token(customer.id) is None
    assert database.authenticate_customer(store.id, "jane@example.com", "n3w-password") is not None


def test_order_downloads(database: Database, store: MerchantStore) -> None:
    download = database.create_order_download(store.id, 100, file_name="manual.pdf", max_days=7, max_downloads=3)
    database.increment_download_count(download.id)

    stored = database.get_order_download(store.id, download.id)
    assert stored.download_count == 1
    assert stored.created_at - download.created_at < timedelta(seconds=1)
    assert [item.id for item in database.list_order_downloads(store.id, 100)] == [download.id]
    assert database.list_order_downloads(store.id, 101) == []


def test_shipping_origin_upsert(database: Database, store: MerchantStore) -> None:
    assert database.get_shipping_origin(store.id) is None

    database.save_shipping_origin(
        ShippingOrigin(store.id, True, "1 Main St", "Montreal", "H1H 1H1", "QC", "ca")
    )
    saved = database.save_shipping_origin(
        ShippingOrigin(store.id, False, "2 Main St", "Montreal", "H1H 1H1", "QC", "ca")
    )

    assert saved.active is False
    assert saved.address == "2 Main St"
    assert saved.country == "CA"


def test_search_terms_rank_by_matches(database: Database, store: MerchantStore) -> None:
    first = database.create_product(store.id, sku="A", names={"en": "A"})
    second = database.create_product(store.id, sku="B", names={"en": "B"})
    database.replace_search_terms(store.id, first.id, {"en": ["red", "shoe"]})
    database.replace_search_terms(store.id, second.id, {"en": ["red", "hat"], "fr": ["rouge"]})

    hits, total = database.search_products(store.id, "en", ["red", "shoe"])
    assert total == 2
    assert hits == [(first.id, 2), (second.id, 1)]

    hits, total = database.search_products(store.id, "en", ["red", "shoe"], offset=1, limit=1)
    assert total == 2 and hits == [(second.id, 1)]
    assert database.search_products(store.id, "en", []) == ([], 0)

    assert database.autocomplete_terms(store.id, "en", "re", 10) == ["red"]
    assert database.autocomplete_terms(store.id, "en", "%", 10) == []
    assert database.autocomplete_terms(store.id, "fr", "ro", 10) == ["rouge"]

    database.clear_search_terms(store.id)
    assert database.search_products(store.id, "en", ["red"]) == ([], 0)
