import sys
import tempfile
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from salesmanager.api import create_app
from salesmanager.config import Settings
from salesmanager.database import Database

ADMIN = {"Authorization": "Bearer admin-token"}
BASE = "/api/v1/stores/DEFAULT"
PRIVATE = "/api/v1/private/stores/DEFAULT"


class ContentApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        root = Path(self._tmp.name)

        database = Database(root / "salesmanager.sqlite3")
        database.initialize()
        database.ensure_languages(["en", "fr"])
        database.create_store(
            "DEFAULT",
            name="Default store",
            email="shop@example.com",
            country="CA",
            currency="CAD",
            default_language="en",
            languages=["fr"],
        )

        settings = Settings(
            database_path=root / "salesmanager.sqlite3",
            content_root=root / "content",
            public_base_url="https://shop.example.com",
            admin_tokens=("admin-token",),
            secret_key="s3cret",
        )
        self.client = TestClient(create_app(settings=settings, database=database))
        self.addCleanup(self.client.close)

    def _save(self, code: str, payload: dict):
        return self.client.put(f"{PRIVATE}/content/{code}", json=payload, headers=ADMIN)

    # ------------------------------------------------------------------
    # Pages and boxes
    # ------------------------------------------------------------------
    def test_pages_fall_back_to_default_language(self) -> None:
        saved = self._save(
            "about",
            {
                "content_type": "page",
                "descriptions": {
                    "en": {"name": "About", "title": "About us", "body": "<p>Hello</p>", "seo_url": "about-us"},
                },
            },
        )
        self.assertEqual(saved.status_code, 200, saved.text)
        self.assertEqual(saved.json()["content_type"], "PAGE")

        page = self.client.get(f"{BASE}/content/pages/about", params={"lang": "fr"}).json()
        self.assertEqual(page["language"], "en")
        self.assertEqual(page["title"], "About us")
        self.assertEqual(page["seo_url"], "about-us")

        self._save(
            "about",
            {
                "content_type": "PAGE",
                "descriptions": {"en": {"name": "About"}, "fr": {"name": "À propos", "title": "Qui sommes-nous"}},
            },
        )
        page = self.client.get(f"{BASE}/content/pages/about", params={"lang": "fr"}).json()
        self.assertEqual(page["language"], "fr")
        self.assertEqual(page["title"], "Qui sommes-nous")

        pages = self.client.get(f"{BASE}/content/pages").json()
        self.assertEqual([item["code"] for item in pages], ["about"])

    def test_hidden_and_missing_pages_are_not_found(self) -> None:
        self._save("draft", {"content_type": "PAGE", "descriptions": {"en": {"name": "Draft"}}, "visible": False})

        self.assertEqual(self.client.get(f"{BASE}/content/pages/draft").status_code, 404)
        self.assertEqual(self.client.get(f"{BASE}/content/pages/missing").status_code, 404)
        self.assertEqual(self.client.get(f"{BASE}/content/pages").json(), [])

    def test_boxes_filter_by_position(self) -> None:
        self._save("promo", {"content_type": "BOX", "position": "LEFT", "descriptions": {"en": {"name": "Promo"}}})
        self._save("news", {"content_type": "BOX", "position": "RIGHT", "descriptions": {"en": {"name": "News"}}})

        left = self.client.get(f"{BASE}/content/boxes", params={"position": "LEFT"}).json()
        self.assertEqual([item["code"] for item in left], ["promo"])
        self.assertEqual(len(self.client.get(f"{BASE}/content/boxes").json()), 2)
        self.assertEqual(self.client.get(f"{BASE}/content/pages/promo").status_code, 404)

    def test_content_validation(self) -> None:
        bad_type = self._save("x", {"content_type": "BANNER", "descriptions": {"en": {"name": "X"}}})
        self.assertEqual(bad_type.status_code, 400)

        bad_language = self._save("x", {"content_type": "PAGE", "descriptions": {"de": {"name": "X"}}})
        self.assertEqual(bad_language.status_code, 400)

        no_name = self._save("x", {"content_type": "PAGE", "descriptions": {"en": {"title": "X"}}})
        self.assertEqual(no_name.status_code, 422)

    def test_delete_content(self) -> None:
        self._save("about", {"content_type": "PAGE", "descriptions": {"en": {"name": "About"}}})

        self.assertEqual(self.client.delete(f"{PRIVATE}/content/about", headers=ADMIN).status_code, 204)
        self.assertEqual(self.client.delete(f"{PRIVATE}/content/about", headers=ADMIN).status_code, 404)

    # ------------------------------------------------------------------
    # Static files and folders
    # ------------------------------------------------------------------
    def test_file_upload_listing_and_removal(self) -> None:
        upload = self.client.post(
            f"{PRIVATE}/files",
            params={"filename": "terms.txt"},
            content=b"Terms and conditions",
            headers={**ADMIN, "Content-Type": "text/plain"},
        )
        self.assertEqual(upload.status_code, 201, upload.text)
        body = upload.json()["response"]
        self.assertEqual(body["status"], 0)
        self.assertEqual(
            body["data"],
            [
                {
                    "name": "terms.txt",
                    "type": "STATIC_FILE",
                    "url": "https://shop.example.com/static/files/DEFAULT/STATIC_FILE/terms.txt",
                }
            ],
        )

        listing = self.client.get(f"{PRIVATE}/files", headers=ADMIN).json()["response"]
        self.assertEqual(listing["totalRow"], 1)
        self.assertEqual(listing["data"][0]["name"], "terms.txt")

        served = self.client.get("/static/files/DEFAULT/STATIC_FILE/terms.txt")
        self.assertEqual(served.status_code, 200)
        self.assertEqual(served.content, b"Terms and conditions")

        removed = self.client.delete(f"{PRIVATE}/files/terms.txt", headers=ADMIN)
        self.assertEqual(removed.json(), {"response": {"status": 9999}})
        self.assertEqual(self.client.get("/static/files/DEFAULT/STATIC_FILE/terms.txt").status_code, 404)

        again = self.client.delete(f"{PRIVATE}/files/terms.txt", headers=ADMIN)
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.json()["response"]["status"], -1)
        self.assertIn("does not exist", again.json()["response"]["errorString"])

    def test_files_in_folders_are_served_from_their_urls(self) -> None:
        upload = self.client.post(
            f"{PRIVATE}/files",
            params={"filename": "a.css", "path": "css/theme"},
            content=b"body { color: red; }",
            headers=ADMIN,
        )
        self.assertEqual(upload.status_code, 201, upload.text)
        url = upload.json()["response"]["data"][0]["url"]
        self.assertEqual(url, "https://shop.example.com/static/files/DEFAULT/STATIC_FILE/css/theme/a.css")

        served = self.client.get("/static/files/DEFAULT/STATIC_FILE/css/theme/a.css")
        self.assertEqual(served.status_code, 200)
        self.assertEqual(served.content, b"body { color: red; }")
        self.assertEqual(self.client.get("/static/files/DEFAULT/STATIC_FILE/a.css").status_code, 404)

        listed = self.client.get(f"{PRIVATE}/files", params={"path": "css/theme"}, headers=ADMIN).json()
        self.assertEqual([item["url"] for item in listed["response"]["data"]], [url])

    def test_file_types_are_kept_apart(self) -> None:
        self.client.post(
            f"{PRIVATE}/files",
            params={"filename": "logo.png", "type": "logo"},
            content=b"png-bytes",
            headers=ADMIN,
        )

        self.assertEqual(self.client.get(f"{PRIVATE}/files", headers=ADMIN).json(), {"response": {
            "status": 0, "startRow": 0, "endRow": 0, "totalRow": 0,
        }})
        logos = self.client.get(f"{PRIVATE}/files", params={"type": "LOGO"}, headers=ADMIN).json()["response"]
        self.assertEqual([item["name"] for item in logos["data"]], ["logo.png"])
        self.assertEqual(self.client.get("/static/files/DEFAULT/LOGO/logo.png").status_code, 200)

        unknown = self.client.get(f"{PRIVATE}/files", params={"type": "POSTER"}, headers=ADMIN)
        self.assertEqual(unknown.status_code, 400)

    def test_unsafe_file_names_are_rejected(self) -> None:
        response = self.client.post(
            f"{PRIVATE}/files",
            params={"filename": "..", "path": "docs"},
            content=b"x",
            headers=ADMIN,
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["response"]["status"], -1)

    def test_folders(self) -> None:
        self.assertEqual(self.client.post(f"{PRIVATE}/folders/docs", headers=ADMIN).status_code, 201)
        self.assertEqual(self.client.post(f"{PRIVATE}/folders/docs", headers=ADMIN).status_code, 400)
        self.client.post(f"{PRIVATE}/folders/manuals", params={"path": "docs"}, headers=ADMIN)

        top = self.client.get(f"{PRIVATE}/folders", headers=ADMIN).json()["response"]["data"]
        self.assertEqual(top, [{"name": "docs"}])
        nested = self.client.get(f"{PRIVATE}/folders", params={"path": "docs"}, headers=ADMIN).json()
        self.assertEqual(nested["response"]["data"], [{"name": "manuals"}])

        self.assertEqual(self.client.delete(f"{PRIVATE}/folders/docs", headers=ADMIN).status_code, 200)
        self.assertEqual(self.client.get(f"{PRIVATE}/folders", headers=ADMIN).json(), {"response": {"status": 0}})

    # ------------------------------------------------------------------
    # Shipping origin and order downloads
    # ------------------------------------------------------------------
    def test_shipping_origin(self) -> None:
        self.assertEqual(self.client.get(f"{PRIVATE}/shipping/origin", headers=ADMIN).status_code, 404)

        saved = self.client.put(
            f"{PRIVATE}/shipping/origin",
            json={"address": "1 Main St", "city": "Montreal", "postal_code": "H1H 1H1", "state": "QC", "country": "ca"},
            headers=ADMIN,
        )
        self.assertEqual(saved.status_code, 200)
        self.assertEqual(saved.json()["country"], "CA")
        self.assertTrue(saved.json()["active"])

        fetched = self.client.get(f"{PRIVATE}/shipping/origin", headers=ADMIN).json()
        self.assertEqual(fetched["city"], "Montreal")

    def test_order_downloads_respect_limits(self) -> None:
        self.client.post(
            f"{PRIVATE}/files",
            params={"filename": "manual.pdf", "type": "PRODUCT_DIGITAL"},
            content=b"%PDF-1.4",
            headers=ADMIN,
        )
        created = self.client.post(
            f"{PRIVATE}/orders/42/downloads",
            json={"file_name": "manual.pdf", "max_downloads": 1},
            headers=ADMIN,
        )
        self.assertEqual(created.status_code, 201)
        download_id = created.json()["id"]

        listed = self.client.get(f"{PRIVATE}/orders/42/downloads", headers=ADMIN).json()
        self.assertEqual([item["file_name"] for item in listed], ["manual.pdf"])

        url = f"{PRIVATE}/orders/42/downloads/{download_id}/file"
        first = self.client.get(url, headers=ADMIN)
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.content, b"%PDF-1.4")
        self.assertIn('filename="manual.pdf"', first.headers["content-disposition"])

        self.assertEqual(self.client.get(url, headers=ADMIN).status_code, 403)
        self.assertEqual(self.client.get("/static/files/DEFAULT/PRODUCT_DIGITAL/manual.pdf").status_code, 404)
        self.assertEqual(
            self.client.get(f"{PRIVATE}/orders/43/downloads/{download_id}/file", headers=ADMIN).status_code, 404
        )

    def test_download_without_stored_file_is_not_found(self) -> None:
        created = self.client.post(
            f"{PRIVATE}/orders/7/downloads", json={"file_name": "missing.zip"}, headers=ADMIN
        ).json()

        response = self.client.get(f"{PRIVATE}/orders/7/downloads/{created['id']}/file", headers=ADMIN)
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
