import os
import random
import tempfile
import unittest

from fastapi.testclient import TestClient

from storefront.app import create_app
from storefront.auth import AdminAuth
from storefront.catalog import ProductCatalog, build_seed_catalog
from storefront.config import Settings, get_settings
from storefront.dependencies import (
    get_auth,
    get_catalog,
    get_preorder_ledger,
    get_upload_manager,
)
from storefront.preorders import FilePreorderLedger
from storefront.record_store import JsonRecordStore
from storefront.uploads import UploadManager

PNG_BYTES = b"\x89PNG" + b"\x00" * 1020


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        data_dir = self.tmp.name
        store = JsonRecordStore()

        self.settings = Settings(data_dir=data_dir, jwt_secret="test-secret")
        self.catalog = ProductCatalog(store, self.settings.products_path)
        self.ledger = FilePreorderLedger(store, self.settings.preorders_path)
        self.uploads = UploadManager(self.settings.upload_path)
        self.auth = AdminAuth(secret="test-secret")

        self.app = create_app(
            seed_catalog=build_seed_catalog(random.Random(0)), settings=self.settings
        )
        self.app.dependency_overrides[get_settings] = lambda: self.settings
        self.app.dependency_overrides[get_catalog] = lambda: self.catalog
        self.app.dependency_overrides[get_preorder_ledger] = lambda: self.ledger
        self.app.dependency_overrides[get_upload_manager] = lambda: self.uploads
        self.app.dependency_overrides[get_auth] = lambda: self.auth
        self.client = TestClient(self.app)

    def _login(self) -> dict:
        response = self.client.post(
            "/api/admin/login", json={"username": "admin", "password": "password123"}
        )
        self.assertEqual(response.status_code, 200)
        return {"Authorization": f"Bearer {response.json()['token']}"}

    def test_health_check(self):
        response = self.client.get("/api/test")
        self.assertEqual(response.json(), {"message": "Backend is working!"})

    def test_preorder_then_stats(self):
        response = self.client.post(
            "/api/preorder", json={"name": "A", "email": "a@x.com"}
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertIsInstance(payload["id"], int)

        stats = self.client.get("/api/admin/stats", headers=self._login())
        self.assertEqual(stats.status_code, 200)
        self.assertEqual(
            stats.json(),
            {
                "totalProducts": 321,
                "totalPreorders": 1,
                "visitors": {"total": 1, "today": 1},
            },
        )

    def test_preorder_requires_name_and_email(self):
        response = self.client.post("/api/preorder", json={"name": "A"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Name and email are required"})
        self.assertEqual(self.ledger.list_all(), [])

    def test_admin_preorders_view(self):
        self.client.post(
            "/api/preorder",
            json={
                "name": "Ada",
                "email": "ada@example.test",
                "productId": 7,
                "productName": "Album 7",
            },
        )
        response = self.client.get("/api/admin/preorders", headers=self._login())
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["totalPreorders"], 1)
        item = payload["items"][0]
        self.assertEqual(item["title"], "Album 7")
        self.assertEqual(item["user"], "Ada")
        self.assertEqual(item["message"], "")
        self.assertEqual(item["productId"], "7")

    def test_admin_preorder_requires_token(self):
        response = self.client.post(
            "/api/admin/preorder", json={"name": "A", "email": "a@x.com"}
        )
        self.assertEqual(response.status_code, 401)
        response = self.client.post(
            "/api/admin/preorder",
            json={"name": "A", "email": "a@x.com"},
            headers=self._login(),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(self.ledger.list_all()), 1)

    def test_auth_gate(self):
        missing = self.client.get("/api/admin/stats")
        self.assertEqual(missing.status_code, 401)
        self.assertEqual(missing.json(), {"error": "Access token required"})

        invalid = self.client.get(
            "/api/admin/stats", headers={"Authorization": "Bearer nope"}
        )
        self.assertEqual(invalid.status_code, 403)
        self.assertEqual(invalid.json(), {"error": "Invalid or expired token"})

    def test_login_failures(self):
        wrong = self.client.post(
            "/api/admin/login", json={"username": "admin", "password": "wrong"}
        )
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(wrong.json(), {"error": "Invalid credentials"})

        self.app.dependency_overrides[get_auth] = lambda: AdminAuth(secret=None)
        unset = self.client.post(
            "/api/admin/login", json={"username": "admin", "password": "password123"}
        )
        self.assertEqual(unset.status_code, 500)
        self.assertIn("JWT_SECRET", unset.json()["error"])

    def test_create_and_feature_product(self):
        headers = self._login()
        response = self.client.post(
            "/api/admin/products",
            data={"name": "Night Drive", "price": "12.50", "type": "album"},
            files={"image": ("cover.png", PNG_BYTES, "image/png")},
            headers=headers,
        )
        self.assertEqual(response.status_code, 200)
        product = response.json()["product"]
        self.assertEqual(product["price"], 1250)
        self.assertTrue(product["id"].startswith("album-"))
        self.assertTrue(product["image"].startswith("/uploads/"))
        self.assertFalse(product["featured"])

        self.assertEqual(self.client.get("/api/products").json(), [product])
        self.assertEqual(self.client.get("/api/products/featured").json(), [])
        self.assertEqual(
            self.client.get("/api/admin/products", headers=headers).json(), [product]
        )

        patched = self.client.patch(
            f"/api/products/{product['id']}", json={"featured": True}, headers=headers
        )
        self.assertEqual(patched.status_code, 200)
        self.assertTrue(patched.json()["product"]["featured"])
        featured = self.client.get("/api/products/featured").json()
        self.assertEqual([p["id"] for p in featured], [product["id"]])

    def test_create_product_validation_removes_uploaded_image(self):
        response = self.client.post(
            "/api/admin/products",
            data={"name": "No price", "type": "album"},
            files={"image": ("cover.png", PNG_BYTES, "image/png")},
            headers=self._login(),
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Name, price, and type are required"})
        self.assertEqual(self.uploads.list_files(), [])

    def test_patch_unknown_product(self):
        headers = self._login()
        self.catalog.create(name="A", price="1", product_type="album")
        response = self.client.patch(
            "/api/products/missing", json={"featured": True}, headers=headers
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Product not found"})

    def test_public_listing_survives_corrupt_file(self):
        with open(self.settings.products_path, "w", encoding="utf-8") as f:
            f.write("{{{")
        self.assertEqual(self.client.get("/api/products").json(), [])
        self.assertEqual(self.client.get("/api/products/featured").json(), [])

    def test_public_listing_skips_non_object_entries(self):
        JsonRecordStore().write(self.settings.products_path, [1, {"id": "album-1"}])
        response = self.client.get("/api/products")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [{"id": "album-1"}])

    def test_create_product_keeps_corrupt_file(self):
        original = '[{"id": "album-1", "name": "Keep me"},]'
        with open(self.settings.products_path, "w", encoding="utf-8") as f:
            f.write(original)
        response = self.client.post(
            "/api/admin/products",
            data={"name": "N", "price": "1", "type": "album"},
            headers=self._login(),
        )
        self.assertEqual(response.status_code, 500)
        with open(self.settings.products_path, "r", encoding="utf-8") as f:
            self.assertEqual(f.read(), original)

    def test_admin_preorders_with_non_string_fields(self):
        JsonRecordStore().write(
            self.settings.preorders_path,
            [{"id": 1, "name": "A", "email": "a@x.com", "productName": 42, "message": 7}],
        )
        response = self.client.get("/api/admin/preorders", headers=self._login())
        self.assertEqual(response.status_code, 200)
        item = response.json()["items"][0]
        self.assertEqual(item["title"], 42)
        self.assertEqual(item["message"], 7)

    def test_unknown_static_path_is_404(self):
        response = self.client.get("/missing.html")
        self.assertEqual(response.status_code, 404)
        self.assertTrue(os.path.isdir(self.settings.public_path))

    def test_upload_list_download_delete(self):
        headers = self._login()
        rejected = self.client.post(
            "/api/admin/upload",
            files={"file": ("setup.exe", b"MZ", "application/octet-stream")},
            headers=headers,
        )
        self.assertEqual(rejected.status_code, 400)

        no_file = self.client.post("/api/admin/upload", headers=headers)
        self.assertEqual(no_file.status_code, 400)

        uploaded = self.client.post(
            "/api/admin/upload",
            files={"file": ("cover.png", PNG_BYTES, "image/png")},
            headers=headers,
        )
        self.assertEqual(uploaded.status_code, 200)
        payload = uploaded.json()
        self.assertEqual(payload["size"], len(PNG_BYTES))
        self.assertEqual(payload["originalName"], "cover.png")

        listing = self.client.get("/api/admin/files", headers=headers).json()["files"]
        self.assertEqual([f["filename"] for f in listing], [payload["filename"]])

        download = self.client.get(payload["url"])
        self.assertEqual(download.status_code, 200)
        self.assertEqual(download.content, PNG_BYTES)

        deleted = self.client.delete(
            f"/api/admin/files/{payload['filename']}", headers=headers
        )
        self.assertEqual(deleted.json(), {"success": True, "message": "File deleted"})
        again = self.client.delete(
            f"/api/admin/files/{payload['filename']}", headers=headers
        )
        self.assertEqual(again.status_code, 404)

    def test_epub_download(self):
        os.makedirs(self.settings.epub_path)
        with open(os.path.join(self.settings.epub_path, "novel-1.epub"), "wb") as f:
            f.write(b"PK\x03\x04")
        response = self.client.get("/api/epubs/novel-1.epub")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], "application/epub+zip")
        self.assertEqual(self.client.get("/api/epubs/missing.epub").status_code, 404)

    def test_checkout_stub(self):
        response = self.client.post("/create-checkout-session")
        self.assertEqual(response.json(), {"id": "mock_session_id"})

    def test_unexpected_errors_become_500(self):
        class BrokenCatalog:
            def list_persisted(self):
                raise RuntimeError("disk on fire")

        self.app.dependency_overrides[get_catalog] = lambda: BrokenCatalog()
        response = self.client.get("/api/products")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal server error"})


if __name__ == "__main__":
    unittest.main()
