import re
import unittest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from backend.app import create_app
from backend.config import Settings, get_settings
from backend.dependencies import get_blob_store
from backend.documents import read_document, write_document
from backend.storage import InMemoryBlobStore

ADMIN = {"X-Admin-Token": "secret"}


def _seed(store, folder, item_id, **fields):
    document = {"id": item_id, "title": item_id, "content": "c", "author": "a"}
    document.update(fields)
    write_document(store, f"{folder}/{item_id}.json", document)
    return document


class GalleryApiTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryBlobStore()
        self.settings = Settings(_env_file=None, admin_token="secret")
        app = create_app(self.settings)
        app.dependency_overrides[get_blob_store] = lambda: self.store
        app.dependency_overrides[get_settings] = lambda: self.settings
        self.app = app
        self.client = TestClient(app)

    def test_list_requires_type(self):
        response = self.client.get("/api/gallery")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Type parameter is required"})

    def test_list_rejects_unknown_type(self):
        response = self.client.get("/api/gallery", params={"type": "bogus"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_create_from_form_returns_item_with_generated_id(self):
        response = self.client.post(
            "/api/gallery",
            params={"type": "gallery"},
            headers=ADMIN,
            data={
                "title": "Todo",
                "content": "A tiny todo app",
                "author": "Kim",
                "tags": "tools, productivity",
                "isPublished": "true",
            },
            files=[
                ("file", ("icon.png", b"icon-bytes", "image/png")),
                ("screenshots", ("one.jpg", b"shot-1", "image/jpeg")),
                ("screenshots", ("two.webp", b"shot-2", "image/webp")),
            ],
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["success"])

        item = payload["item"]
        item_id = item["id"]
        self.assertRegex(item_id, r"^gallery-\d+-[a-z0-9]{9}$")
        self.assertEqual(item["tags"], ["tools", "productivity"])
        self.assertTrue(item["isPublished"])
        self.assertEqual(item["type"], "gallery")
        self.assertEqual(item["store"], "google-play")
        self.assertEqual(item["appCategory"], "normal")
        self.assertTrue(item["iconUrl"].endswith(f"/{item_id}-icon.png"))
        self.assertEqual(len(item["screenshotUrls"]), 2)
        self.assertTrue(item["screenshotUrls"][1].endswith(f"/{item_id}-screenshot-2.webp"))
        self.assertEqual(item["imageUrl"], item["screenshotUrls"][0])
        self.assertTrue(payload["jsonUrl"].endswith(f"gallery-gallery/{item_id}.json"))

        stored = read_document(self.store, f"gallery-gallery/{item_id}.json")
        self.assertEqual(stored["title"], "Todo")
        self.assertEqual(
            self.store.get_bytes(f"gallery-gallery/{item_id}-icon.png"), b"icon-bytes"
        )

    def test_create_from_form_without_media(self):
        response = self.client.post(
            "/api/gallery",
            params={"type": "events"},
            headers=ADMIN,
            data={"title": "Launch", "content": "Party", "author": "Lee"},
        )
        self.assertEqual(response.status_code, 200)
        item = response.json()["item"]
        self.assertFalse(item["isPublished"])
        self.assertNotIn("imageUrl", item)
        self.assertNotIn("screenshotUrls", item)
        self.assertEqual(item["tags"], [])
        self.assertEqual(len(self.store.list("gallery-events/")), 1)

    def test_create_with_missing_fields_writes_nothing(self):
        response = self.client.post(
            "/api/gallery",
            params={"type": "gallery"},
            headers=ADMIN,
            data={"title": "No body"},
            files=[("file", ("icon.png", b"icon", "image/png"))],
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Missing required fields"})
        self.assertEqual(self.store.objects, {})

    def test_create_requires_admin_token(self):
        response = self.client.post(
            "/api/gallery",
            params={"type": "gallery"},
            data={"title": "t", "content": "c", "author": "a"},
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Unauthorized"})

    def test_json_post_saves_item_under_query_type(self):
        item = {"id": "gallery-1-abcdefghi", "title": "Todo", "type": "gallery"}
        response = self.client.post(
            "/api/gallery",
            params={"type": "featured"},
            headers=ADMIN,
            json={"item": item},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["item"]["type"], "featured")

        stored = read_document(self.store, "gallery-featured/gallery-1-abcdefghi.json")
        self.assertEqual(stored["type"], "featured")
        self.assertEqual(stored["title"], "Todo")

    def test_json_post_requires_item_id(self):
        response = self.client.post(
            "/api/gallery",
            params={"type": "featured"},
            headers=ADMIN,
            json={"item": {"title": "no id"}},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Item data and ID are required"})

    def test_gallery_lists_published_and_reviewable_items(self):
        _seed(self.store, "gallery-gallery", "a", isPublished=True)
        _seed(self.store, "gallery-gallery", "b", isPublished=False, status="in-review")
        _seed(self.store, "gallery-gallery", "c", isPublished=False, status="development")
        _seed(self.store, "gallery-gallery", "d", isPublished=False, status="published")

        response = self.client.get("/api/gallery", params={"type": "gallery"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["id"] for item in response.json()], ["a", "b", "d"])

    def test_normal_shares_folder_but_needs_published(self):
        _seed(self.store, "gallery-gallery", "a", isPublished=True)
        _seed(self.store, "gallery-gallery", "b", isPublished=False, status="in-review")

        response = self.client.get("/api/gallery", params={"type": "normal"})
        self.assertEqual([item["id"] for item in response.json()], ["a"])

    def test_featured_lists_only_published_items(self):
        _seed(self.store, "gallery-featured", "f1", isPublished=True)
        _seed(self.store, "gallery-featured", "f2", isPublished=False, status="published")
        _seed(self.store, "gallery-events", "e1", isPublished=True)

        response = self.client.get("/api/gallery", params={"type": "featured"})
        self.assertEqual([item["id"] for item in response.json()], ["f1"])

    def test_list_keeps_unknown_document_keys(self):
        _seed(self.store, "gallery-events", "e1", isPublished=True, likes=3)
        response = self.client.get("/api/gallery", params={"type": "events"})
        self.assertEqual(response.json()[0]["likes"], 3)

    def test_list_paginates_with_headers(self):
        for index in range(1, 8):
            _seed(self.store, "gallery-gallery", f"app-{index:02d}", isPublished=True)

        response = self.client.get("/api/gallery", params={"type": "gallery", "page": 2})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["id"] for item in response.json()], ["app-07"])
        self.assertEqual(response.headers["X-Total-Count"], "7")
        self.assertEqual(response.headers["X-Total-Pages"], "2")
        self.assertEqual(response.headers["X-Page"], "2")

        clamped = self.client.get(
            "/api/gallery", params={"type": "gallery", "page": 9, "page_size": 3}
        )
        self.assertEqual([item["id"] for item in clamped.json()], ["app-07"])
        self.assertEqual(clamped.headers["X-Page"], "3")

    def test_update_replaces_document(self):
        _seed(self.store, "gallery-gallery", "a", isPublished=True, title="Old")
        response = self.client.put(
            "/api/gallery",
            params={"type": "gallery"},
            headers=ADMIN,
            json={"item": {"id": "a", "title": "New", "isPublished": True}},
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["message"], "Item updated successfully")
        self.assertEqual(payload["item"]["title"], "New")
        self.assertEqual(read_document(self.store, "gallery-gallery/a.json")["title"], "New")
        self.assertEqual(len(self.store.list("gallery-gallery/")), 1)

    def test_update_missing_item_returns_404(self):
        response = self.client.put(
            "/api/gallery",
            params={"type": "gallery"},
            headers=ADMIN,
            json={"item": {"id": "missing"}},
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Item not found"})

    def test_delete_removes_document_and_media(self):
        _seed(self.store, "gallery-gallery", "app-1", isPublished=True)
        self.store.put("gallery-gallery/app-1-icon.png", b"i")
        self.store.put("gallery-gallery/app-1-screenshot-1.jpg", b"s")
        _seed(self.store, "gallery-gallery", "other", isPublished=True)
        self.store.put("gallery-gallery/other-icon.png", b"o")

        response = self.client.delete(
            "/api/gallery", params={"type": "gallery", "id": "app-1"}, headers=ADMIN
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), {"success": True, "message": "Item deleted successfully"}
        )
        remaining = sorted(self.store.objects)
        self.assertEqual(
            remaining, ["gallery-gallery/other-icon.png", "gallery-gallery/other.json"]
        )

    def test_delete_validates_parameters_and_existence(self):
        missing_id = self.client.delete(
            "/api/gallery", params={"type": "gallery"}, headers=ADMIN
        )
        self.assertEqual(missing_id.status_code, 400)
        self.assertEqual(
            missing_id.json(), {"error": "Type and ID parameters are required"}
        )

        not_found = self.client.delete(
            "/api/gallery", params={"type": "gallery", "id": "nope"}, headers=ADMIN
        )
        self.assertEqual(not_found.status_code, 404)

    def test_storage_failure_returns_generic_error(self):
        broken = MagicMock()
        broken.list.side_effect = RuntimeError("connection reset")
        self.app.dependency_overrides[get_blob_store] = lambda: broken

        response = self.client.get("/api/gallery", params={"type": "gallery"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to load gallery"})

    def test_unreadable_document_is_skipped(self):
        _seed(self.store, "gallery-gallery", "a", isPublished=True)
        self.store.put("gallery-gallery/broken.json", b"{not json")

        response = self.client.get("/api/gallery", params={"type": "gallery"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["id"] for item in response.json()], ["a"])

    def test_list_serves_documents_with_legacy_values(self):
        for document in (
            {"id": "a", "isPublished": True, "tags": None},
            {"id": "b", "isPublished": True, "appCategory": "game"},
            {"id": "c", "isPublished": True},
        ):
            write_document(
                self.store, f"gallery-gallery/{document['id']}.json", document
            )

        response = self.client.get("/api/gallery", params={"type": "gallery"})
        self.assertEqual(response.status_code, 200)
        items = response.json()
        self.assertEqual([item["id"] for item in items], ["a", "b", "c"])
        self.assertEqual(items[1]["appCategory"], "game")

    def test_json_writes_keep_values_outside_form_choices(self):
        response = self.client.post(
            "/api/gallery",
            params={"type": "featured"},
            headers=ADMIN,
            json={"item": {"id": "x", "status": "archived", "title": None}},
        )
        self.assertEqual(response.status_code, 200)
        stored = read_document(self.store, "gallery-featured/x.json")
        self.assertEqual(stored["status"], "archived")
        self.assertEqual(stored["type"], "featured")

        updated = self.client.put(
            "/api/gallery",
            params={"type": "featured"},
            headers=ADMIN,
            json={"item": {"id": "x", "store": "itch", "tags": None}},
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(read_document(self.store, "gallery-featured/x.json")["store"], "itch")


class UnhandledErrorTests(unittest.TestCase):
    def test_failure_outside_handlers_returns_json_error(self):
        settings = Settings(_env_file=None, admin_token="secret")
        app = create_app(settings)

        def broken_store():
            raise ValueError("bucket misconfigured")

        app.dependency_overrides[get_blob_store] = broken_store
        app.dependency_overrides[get_settings] = lambda: settings
        client = TestClient(app, raise_server_exceptions=False)

        with self.assertLogs("backend.app", level="ERROR"):
            response = client.get("/api/gallery", params={"type": "gallery"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal server error"})


class AdminGatingDisabledTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryBlobStore()
        settings = Settings(_env_file=None, admin_token=None)
        app = create_app(settings)
        app.dependency_overrides[get_blob_store] = lambda: self.store
        app.dependency_overrides[get_settings] = lambda: settings
        self.client = TestClient(app)

    def test_writes_allowed_without_token(self):
        response = self.client.post(
            "/api/gallery",
            params={"type": "normal"},
            data={"title": "t", "content": "c", "author": "a", "isPublished": "true"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(re.match(r"^normal-", response.json()["item"]["id"]))


if __name__ == "__main__":
    unittest.main()
