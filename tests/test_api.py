"""
API tests for Item Admin.

Each test gets its own SQLite file through DATABASE_PATH; the app reads its
settings from the environment at startup.
"""

from __future__ import annotations

import json
import os
import tempfile
import unittest
from unittest import mock

from fastapi.testclient import TestClient
from starlette.datastructures import FormData

from main import create_app
from tests.helpers import make_item


def _file(name: str, payload=None, *, raw: bytes | None = None):
    body = raw if raw is not None else json.dumps(payload).encode("utf-8")
    return ("files", (name, body, "application/json"))


class TestItemsAPI(unittest.TestCase):
    """Endpoint behavior for /api/items and its aliases."""

    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        env = {"DATABASE_PATH": os.path.join(self._tmpdir.name, "api_test.db"), "ITEM_CONFLICT_POLICY": "ignore"}
        self._env = mock.patch.dict(os.environ, env)
        self._env.start()

    def tearDown(self) -> None:
        self._env.stop()
        self._tmpdir.cleanup()

    def _client(self) -> TestClient:
        return TestClient(create_app())

    def test_download_empty(self) -> None:
        with self._client() as client:
            r = client.get("/api/items")
            self.assertEqual(r.status_code, 200)
            self.assertEqual(r.json(), [])

    def test_upload_object_and_array_files(self) -> None:
        files = [_file("one.json", make_item("a")), _file("two.json", [make_item("b"), make_item("c")])]
        with self._client() as client:
            r = client.post("/api/items", files=files)
            self.assertEqual(r.status_code, 200, r.text)
            body = r.json()
            self.assertEqual(body["message"], "Items uploaded and processed successfully.")
            self.assertEqual(body["report"]["inserted"], 3)

            items = client.get("/api/items").json()
            self.assertEqual([i["id"] for i in items], ["a", "b", "c"])
            self.assertEqual(items[0], make_item("a"))

    def test_invalid_record_halts_batch(self) -> None:
        broken = make_item("b")
        del broken["name"]
        with self._client() as client:
            r = client.post("/api/items", files=[_file("batch.json", [make_item("a"), broken, make_item("c")])])
            self.assertEqual(r.status_code, 500)
            body = r.json()
            self.assertEqual(body["message"], "Invalid item input")
            self.assertEqual((body["index"], body["id"]), (1, "b"))
            self.assertTrue(body["errors"])

            ids = [i["id"] for i in client.get("/api/items").json()]
            self.assertEqual(ids, ["a"])

    def test_bad_slot_and_empty_effects_rejected(self) -> None:
        with self._client() as client:
            for item in [make_item("x", equipableSlot="CAPE"), make_item("y", effects={})]:
                r = client.post("/api/items", files=[_file("bad.json", item)])
                self.assertEqual(r.status_code, 500)
                self.assertEqual(r.json()["message"], "Invalid item input")
            self.assertEqual(client.get("/api/items").json(), [])

    def test_reupload_does_not_overwrite(self) -> None:
        with self._client() as client:
            client.post("/api/items", files=[_file("v1.json", make_item("a", name="Original"))])
            r = client.post("/api/items", files=[_file("v2.json", make_item("a", name="Renamed"))])
            self.assertEqual(r.status_code, 200)
            self.assertEqual(r.json()["report"]["unchanged"], 1)
            self.assertEqual(client.get("/api/items").json()[0]["name"], "Original")

    def test_undecodable_file_is_processing_error(self) -> None:
        files = [_file("good.json", make_item("a")), _file("bad.json", raw=b"[{")]
        with self._client() as client:
            r = client.post("/api/items", files=files)
            self.assertEqual(r.status_code, 500)
            self.assertEqual(r.json(), {"error": "Error processing or uploading items."})
            self.assertEqual(client.get("/api/items").json(), [])

    def test_non_finite_number_is_processing_error(self) -> None:
        raw = json.dumps(make_item("a")).replace('"current": 25', '"current": NaN').encode("utf-8")
        with self._client() as client:
            r = client.post("/api/items", files=[_file("nan.json", raw=raw)])
            self.assertEqual(r.status_code, 500)
            self.assertEqual(r.json(), {"error": "Error processing or uploading items."})

            r = client.get("/api/items")
            self.assertEqual(r.status_code, 200)
            self.assertEqual(r.json(), [])

    def test_missing_files_is_parse_error(self) -> None:
        with self._client() as client, mock.patch.object(FormData, "close", new_callable=mock.AsyncMock) as close:
            r = client.post("/api/items", data={"notes": "no files here"})
            self.assertEqual(r.status_code, 500)
            self.assertEqual(r.json(), {"error": "Error parsing the files"})
            close.assert_awaited()

    def test_legacy_paths(self) -> None:
        with self._client() as client:
            r = client.post("/api/upload", files=[_file("one.json", make_item("a"))])
            self.assertEqual(r.status_code, 200)
            self.assertEqual([i["id"] for i in client.get("/api/download").json()], ["a"])

    def test_method_not_allowed(self) -> None:
        cases = [
            ("delete", "/api/items", "GET, POST"),
            ("put", "/api/items", "GET, POST"),
            ("options", "/api/items", "GET, POST"),
            ("trace", "/api/items", "GET, POST"),
            ("options", "/api/download", "GET"),
            ("options", "/api/upload", "POST"),
            ("delete", "/api/download", "GET"),
            ("post", "/api/download", "GET"),
            ("delete", "/api/upload", "POST"),
            ("get", "/api/upload", "POST"),
        ]
        with self._client() as client:
            for method, path, allow in cases:
                r = client.request(method.upper(), path)
                self.assertEqual(r.status_code, 405, f"{method} {path}")
                self.assertEqual(r.headers["allow"], allow)

    def test_download_store_failure(self) -> None:
        with self._client() as client:
            client.app.state.store.close()
            r = client.get("/api/items")
            self.assertEqual(r.status_code, 500)
            self.assertEqual(r.json(), {"error": "Failed to fetch items from the database."})

    def test_health_and_index(self) -> None:
        with self._client() as client:
            client.post("/api/items", files=[_file("one.json", make_item("a"))])
            r = client.get("/api/health")
            self.assertEqual(r.status_code, 200)
            body = r.json()
            self.assertEqual(body["status"], "ONLINE")
            self.assertEqual(body["database"]["items"], 1)

            page = client.get("/")
            self.assertEqual(page.status_code, 200)
            self.assertIn("Upload JSON Items", page.text)


class TestItemsAPIReplacePolicy(unittest.TestCase):
    """Conflict policy `replace` overwrites on re-upload."""

    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self._env = mock.patch.dict(
            os.environ,
            {"DATABASE_PATH": os.path.join(self._tmpdir.name, "replace.db"), "ITEM_CONFLICT_POLICY": "replace"},
        )
        self._env.start()

    def tearDown(self) -> None:
        self._env.stop()
        self._tmpdir.cleanup()

    def test_reupload_overwrites(self) -> None:
        with TestClient(create_app()) as client:
            client.post("/api/items", files=[_file("v1.json", make_item("a", name="Original"))])
            r = client.post("/api/items", files=[_file("v2.json", make_item("a", name="Renamed"))])
            self.assertEqual(r.json()["report"]["replaced"], 1)
            self.assertEqual(client.get("/api/items").json()[0]["name"], "Renamed")


class TestUploadLimits(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self._env = mock.patch.dict(
            os.environ,
            {"DATABASE_PATH": os.path.join(self._tmpdir.name, "limits.db"), "MAX_UPLOAD_FILES": "1"},
        )
        self._env.start()

    def tearDown(self) -> None:
        self._env.stop()
        self._tmpdir.cleanup()

    def test_too_many_files(self) -> None:
        with TestClient(create_app()) as client:
            r = client.post("/api/items", files=[_file("a.json", make_item("a")), _file("b.json", make_item("b"))])
            self.assertEqual(r.status_code, 500)
            self.assertEqual(r.json(), {"error": "Error parsing the files"})


if __name__ == "__main__":
    unittest.main()
