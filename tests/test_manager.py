import os
import tempfile
import unittest
from datetime import datetime, timezone
from typing import Any, Optional

from gdrivewrap.errors import (
    GDriveWrapError,
    InvalidInputError,
    NotFoundError,
    PermissionError,
)
from gdrivewrap.manager import GoogleDriveManager
from gdrivewrap.models import BatchItemResult, entity_from_api
from gdrivewrap.resolver import IdentifierCache
from gdrivewrap.util.mime import FOLDER_MIME

DOC_MIME = "application/vnd.google-apps.document"


class FakeController:
    """In-memory Drive with the GoogleDriveController interface."""

    def __init__(self) -> None:
        self.items: dict[str, dict[str, Any]] = {}
        self.contents: dict[str, bytes] = {}
        self.permissions: list[dict[str, Any]] = []
        self.calls: list[tuple] = []
        self.timeouts: list[Optional[float]] = []
        self.fail_names: set[str] = set()
        self._counter = 0

    # helpers for tests
    def add(self, name: str, parent_id: str = "root", mime_type: str = "text/plain", content: bytes = b"") -> str:
        self._counter += 1
        prefix = "D" if mime_type == FOLDER_MIME else "F"
        file_id = f"{prefix}{self._counter}"
        self.items[file_id] = {
            "id": file_id,
            "name": name,
            "mimeType": mime_type,
            "parents": [parent_id],
            "modifiedTime": "2025-01-01T00:00:00Z",
        }
        if mime_type != FOLDER_MIME:
            self.items[file_id]["size"] = str(len(content))
            self.contents[file_id] = content
        return file_id

    def names_under(self, parent_id: str) -> list[str]:
        return [i["name"] for i in self.items.values() if parent_id in i["parents"]]

    def _entity(self, file_id: str):
        if file_id not in self.items:
            raise NotFoundError("File not found", details={"status_code": 404})
        return entity_from_api(dict(self.items[file_id]))

    def _matching(self, pred, limit: Optional[int]) -> list:
        found = [entity_from_api(dict(i)) for i in self.items.values() if pred(i)]
        return found[:limit] if limit is not None else found

    # controller interface
    def get(self, file_id, *, timeout=None):
        return self._entity(file_id)

    def get_content(self, file_id, *, timeout=None) -> bytes:
        self.calls.append(("get_content", file_id))
        self._entity(file_id)
        return self.contents[file_id]

    def download_file(self, file_id, local_path, *, overwrite=False, timeout=None) -> None:
        self._entity(file_id)
        with open(local_path, "wb") as f:
            f.write(self.contents[file_id])

    def find_by_name(self, name, *, parent_id=None, folders_only=False, limit=None, timeout=None):
        self.calls.append(("find_by_name", name, parent_id))
        return self._matching(
            lambda i: i["name"] == name
            and (parent_id is None or parent_id in i["parents"])
            and (i["mimeType"] == FOLDER_MIME or not folders_only),
            limit,
        )

    def list_children(self, parent_id, *, kind=None, limit=None, timeout=None):
        self.calls.append(("list_children", parent_id, kind))

        def pred(i):
            if parent_id not in i["parents"]:
                return False
            if kind == "folder":
                return i["mimeType"] == FOLDER_MIME
            if kind == "file":
                return i["mimeType"] != FOLDER_MIME
            return True

        return self._matching(pred, limit)

    def search(self, substring, *, limit=None, timeout=None):
        return self._matching(lambda i: substring in i["name"], limit)

    def create_file(self, name, content, *, parent_id=None, mime_type=None, timeout=None):
        self.calls.append(("create_file", name, parent_id))
        self.timeouts.append(timeout)
        if name in self.fail_names:
            raise PermissionError("Forbidden", details={"status_code": 403})
        file_id = self.add(name, parent_id or "root", mime_type or "application/octet-stream", content)
        return self._entity(file_id)

    def upload_file(self, local_path, parent_id=None, *, name=None, mime_type=None, timeout=None):
        with open(local_path, "rb") as f:
            content = f.read()
        return self.create_file(name, content, parent_id=parent_id, mime_type=mime_type)

    def create_folder(self, name, parent_id=None, *, timeout=None):
        self.calls.append(("create_folder", name, parent_id))
        return self._entity(self.add(name, parent_id or "root", FOLDER_MIME))

    def rename(self, file_id, new_name, *, timeout=None):
        self.calls.append(("rename", file_id, new_name))
        self._entity(file_id)
        self.items[file_id]["name"] = new_name
        return self._entity(file_id)

    def move(self, file_id, new_parent_id, *, timeout=None):
        self.calls.append(("move", file_id, new_parent_id))
        self._entity(file_id)
        self.items[file_id]["parents"] = [new_parent_id]
        return self._entity(file_id)

    def copy(self, file_id, new_parent_id=None, *, new_name=None, timeout=None):
        source = self._entity(file_id)
        parent = new_parent_id or source.parents[0]
        new_id = self.add(new_name or source.name, parent, source.mime_type, self.contents[file_id])
        return self._entity(new_id)

    def delete(self, file_id, *, timeout=None) -> None:
        self.calls.append(("delete", file_id))
        self._entity(file_id)
        del self.items[file_id]
        self.contents.pop(file_id, None)

    def create_permission(self, file_id, *, role, type, email_address=None, timeout=None):
        self._entity(file_id)
        perm = {"file_id": file_id, "role": role, "type": type, "email": email_address}
        self.permissions.append(perm)
        return perm


class ManagerTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.controller = FakeController()
        self.drive = GoogleDriveManager.from_controller(self.controller)


class TestConstruction(ManagerTestCase):
    def test_from_controller_exposes_parts(self) -> None:
        self.assertIs(self.drive.controller, self.controller)
        self.assertEqual(self.drive.resolver.root_id, "root")
        self.assertIs(self.drive.cache, self.drive.resolver.cache)

    def test_injected_cache_is_used(self) -> None:
        cache = IdentifierCache()
        drive = GoogleDriveManager.from_controller(self.controller, cache=cache)
        drive.put("a.txt", b"x")
        self.assertIn("a.txt", cache)


class TestUploadDownload(ManagerTestCase):
    def test_put_then_get_round_trip(self) -> None:
        file_id = self.drive.put("hello.txt", "hello")

        self.assertTrue(file_id.startswith("F"))
        self.assertEqual(self.drive.get("hello.txt"), b"hello")
        self.assertEqual(self.controller.items[file_id]["mimeType"], "text/plain")

    def test_put_path_creates_folders_in_order(self) -> None:
        self.drive.put("a/b/c.txt", b"hello")

        mutations = [c for c in self.controller.calls if c[0] in ("create_folder", "create_file")]
        self.assertEqual(mutations[0], ("create_folder", "a", "root"))
        self.assertEqual(mutations[1][:2], ("create_folder", "b"))
        self.assertEqual(mutations[2][:2], ("create_file", "c.txt"))
        a_id = [k for k, v in self.controller.items.items() if v["name"] == "a"][0]
        b_id = [k for k, v in self.controller.items.items() if v["name"] == "b"][0]
        self.assertEqual(mutations[1][2], a_id)
        self.assertEqual(mutations[2][2], b_id)

        self.assertEqual(self.drive.get("a/b/c.txt"), b"hello")
        self.assertEqual(self.drive.get("c.txt"), b"hello")

        # Same answers without the cache.
        self.drive.clear_cache()
        self.assertEqual(self.drive.get("a/b/c.txt"), b"hello")
        self.assertEqual(self.drive.get("c.txt"), b"hello")

    def test_put_path_reuses_existing_folders(self) -> None:
        self.drive.put("a/one.txt", b"1")
        self.drive.clear_cache()
        self.drive.put("a/two.txt", b"2")

        created = [c for c in self.controller.calls if c[0] == "create_folder"]
        self.assertEqual(len(created), 1)

    def test_put_sanitizes_name(self) -> None:
        file_id = self.drive.put('we:ird"name.txt', b"x")

        self.assertEqual(self.controller.items[file_id]["name"], "we_ird_name.txt")
        self.drive.clear_cache()
        self.assertEqual(self.drive.get('we:ird"name.txt'), b"x")

    def test_sanitized_path_reads_back_without_cache(self) -> None:
        self.drive.put("a/b?/c.txt", b"hello")
        self.drive.put("docs/we:ird.txt", b"w")
        self.assertIn("b_", [i["name"] for i in self.controller.items.values()])

        self.drive.clear_cache()

        self.assertEqual(self.drive.get("a/b?/c.txt"), b"hello")
        self.assertEqual(self.drive.get("docs/we:ird.txt"), b"w")

        self.drive.clear_cache()
        self.assertTrue(self.drive.exists("a/b?/c.txt"))

        self.drive.clear_cache()
        self.assertTrue(self.drive.delete("docs/we:ird.txt"))
        self.assertFalse(self.drive.exists("docs/we:ird.txt"))

    def test_lookups_reject_invalid_names(self) -> None:
        for name in ("", "   ", None, 5):
            with self.subTest(name=name):
                with self.assertRaises(InvalidInputError):
                    self.drive.get(name)  # type: ignore[arg-type]
                with self.assertRaises(InvalidInputError):
                    self.drive.exists(name)  # type: ignore[arg-type]
                with self.assertRaises(InvalidInputError):
                    self.drive.delete(name)  # type: ignore[arg-type]
                with self.assertRaises(InvalidInputError):
                    self.drive.get_file_info(name)  # type: ignore[arg-type]
                with self.assertRaises(InvalidInputError):
                    self.drive.download_to_file(name, "out.txt")  # type: ignore[arg-type]

        self.assertEqual(self.controller.calls, [])

    def test_put_into_folder_id(self) -> None:
        folder_id = self.controller.add("target", mime_type=FOLDER_MIME)

        file_id = self.drive.put("n.txt", b"", folder_id)

        self.assertEqual(self.controller.items[file_id]["parents"], [folder_id])
        self.assertEqual(self.drive.get("n.txt"), b"")

    def test_put_rejects_bad_input(self) -> None:
        with self.assertRaises(InvalidInputError):
            self.drive.put("", b"x")
        with self.assertRaises(InvalidInputError):
            self.drive.put("x.txt", 123)  # type: ignore[arg-type]
        self.assertEqual(self.controller.calls, [])

    def test_put_forwards_timeout(self) -> None:
        self.drive.put("t.txt", b"x", timeout=3.0)
        self.assertEqual(self.controller.timeouts, [3.0])

    def test_put_failure_carries_operation_and_target(self) -> None:
        self.controller.fail_names.add("bad.txt")

        with self.assertRaises(PermissionError) as ctx:
            self.drive.put("bad.txt", b"x")

        err = ctx.exception
        self.assertEqual(err.operation, "upload")
        self.assertEqual(err.target, "bad.txt")
        self.assertEqual(str(err), "Failed to upload bad.txt: Forbidden")

    def test_put_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "local.txt")
            with open(path, "wb") as f:
                f.write(b"from disk")

            file_id = self.drive.put_file(path, "docs/remote.txt")

        self.assertEqual(self.controller.items[file_id]["name"], "remote.txt")
        self.assertEqual(self.drive.get("docs/remote.txt"), b"from disk")

    def test_put_file_missing_local_file(self) -> None:
        with self.assertRaises(InvalidInputError):
            self.drive.put_file("/definitely/not/here.txt")

    def test_get_missing_returns_none(self) -> None:
        self.assertIsNone(self.drive.get("missing.txt"))
        self.assertIsNone(self.drive.get("no/such/path.txt"))

    def test_get_google_doc_is_rejected(self) -> None:
        self.controller.add("Notes", mime_type=DOC_MIME)

        with self.assertRaises(InvalidInputError) as ctx:
            self.drive.get("Notes")
        self.assertEqual(ctx.exception.operation, "download")

    def test_get_by_id(self) -> None:
        file_id = self.drive.put("a.txt", b"abc")
        self.assertEqual(self.drive.get_by_id(file_id), b"abc")
        self.assertIsNone(self.drive.get_by_id("F999"))

    def test_download_to_file(self) -> None:
        self.drive.put("a.txt", b"abc")
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "out.txt")
            self.assertTrue(self.drive.download_to_file("a.txt", path))
            with open(path, "rb") as f:
                self.assertEqual(f.read(), b"abc")
            self.assertFalse(self.drive.download_to_file("zzz.txt", path))


class TestDeleteAndCache(ManagerTestCase):
    def test_delete_then_exists_is_false(self) -> None:
        self.drive.put("x.txt", b"x")
        self.assertTrue(self.drive.exists("x.txt"))

        self.assertTrue(self.drive.delete("x.txt"))

        self.assertNotIn("x.txt", self.drive.cache)
        self.assertFalse(self.drive.exists("x.txt"))
        self.assertIsNone(self.drive.get("x.txt"))

    def test_delete_missing_returns_false(self) -> None:
        self.assertFalse(self.drive.delete("nothing.txt"))

    def test_delete_with_stale_cache_entry(self) -> None:
        file_id = self.drive.put("s.txt", b"x")
        # Deleted behind the manager's back.
        self.controller.delete(file_id)

        self.assertFalse(self.drive.delete("s.txt"))
        self.assertNotIn("s.txt", self.drive.cache)

    def test_delete_dir_clears_cached_descendants(self) -> None:
        self.drive.put("d/inner.txt", b"x")
        self.assertIn("/d/inner.txt", self.drive.cache)

        self.assertTrue(self.drive.delete_dir("d"))

        self.assertEqual(len(self.drive.cache), 0)

    def test_delete_by_id(self) -> None:
        file_id = self.drive.put("x.txt", b"x")
        self.assertTrue(self.drive.delete_by_id(file_id))
        self.assertEqual(len(self.drive.cache), 0)

        with self.assertRaises(NotFoundError) as ctx:
            self.drive.delete_by_id(file_id)
        self.assertEqual(ctx.exception.operation, "delete")


class TestCopyMoveRename(ManagerTestCase):
    def test_rename(self) -> None:
        self.drive.put("old.txt", b"x")

        self.assertTrue(self.drive.rename("old.txt", "new.txt"))

        self.assertFalse(self.drive.exists("old.txt"))
        self.assertTrue(self.drive.exists("new.txt"))

    def test_rename_missing_raises(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self.drive.rename("old.txt", "new.txt")
        self.assertEqual(ctx.exception.operation, "rename")
        self.assertEqual(ctx.exception.target, "old.txt")

    def test_rename_sanitizes_new_name(self) -> None:
        file_id = self.drive.put("old.txt", b"x")
        self.drive.rename("old.txt", "a/b.txt")
        self.assertEqual(self.controller.items[file_id]["name"], "a_b.txt")

    def test_copy_keeps_parent_for_bare_name(self) -> None:
        folder_id = self.controller.add("docs", mime_type=FOLDER_MIME)
        self.drive.put("src.txt", b"data", folder_id)

        new_id = self.drive.copy("src.txt", "dst.txt")

        self.assertEqual(self.controller.items[new_id]["parents"], [folder_id])
        self.assertEqual(self.drive.get("dst.txt"), b"data")

    def test_copy_to_path(self) -> None:
        self.drive.put("src.txt", b"data")

        self.drive.copy("src.txt", "backup/dst.txt")

        self.assertEqual(self.drive.get("backup/dst.txt"), b"data")

    def test_copy_missing_source(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self.drive.copy("nope.txt", "dst.txt")
        self.assertEqual(ctx.exception.operation, "copy")

    def test_move(self) -> None:
        self.drive.put("m.txt", b"x")
        target = self.drive.make_dir("target")

        self.assertTrue(self.drive.move("m.txt", target))

        self.assertEqual(self.drive.get_file_info("m.txt")["parents"], [target])

    def test_move_missing_raises(self) -> None:
        with self.assertRaises(NotFoundError):
            self.drive.move("m.txt", "D1")

    def test_move_to_path_renames_and_reparents(self) -> None:
        self.drive.put("m.txt", b"x")
        archive = self.drive.make_dir("archive")

        file_id = self.drive.move_to("m.txt", "archive/renamed.txt")

        self.assertEqual(self.controller.items[file_id]["parents"], [archive])
        self.assertEqual(self.controller.items[file_id]["name"], "renamed.txt")
        self.assertFalse(self.drive.exists("m.txt"))
        self.assertEqual(self.drive.get("archive/renamed.txt"), b"x")

        self.drive.clear_cache()
        self.assertEqual(self.drive.get("archive/renamed.txt"), b"x")

    def test_move_to_creates_missing_parent(self) -> None:
        file_id = self.drive.put("m.txt", b"x")

        self.drive.move_to("m.txt", "new/deeper/m.txt")

        created = [c[1] for c in self.controller.calls if c[0] == "create_folder"]
        self.assertEqual(created, ["new", "deeper"])
        self.assertFalse(any(c[0] == "rename" for c in self.controller.calls))
        deeper = self.controller.items[file_id]["parents"][0]
        self.assertEqual(self.controller.items[deeper]["name"], "deeper")
        self.assertEqual(self.drive.get("new/deeper/m.txt"), b"x")

    def test_move_to_missing_source_creates_nothing(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self.drive.move_to("nope.txt", "x/y.txt")

        self.assertEqual(ctx.exception.operation, "move")
        self.assertFalse(any(c[0] == "create_folder" for c in self.controller.calls))


class TestInfo(ManagerTestCase):
    def test_get_file_info(self) -> None:
        self.drive.put("docs/report.pdf", b"12345")

        info = self.drive.get_file_info("docs/report.pdf")

        self.assertEqual(info["name"], "report.pdf")
        self.assertEqual(info["path"], "docs/report.pdf")
        self.assertEqual(info["size"], 5)
        self.assertEqual(info["mime_type"], "application/pdf")
        self.assertEqual(info["extension"], "pdf")
        self.assertFalse(info["is_folder"])
        self.assertIsNone(self.drive.get_file_info("nope"))

    def test_size_and_last_modified(self) -> None:
        self.drive.put("a.txt", b"abc")

        self.assertEqual(self.drive.size("a.txt"), 3)
        self.assertEqual(
            self.drive.last_modified("a.txt"),
            datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        with self.assertRaises(NotFoundError):
            self.drive.size("nope.txt")


class TestListing(ManagerTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.docs = self.controller.add("docs", mime_type=FOLDER_MIME)
        self.controller.add("a.txt", self.docs)
        self.sub = self.controller.add("sub", self.docs, FOLDER_MIME)
        self.controller.add("b.txt", self.sub)
        self.controller.add("top.txt")

    def test_list_contents_of_root(self) -> None:
        names = [r["name"] for r in self.drive.list_contents()]
        self.assertEqual(names, ["docs", "top.txt"])

    def test_list_contents_of_directory_sets_paths(self) -> None:
        records = self.drive.list_contents(directory="docs")

        self.assertEqual([r["path"] for r in records], ["docs/a.txt", "docs/sub"])

    def test_list_contents_kind_and_limit(self) -> None:
        self.assertEqual([r["name"] for r in self.drive.files(self.docs)], ["a.txt"])
        self.assertEqual([r["name"] for r in self.drive.folders(self.docs)], ["sub"])
        self.assertEqual(len(self.drive.list_contents(self.docs, limit=1)), 1)

    def test_list_contents_bad_kind(self) -> None:
        with self.assertRaises(InvalidInputError):
            self.drive.list_contents(kind="shortcut")

    def test_list_contents_missing_directory(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self.drive.list_contents(directory="nope")
        self.assertEqual(ctx.exception.operation, "list")

    def test_list_all(self) -> None:
        flat = self.drive.list_all(self.docs)
        self.assertEqual([r["path"] for r in flat], ["a.txt", "sub"])

        deep = self.drive.list_all(self.docs, recursive=True)
        self.assertEqual([r["path"] for r in deep], ["a.txt", "sub", "sub/b.txt"])

    def test_search_keeps_service_order(self) -> None:
        drive = GoogleDriveManager.from_controller(FakeController())
        for name in ("invoice_jan.txt", "invoice_feb.txt", "report.txt"):
            drive.put(name, b"x")

        names = [r["name"] for r in drive.search("invoice")]

        self.assertEqual(names, ["invoice_jan.txt", "invoice_feb.txt"])

    def test_search_rejects_empty(self) -> None:
        with self.assertRaises(InvalidInputError):
            self.drive.search("")


class TestFolders(ManagerTestCase):
    def test_make_dir_twice_creates_two_folders(self) -> None:
        first = self.drive.make_dir("X")
        second = self.drive.make_dir("X")

        self.assertNotEqual(first, second)
        self.assertEqual(self.controller.names_under("root"), ["X", "X"])

    def test_make_dir_path(self) -> None:
        folder_id = self.drive.make_dir("p/q")

        self.assertEqual(self.controller.items[folder_id]["name"], "q")
        self.assertEqual(self.drive.find_folder_id("p/q"), folder_id)

    def test_ensure_dir_is_find_or_create(self) -> None:
        first = self.drive.ensure_dir("p/q")
        self.drive.clear_cache()
        second = self.drive.ensure_dir("p/q")

        self.assertEqual(first, second)
        self.assertEqual(len([c for c in self.controller.calls if c[0] == "create_folder"]), 2)

    def test_find_folder_id_ignores_files(self) -> None:
        self.controller.add("same")
        folder_id = self.controller.add("same", mime_type=FOLDER_MIME)

        self.assertEqual(self.drive.find_folder_id("same"), folder_id)
        self.assertIsNone(self.drive.find_folder_id("other"))


class TestSharing(ManagerTestCase):
    def test_share_with_email(self) -> None:
        file_id = self.drive.put("a.txt", b"x")

        self.assertTrue(self.drive.share_with_email("a.txt", "bob@example.com", "writer"))

        self.assertEqual(
            self.controller.permissions,
            [{"file_id": file_id, "role": "writer", "type": "user", "email": "bob@example.com"}],
        )

    def test_share_rejects_unknown_role_and_principal(self) -> None:
        self.drive.put("a.txt", b"x")
        with self.assertRaises(InvalidInputError):
            self.drive.share_with_email("a.txt", "bob@example.com", "admin")
        with self.assertRaises(InvalidInputError):
            self.drive.share("a.txt", "bob")
        for principal in (None, 42):
            with self.assertRaises(InvalidInputError):
                self.drive.share("a.txt", principal)  # type: ignore[arg-type]
        self.assertEqual(self.controller.permissions, [])

    def test_share_missing_file(self) -> None:
        with self.assertRaises(NotFoundError):
            self.drive.share_with_email("nope.txt", "bob@example.com")

    def test_make_public_returns_link(self) -> None:
        file_id = self.drive.put("a.txt", b"x")

        link = self.drive.make_public("a.txt")

        self.assertEqual(link, f"https://drive.google.com/file/d/{file_id}/view")
        self.assertEqual(self.controller.permissions[0]["type"], "anyone")
        self.assertIsNone(self.drive.get_shareable_link("nope.txt"))


class TestBatch(ManagerTestCase):
    def test_put_multiple_continues_after_failure(self) -> None:
        self.controller.fail_names.add("bad.txt")

        results = self.drive.put_multiple({"a.txt": b"1", "bad.txt": b"2", "c.txt": b"3"})

        self.assertEqual([r.name for r in results], ["a.txt", "bad.txt", "c.txt"])
        self.assertEqual([r.success for r in results], [True, False, True])
        self.assertEqual(results[1].error_type, "PermissionError")
        self.assertIn("bad.txt", results[1].error)
        self.assertTrue(self.drive.exists("c.txt"))

    def test_put_multiple_invalid_content_is_an_item_failure(self) -> None:
        results = self.drive.put_multiple({"a.txt": 5, "b.txt": b"ok"})  # type: ignore[dict-item]

        self.assertEqual(results[0].error_type, "InvalidInputError")
        self.assertTrue(results[1].success)

    def test_delete_multiple(self) -> None:
        self.drive.put("a.txt", b"1")
        self.drive.put("b.txt", b"2")

        results = self.drive.delete_multiple(["a.txt", "missing.txt", "b.txt"])

        self.assertEqual(len(results), 3)
        self.assertEqual([r.success for r in results], [True, False, True])
        self.assertEqual(results[1].error_type, "NotFoundError")
        self.assertIsInstance(results[0], BatchItemResult)

    def test_delete_multiple_records_invalid_items(self) -> None:
        self.drive.put("a.txt", b"1")

        results = self.drive.delete_multiple([None, "a.txt"])  # type: ignore[list-item]

        self.assertEqual([r.success for r in results], [False, True])
        self.assertEqual(results[0].name, "None")
        self.assertEqual(results[0].error_type, "InvalidInputError")
        self.assertFalse(self.drive.exists("a.txt"))

    def test_backup_folder(self) -> None:
        folder = self.controller.add("src", mime_type=FOLDER_MIME)
        self.controller.add("r.txt", folder, content=b"one")
        self.controller.add("r.txt", folder, content=b"two")
        self.controller.add("bad:name.txt", folder, content=b"three")
        self.controller.add("Notes", folder, DOC_MIME)
        self.controller.add("nested", folder, FOLDER_MIME)

        with tempfile.TemporaryDirectory() as tmp:
            dest = os.path.join(tmp, "backup")
            results = self.drive.backup_folder(folder, dest)

            self.assertEqual(len(results), 4)
            ok = [r for r in results if r.success]
            self.assertEqual(
                [os.path.basename(r.local_path) for r in ok],
                ["r.txt", "r_1.txt", "bad_name.txt"],
            )
            with open(os.path.join(dest, "r_1.txt"), "rb") as f:
                self.assertEqual(f.read(), b"two")

        failed = [r for r in results if not r.success]
        self.assertEqual(failed[0].name, "Notes")
        self.assertEqual(failed[0].error_type, "InvalidInputError")
        self.assertIsNotNone(failed[0].file_id)

    def test_backup_listing_failure_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            def boom(*args, **kwargs):
                raise PermissionError("Forbidden")

            self.controller.list_children = boom  # type: ignore[method-assign]
            with self.assertRaises(GDriveWrapError) as ctx:
                self.drive.backup_folder("D1", tmp)
        self.assertEqual(ctx.exception.operation, "back up")


if __name__ == "__main__":
    unittest.main()
