from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from salesmanager.filemanager import (
    ContentError,
    FileContentType,
    InputContentFile,
    StaticContentFileManager,
)


@pytest.fixture()
def manager(tmp_path: Path) -> StaticContentFileManager:
    return StaticContentFileManager.local(tmp_path / "content")


def test_add_and_get_static_file(manager: StaticContentFileManager) -> None:
    manager.add_file("DEFAULT", InputContentFile(file_name="notes.txt", data=b"hello"))

    stored = manager.get_file("DEFAULT", FileContentType.STATIC_FILE, "notes.txt")
    assert stored is not None
    assert stored.data == b"hello"
    assert stored.mime_type == "text/plain"
    assert stored.file_content_type is FileContentType.STATIC_FILE


def test_missing_file_returns_none(manager: StaticContentFileManager) -> None:
    assert manager.get_file("DEFAULT", FileContentType.IMAGE, "missing.png") is None


def test_files_are_separated_by_type_and_path(tmp_path: Path, manager: StaticContentFileManager) -> None:
    manager.add_files(
        "DEFAULT",
        [
            InputContentFile(file_name="a.png", data=b"small", file_content_type=FileContentType.PRODUCT),
            InputContentFile(file_name="a.png", data=b"large", file_content_type=FileContentType.PRODUCTLG),
        ],
        path="SKU-1",
    )

    assert (tmp_path / "content" / "DEFAULT" / "product" / "SKU-1" / "a.png").read_bytes() == b"small"
    assert (tmp_path / "content" / "DEFAULT" / "productlg" / "SKU-1" / "a.png").read_bytes() == b"large"
    assert manager.get_file_names("DEFAULT", FileContentType.PRODUCT, path="SKU-1") == ["a.png"]
    assert manager.get_file_names("DEFAULT", FileContentType.PRODUCT) == []


def test_listing_is_sorted(manager: StaticContentFileManager) -> None:
    for name in ("b.css", "a.css", "c.css"):
        manager.add_file("DEFAULT", InputContentFile(file_name=name, data=b"x"))

    assert manager.get_file_names("DEFAULT", FileContentType.STATIC_FILE) == ["a.css", "b.css", "c.css"]
    assert [item.file_name for item in manager.get_files("DEFAULT", FileContentType.STATIC_FILE)] == [
        "a.css",
        "b.css",
        "c.css",
    ]


@pytest.mark.parametrize("name", ["../escape.txt", "..", "nested/file.txt", "  "])
def test_unsafe_file_names_are_rejected(manager: StaticContentFileManager, name: str) -> None:
    with pytest.raises(ContentError):
        manager.add_file("DEFAULT", InputContentFile(file_name=name, data=b"x"))


def test_unsafe_paths_are_rejected(manager: StaticContentFileManager) -> None:
    with pytest.raises(ContentError):
        manager.add_file("DEFAULT", InputContentFile(file_name="ok.txt", data=b"x"), path="assets/../../etc")


def test_remove_file(manager: StaticContentFileManager) -> None:
    manager.add_file("DEFAULT", InputContentFile(file_name="old.txt", data=b"x"))
    manager.remove_file("DEFAULT", FileContentType.STATIC_FILE, "old.txt")

    assert manager.get_file("DEFAULT", FileContentType.STATIC_FILE, "old.txt") is None
    with pytest.raises(ContentError):
        manager.remove_file("DEFAULT", FileContentType.STATIC_FILE, "old.txt")


def test_remove_files_clears_store(manager: StaticContentFileManager) -> None:
    manager.add_file("DEFAULT", InputContentFile(file_name="one.txt", data=b"x"))
    manager.add_file("OTHER", InputContentFile(file_name="two.txt", data=b"y"))

    manager.remove_files("DEFAULT")

    assert manager.get_file_names("DEFAULT", FileContentType.STATIC_FILE) == []
    assert manager.get_file_names("OTHER", FileContentType.STATIC_FILE) == ["two.txt"]


def test_folder_lifecycle(manager: StaticContentFileManager) -> None:
    manager.add_folder("DEFAULT", "banners")
    manager.add_folder("DEFAULT", "summer", path="banners")

    assert manager.list_folders("DEFAULT") == ["banners"]
    assert manager.list_folders("DEFAULT", path="banners") == ["summer"]

    with pytest.raises(ContentError):
        manager.add_folder("DEFAULT", "banners")

    manager.remove_folder("DEFAULT", "banners")
    assert manager.list_folders("DEFAULT") == []

    with pytest.raises(ContentError):
        manager.remove_folder("DEFAULT", "banners")


class _RecordingStrategy:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, tuple]] = []

    def add_file(self, store_code: str, path: Optional[str], content: InputContentFile) -> None:
        self.calls.append(("add_file", (store_code, path, content.file_name)))

    def add_files(self, store_code: str, path: Optional[str], contents) -> None:
        self.calls.append(("add_files", (store_code, path, len(contents))))

    def get_file(self, store_code, path, file_type, name):
        self.calls.append(("get_file", (store_code, path, file_type, name)))
        return None

    def get_files(self, store_code, path, file_type):
        self.calls.append(("get_files", (store_code, path, file_type)))
        return []

    def get_file_names(self, store_code, path, file_type):
        self.calls.append(("get_file_names", (store_code, path, file_type)))
        return ["x"]

    def remove_file(self, store_code, file_type, name, path):
        self.calls.append(("remove_file", (store_code, file_type, name, path)))

    def remove_files(self, store_code, path):
        self.calls.append(("remove_files", (store_code, path)))

    def add_folder(self, store_code, folder_name, path):
        self.calls.append(("add_folder", (store_code, folder_name, path)))

    def remove_folder(self, store_code, folder_name, path):
        self.calls.append(("remove_folder", (store_code, folder_name, path)))

    def list_folders(self, store_code, path):
        self.calls.append(("list_folders", (store_code, path)))
        return ["f"]


def test_manager_delegates_to_injected_strategies() -> None:
    strategy = _RecordingStrategy()
    manager = StaticContentFileManager(
        file_put=strategy,
        file_get=strategy,
        file_remove=strategy,
        folder_put=strategy,
        folder_remove=strategy,
        folder_list=strategy,
    )

    manager.add_file("S", InputContentFile(file_name="a", data=b""), path="p")
    assert manager.get_file_names("S", FileContentType.LOGO) == ["x"]
    manager.remove_file("S", FileContentType.LOGO, "a")
    assert manager.list_folders("S", path="p") == ["f"]

    assert strategy.calls == [
        ("add_file", ("S", "p", "a")),
        ("get_file_names", ("S", None, FileContentType.LOGO)),
        ("remove_file", ("S", FileContentType.LOGO, "a", None)),
        ("list_folders", ("S", "p")),
    ]
