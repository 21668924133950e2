"""Static and CMS file storage for merchant stores.

:class:`StaticContentFileManager` is a thin facade: every call is delegated to
one of six single-purpose strategies (put/get/remove for files, put/remove/list
for folders). :class:`LocalContentStore` implements all six on the local
filesystem using the layout ``<root>/<store>/<type folder>/<path>/<file>``.
"""
from __future__ import annotations

import enum
import logging
import mimetypes
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence

from .errors import ServiceError

logger = logging.getLogger("salesmanager.filemanager")


class ContentError(ServiceError):
    """Raised when a content file or folder operation is rejected."""


class FileContentType(str, enum.Enum):
    STATIC_FILE = "STATIC_FILE"
    IMAGE = "IMAGE"
    LOGO = "LOGO"
    PRODUCT = "PRODUCT"
    PRODUCTLG = "PRODUCTLG"
    PROPERTY = "PROPERTY"
    VARIANT = "VARIANT"
    MANUFACTURER = "MANUFACTURER"
    PRODUCT_DIGITAL = "PRODUCT_DIGITAL"

    @property
    def folder(self) -> str:
        return self.value.lower()


@dataclass(frozen=True)
class InputContentFile:
    file_name: str
    data: bytes
    file_content_type: FileContentType = FileContentType.STATIC_FILE
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class OutputContentFile:
    file_name: str
    data: bytes
    file_content_type: FileContentType
    mime_type: str


class FilePut(Protocol):
    def add_file(self, store_code: str, path: Optional[str], content: InputContentFile) -> None: ...

    def add_files(self, store_code: str, path: Optional[str], contents: Sequence[InputContentFile]) -> None: ...


class FileGet(Protocol):
    def get_file(
        self, store_code: str, path: Optional[str], file_type: FileContentType, name: str
    ) -> Optional[OutputContentFile]: ...

    def get_files(self, store_code: str, path: Optional[str], file_type: FileContentType) -> List[OutputContentFile]: ...

    def get_file_names(self, store_code: str, path: Optional[str], file_type: FileContentType) -> List[str]: ...


class FileRemove(Protocol):
    def remove_file(self, store_code: str, file_type: FileContentType, name: str, path: Optional[str]) -> None: ...

    def remove_files(self, store_code: str, path: Optional[str]) -> None: ...


class FolderPut(Protocol):
    def add_folder(self, store_code: str, folder_name: str, path: Optional[str]) -> None: ...


class FolderRemove(Protocol):
    def remove_folder(self, store_code: str, folder_name: str, path: Optional[str]) -> None: ...


class FolderList(Protocol):
    def list_folders(self, store_code: str, path: Optional[str]) -> List[str]: ...


class StaticContentFileManager:
    """Facade over the file and folder strategies used for store content."""

    def __init__(
        self,
        *,
        file_put: FilePut,
        file_get: FileGet,
        file_remove: FileRemove,
        folder_put: FolderPut,
        folder_remove: FolderRemove,
        folder_list: FolderList,
    ) -> None:
        self._file_put = file_put
        self._file_get = file_get
        self._file_remove = file_remove
        self._folder_put = folder_put
        self._folder_remove = folder_remove
        self._folder_list = folder_list

    @classmethod
    def local(cls, root: Path) -> "StaticContentFileManager":
        store = LocalContentStore(root)
        return cls(
            file_put=store,
            file_get=store,
            file_remove=store,
            folder_put=store,
            folder_remove=store,
            folder_list=store,
        )

    def add_file(self, store_code: str, content: InputContentFile, path: Optional[str] = None) -> None:
        self._file_put.add_file(store_code, path, content)

    def add_files(self, store_code: str, contents: Sequence[InputContentFile], path: Optional[str] = None) -> None:
        self._file_put.add_files(store_code, path, contents)

    def get_file(
        self, store_code: str, file_type: FileContentType, name: str, path: Optional[str] = None
    ) -> Optional[OutputContentFile]:
        return self._file_get.get_file(store_code, path, file_type, name)

    def get_files(self, store_code: str, file_type: FileContentType, path: Optional[str] = None) -> List[OutputContentFile]:
        return self._file_get.get_files(store_code, path, file_type)

    def get_file_names(self, store_code: str, file_type: FileContentType, path: Optional[str] = None) -> List[str]:
        return self._file_get.get_file_names(store_code, path, file_type)

    def remove_file(self, store_code: str, file_type: FileContentType, name: str, path: Optional[str] = None) -> None:
        self._file_remove.remove_file(store_code, file_type, name, path)

    def remove_files(self, store_code: str, path: Optional[str] = None) -> None:
        self._file_remove.remove_files(store_code, path)

    def add_folder(self, store_code: str, folder_name: str, path: Optional[str] = None) -> None:
        self._folder_put.add_folder(store_code, folder_name, path)

    def remove_folder(self, store_code: str, folder_name: str, path: Optional[str] = None) -> None:
        self._folder_remove.remove_folder(store_code, folder_name, path)

    def list_folders(self, store_code: str, path: Optional[str] = None) -> List[str]:
        return self._folder_list.list_folders(store_code, path)


def _clean_segment(segment: str, *, label: str) -> str:
    cleaned = segment.strip()
    if not cleaned:
        raise ContentError(f"{label} must not be empty")
    if cleaned in {".", ".."} or "/" in cleaned or "\\" in cleaned or "\x00" in cleaned:
        raise ContentError(f"Invalid {label.lower()} '{segment}'")
    return cleaned


def validate_file_name(name: str) -> str:
    """Return the cleaned file name, raising ``ContentError`` when it is unsafe."""
    return _clean_segment(name, label="File name")


def split_path(path: Optional[str]) -> List[str]:
    if path is None:
        return []
    # Paths are always relative to the store tree; a leading slash is ignored.
    stripped = path.strip().strip("/")
    return [_clean_segment(part, label="Path segment") for part in stripped.split("/") if part]


class LocalContentStore:
    """Filesystem implementation of every content strategy."""

    def __init__(self, root: Path) -> None:
        self._root = root.expanduser().resolve(strict=False)

    @property
    def root(self) -> Path:
        return self._root

    def _store_dir(self, store_code: str) -> Path:
        return self._root / _clean_segment(store_code, label="Store code")

    def _type_dir(self, store_code: str, file_type: FileContentType, path: Optional[str]) -> Path:
        directory = self._store_dir(store_code) / file_type.folder
        for segment in split_path(path):
            directory = directory / segment
        return directory

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------
    def add_file(self, store_code: str, path: Optional[str], content: InputContentFile) -> None:
        directory = self._type_dir(store_code, content.file_content_type, path)
        name = _clean_segment(content.file_name, label="File name")
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / name
        try:
            target.write_bytes(content.data)
        except OSError as exc:
            raise ContentError(f"Failed to store {name}: {exc}") from exc
        logger.info("Stored %s file %s for store %s", content.file_content_type.value, name, store_code)

    def add_files(self, store_code: str, path: Optional[str], contents: Sequence[InputContentFile]) -> None:
        for content in contents:
            self.add_file(store_code, path, content)

    def get_file(
        self, store_code: str, path: Optional[str], file_type: FileContentType, name: str
    ) -> Optional[OutputContentFile]:
        target = self._type_dir(store_code, file_type, path) / _clean_segment(name, label="File name")
        if not target.is_file():
            return None
        return self._read(target, file_type)

    def get_files(self, store_code: str, path: Optional[str], file_type: FileContentType) -> List[OutputContentFile]:
        directory = self._type_dir(store_code, file_type, path)
        return [self._read(item, file_type) for item in self._iter_files(directory)]

    def get_file_names(self, store_code: str, path: Optional[str], file_type: FileContentType) -> List[str]:
        directory = self._type_dir(store_code, file_type, path)
        return [item.name for item in self._iter_files(directory)]

    def remove_file(self, store_code: str, file_type: FileContentType, name: str, path: Optional[str]) -> None:
        target = self._type_dir(store_code, file_type, path) / _clean_segment(name, label="File name")
        if not target.is_file():
            raise ContentError(f"File '{name}' does not exist")
        target.unlink()
        logger.info("Removed %s file %s for store %s", file_type.value, name, store_code)

    def remove_files(self, store_code: str, path: Optional[str]) -> None:
        """Remove every stored file for a store, or only those below ``path``."""

        store_dir = self._store_dir(store_code)
        segments = split_path(path)
        if not segments:
            if store_dir.exists():
                shutil.rmtree(store_dir)
                logger.info("Removed all content files for store %s", store_code)
            return
        for file_type in FileContentType:
            directory = self._type_dir(store_code, file_type, path)
            if directory.is_dir():
                shutil.rmtree(directory)
        logger.info("Removed content files below %s for store %s", path, store_code)

    # ------------------------------------------------------------------
    # Folders (always within the static file tree)
    # ------------------------------------------------------------------
    def add_folder(self, store_code: str, folder_name: str, path: Optional[str]) -> None:
        parent = self._type_dir(store_code, FileContentType.STATIC_FILE, path)
        folder = parent / _clean_segment(folder_name, label="Folder name")
        if folder.exists():
            raise ContentError(f"Folder '{folder_name}' already exists")
        folder.mkdir(parents=True)
        logger.info("Created folder %s for store %s", folder_name, store_code)

    def remove_folder(self, store_code: str, folder_name: str, path: Optional[str]) -> None:
        parent = self._type_dir(store_code, FileContentType.STATIC_FILE, path)
        folder = parent / _clean_segment(folder_name, label="Folder name")
        if not folder.is_dir():
            raise ContentError(f"Folder '{folder_name}' does not exist")
        shutil.rmtree(folder)
        logger.info("Removed folder %s for store %s", folder_name, store_code)

    def list_folders(self, store_code: str, path: Optional[str]) -> List[str]:
        parent = self._type_dir(store_code, FileContentType.STATIC_FILE, path)
        if not parent.is_dir():
            return []
        return sorted(item.name for item in parent.iterdir() if item.is_dir())

    @staticmethod
    def _iter_files(directory: Path) -> Iterable[Path]:
        if not directory.is_dir():
            return []
        return sorted((item for item in directory.iterdir() if item.is_file()), key=lambda item: item.name)

    @staticmethod
    def _read(target: Path, file_type: FileContentType) -> OutputContentFile:
        mime_type, _ = mimetypes.guess_type(target.name)
        return OutputContentFile(
            file_name=target.name,
            data=target.read_bytes(),
            file_content_type=file_type,
            mime_type=mime_type or "application/octet-stream",
        )


__all__ = [
    "ContentError",
    "FileContentType",
    "FileGet",
    "FilePut",
    "FileRemove",
    "FolderList",
    "FolderPut",
    "FolderRemove",
    "InputContentFile",
    "LocalContentStore",
    "OutputContentFile",
    "StaticContentFileManager",
    "split_path",
    "validate_file_name",
]
