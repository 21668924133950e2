"""Content facade: CMS pages, boxes, and the static file manager."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .catalog import localized
from .database import CONTENT_TYPES, Database
from .errors import NotFoundError, ServiceError
from .filemanager import FileContentType, InputContentFile, OutputContentFile, StaticContentFileManager
from .models import ContentEntity, Language, MerchantStore
from .paths import absolute_url, build_static_file_path

logger = logging.getLogger("salesmanager.content")

PAGE = "PAGE"
BOX = "BOX"


@dataclass(frozen=True)
class ContentView:
    """Content entity resolved to a single language."""

    code: str
    content_type: str
    language: str
    name: str
    title: Optional[str]
    body: Optional[str]
    seo_url: Optional[str]
    position: Optional[str]
    sort_order: int


@dataclass(frozen=True)
class ContentFileView:
    name: str
    file_type: FileContentType
    url: str


class ContentFacade:
    def __init__(self, database: Database, file_manager: StaticContentFileManager, *, public_base_url: str = "") -> None:
        self._database = database
        self._files = file_manager
        self._public_base_url = public_base_url

    # ------------------------------------------------------------------
    # Pages and boxes
    # ------------------------------------------------------------------
    def pages(self, store: MerchantStore, language: Language) -> List[ContentView]:
        return [self.view(store, item, language) for item in self._database.list_content(store.id, PAGE, visible_only=True)]

    def boxes(self, store: MerchantStore, language: Language, *, position: Optional[str] = None) -> List[ContentView]:
        entities = self._database.list_content(store.id, BOX, visible_only=True)
        if position is not None:
            entities = [item for item in entities if item.position == position]
        return [self.view(store, item, language) for item in entities]

    def get_content(
        self,
        store: MerchantStore,
        code: str,
        language: Language,
        *,
        content_type: Optional[str] = None,
    ) -> ContentView:
        entity = self._database.get_content(store.id, code, content_type)
        if entity is None or not entity.visible:
            raise NotFoundError(f"Content '{code}' not found")
        return self.view(store, entity, language)

    def save_content(
        self,
        store: MerchantStore,
        *,
        code: str,
        content_type: str,
        texts: Mapping[str, Mapping[str, Optional[str]]],
        position: Optional[str] = None,
        visible: bool = True,
        sort_order: int = 0,
    ) -> ContentEntity:
        unsupported = sorted(language for language in texts if not store.supports(language))
        if unsupported:
            raise ServiceError(f"Store {store.code} does not support language(s): {', '.join(unsupported)}")
        if content_type.upper() not in CONTENT_TYPES:
            raise ServiceError(f"Content type must be one of: {', '.join(CONTENT_TYPES)}")
        try:
            entity = self._database.save_content(
                store.id,
                code=code,
                content_type=content_type,
                texts=texts,
                position=position,
                visible=visible,
                sort_order=sort_order,
            )
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc
        logger.info("Saved %s content %s for store %s", entity.content_type, entity.code, store.code)
        return entity

    def delete_content(self, store: MerchantStore, code: str) -> None:
        if not self._database.delete_content(store.id, code):
            raise NotFoundError(f"Content '{code}' not found")
        logger.info("Deleted content %s from store %s", code, store.code)

    def view(self, store: MerchantStore, entity: ContentEntity, language: Language) -> ContentView:
        fallback = store.default_language
        resolved = language.code if language.code in entity.names else fallback.code
        return ContentView(
            code=entity.code,
            content_type=entity.content_type,
            language=resolved,
            name=localized(entity.names, language, fallback) or entity.code,
            title=localized(entity.titles, language, fallback),
            body=localized(entity.bodies, language, fallback),
            seo_url=localized(entity.seo_urls, language, fallback),
            position=entity.position,
            sort_order=entity.sort_order,
        )

    # ------------------------------------------------------------------
    # Static files
    # ------------------------------------------------------------------
    def upload_file(
        self,
        store: MerchantStore,
        *,
        file_name: str,
        data: bytes,
        file_type: FileContentType = FileContentType.STATIC_FILE,
        mime_type: Optional[str] = None,
        path: Optional[str] = None,
    ) -> ContentFileView:
        content = InputContentFile(file_name=file_name, data=data, file_content_type=file_type, mime_type=mime_type)
        self._files.add_file(store.code, content, path=path)
        return self._file_view(store, file_name, file_type, path)

    def list_files(
        self,
        store: MerchantStore,
        file_type: FileContentType = FileContentType.STATIC_FILE,
        *,
        path: Optional[str] = None,
    ) -> List[ContentFileView]:
        return [
            self._file_view(store, name, file_type, path)
            for name in self._files.get_file_names(store.code, file_type, path=path)
        ]

    def get_file(
        self,
        store_code: str,
        file_type: FileContentType,
        file_name: str,
        *,
        path: Optional[str] = None,
    ) -> OutputContentFile:
        content = self._files.get_file(store_code, file_type, file_name, path=path)
        if content is None:
            raise NotFoundError(f"File '{file_name}' not found")
        return content

    def remove_file(
        self,
        store: MerchantStore,
        file_type: FileContentType,
        file_name: str,
        *,
        path: Optional[str] = None,
    ) -> None:
        self._files.remove_file(store.code, file_type, file_name, path=path)

    def add_folder(self, store: MerchantStore, folder_name: str, *, path: Optional[str] = None) -> None:
        self._files.add_folder(store.code, folder_name, path=path)

    def remove_folder(self, store: MerchantStore, folder_name: str, *, path: Optional[str] = None) -> None:
        self._files.remove_folder(store.code, folder_name, path=path)

    def list_folders(self, store: MerchantStore, *, path: Optional[str] = None) -> List[str]:
        return self._files.list_folders(store.code, path=path)

    def _file_view(
        self, store: MerchantStore, file_name: str, file_type: FileContentType, path: Optional[str] = None
    ) -> ContentFileView:
        url = build_static_file_path(store.code, file_type, file_name, path)
        if self._public_base_url:
            url = absolute_url(self._public_base_url, url)
        return ContentFileView(name=file_name, file_type=file_type, url=url)


__all__ = ["BOX", "PAGE", "ContentFacade", "ContentFileView", "ContentView"]
