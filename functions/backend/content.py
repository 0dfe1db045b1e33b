"""
Editorial content (App Story and News posts) stored as JSON blobs.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from backend.documents import (
    delete_blobs,
    find_document,
    find_media,
    generate_item_id,
    load_documents,
    read_document,
    split_tags,
    utc_timestamp,
    write_document,
)
from backend.errors import CorruptDocumentError, InvalidItemError, ItemNotFoundError
from backend.schemas import CONTENT_TYPES, ContentCreate, ContentItem, ContentUpdate
from backend.storage import BlobInfo, BlobStore

logger = logging.getLogger(__name__)


def content_folder(content_type: str) -> str:
    if content_type not in CONTENT_TYPES:
        raise InvalidItemError(f"Unknown content type: {content_type}")
    return f"content-{content_type}"


def _normalize_tags(tags) -> list[str]:
    if isinstance(tags, str):
        return split_tags(tags)
    return [tag.strip() for tag in tags if tag and tag.strip()]


class ContentRepository:
    """CRUD over content documents, one folder per content type."""

    def __init__(self, store: BlobStore):
        self.store = store

    def _locate(self, item_id: str) -> tuple[str, BlobInfo, list[BlobInfo]]:
        """Find an item's content type, JSON blob and sibling blobs."""
        for content_type in CONTENT_TYPES:
            blobs = self.store.list(f"{content_folder(content_type)}/")
            document = find_document(blobs, item_id)
            if document is not None:
                return content_type, document, blobs
        raise ItemNotFoundError(item_id)

    def _read_item(self, content_type: str, pathname: str) -> ContentItem:
        document = read_document(self.store, pathname)
        # Documents saved without a type belong to the folder they sit in.
        document.setdefault("type", content_type)
        try:
            return ContentItem.model_validate(document)
        except ValidationError as exc:
            raise CorruptDocumentError(pathname) from exc

    def list_items(
        self, content_type: Optional[str] = None, include_unpublished: bool = False
    ) -> list[ContentItem]:
        types = [content_type] if content_type else list(CONTENT_TYPES)
        items = []
        for kind in types:
            for document in load_documents(self.store, f"{content_folder(kind)}/"):
                document.setdefault("type", kind)
                try:
                    item = ContentItem.model_validate(document)
                except ValidationError as exc:
                    logger.warning(
                        "Skipping invalid content document %s: %s",
                        document.get("id"),
                        exc,
                    )
                    continue
                if include_unpublished or item.is_published:
                    items.append(item)
        # Newest first; ISO timestamps sort lexically.
        items.sort(key=lambda item: item.publish_date or "", reverse=True)
        return items

    def get_item(self, item_id: str) -> ContentItem:
        content_type, document, _ = self._locate(item_id)
        return self._read_item(content_type, document.pathname)

    def create_item(self, payload: ContentCreate) -> tuple[ContentItem, BlobInfo]:
        if not (
            payload.title.strip() and payload.content.strip() and payload.author.strip()
        ):
            raise InvalidItemError("Missing required fields")

        item = ContentItem(
            id=generate_item_id(payload.type),
            title=payload.title,
            content=payload.content,
            author=payload.author,
            type=payload.type,
            tags=_normalize_tags(payload.tags),
            is_published=payload.is_published,
            publish_date=utc_timestamp(),
            image_url=payload.image_url,
        )
        pathname = f"{content_folder(item.type)}/{item.id}.json"
        blob = write_document(self.store, pathname, item.to_json_dict())
        logger.info("Created content item %s at %s", item.id, pathname)
        return item, blob

    def update_item(self, payload: ContentUpdate) -> tuple[ContentItem, BlobInfo]:
        content_type, document, blobs = self._locate(payload.id)
        current = self._read_item(content_type, document.pathname)

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        changes.pop("id", None)
        if "tags" in changes:
            changes["tags"] = _normalize_tags(changes["tags"])
        for key in ("title", "content", "author"):
            if key in changes and not changes[key].strip():
                raise InvalidItemError("Missing required fields")

        merged = current.model_copy(update=changes)
        merged = ContentItem.model_validate(merged.to_json_dict())
        folder = content_folder(merged.type)
        pathname = f"{folder}/{merged.id}.json"
        if document.pathname == pathname:
            blob = write_document(self.store, pathname, merged.to_json_dict())
            logger.info("Updated content item %s at %s", merged.id, pathname)
            return merged, blob

        # Type change: media follows the document into the new folder.
        media = find_media(blobs, merged.id)
        moved_urls = self._copy_media(media, folder)
        if merged.image_url in moved_urls:
            merged = merged.model_copy(
                update={"image_url": moved_urls[merged.image_url]}
            )
        blob = write_document(self.store, pathname, merged.to_json_dict())
        delete_blobs(self.store, [document, *media])
        logger.info(
            "Moved content item %s from %s to %s (%d media)",
            merged.id,
            content_folder(content_type),
            folder,
            len(media),
        )
        return merged, blob

    def _copy_media(self, media: list[BlobInfo], folder: str) -> dict[str, str]:
        """Copy ``media`` into ``folder``; returns new URLs keyed by old URL."""
        moved = {}
        for blob in media:
            name = blob.pathname.rsplit("/", 1)[-1]
            copy = self.store.put(
                f"{folder}/{name}",
                self.store.get_bytes(blob.pathname),
                content_type=blob.content_type,
            )
            moved[blob.url] = copy.url
        return moved

    def delete_item(self, item_id: str) -> list[str]:
        _, document, blobs = self._locate(item_id)
        deleted = delete_blobs(self.store, [document])
        deleted.extend(delete_blobs(self.store, find_media(blobs, item_id)))
        logger.info("Deleted content item %s (%d blobs)", item_id, len(deleted))
        return deleted
