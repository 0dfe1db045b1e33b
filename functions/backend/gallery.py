"""
Gallery documents: app cards for the gallery, featured and events carousels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from backend.documents import (
    MediaFile,
    delete_blobs,
    file_extension,
    find_document,
    find_media,
    generate_item_id,
    load_documents,
    split_tags,
    utc_timestamp,
    write_document,
)
from backend.errors import InvalidItemError, ItemNotFoundError
from backend.schemas import GalleryItem
from backend.storage import BlobInfo, BlobStore

logger = logging.getLogger(__name__)

# gallery and normal share one folder
GALLERY_FOLDERS = {
    "gallery": "gallery-gallery",
    "normal": "gallery-gallery",
    "featured": "gallery-featured",
    "events": "gallery-events",
}

REVIEWABLE_STATUSES = ("in-review", "published")


def folder_for(item_type: str) -> str:
    try:
        return GALLERY_FOLDERS[item_type]
    except KeyError:
        raise InvalidItemError(f"Unknown gallery type: {item_type}") from None


def is_visible(document: dict, item_type: str) -> bool:
    """All-apps view also shows cards under review; carousels need isPublished."""
    published = bool(document.get("isPublished"))
    if item_type == "gallery":
        return published or document.get("status") in REVIEWABLE_STATUSES
    return published


@dataclass
class GalleryForm:
    """Fields of a multipart create request."""

    title: str = ""
    content: str = ""
    author: str = ""
    tags: str = ""
    is_published: bool = False
    store: Optional[str] = None
    store_url: Optional[str] = None
    app_category: Optional[str] = None
    status: Optional[str] = None
    icon: Optional[MediaFile] = None
    screenshots: list[MediaFile] = field(default_factory=list)


class GalleryRepository:
    """CRUD over gallery documents in the blob store."""

    def __init__(self, store: BlobStore):
        self.store = store

    def _blobs(self, item_type: str) -> list[BlobInfo]:
        return self.store.list(f"{folder_for(item_type)}/")

    def list_items(self, item_type: str) -> list[dict]:
        """
        Visible documents for ``item_type``, as stored.

        Stored cards are not validated beyond carrying an ``id``; older
        documents may hold nulls or values the create form no longer offers.
        """
        return [
            document
            for document in load_documents(self.store, f"{folder_for(item_type)}/")
            if document.get("id") and is_visible(document, item_type)
        ]

    def save_item(self, item_type: str, document: dict) -> tuple[dict, BlobInfo]:
        """Write ``document`` into the folder for ``item_type``, forcing its type."""
        document = {**document, "type": item_type}
        pathname = f"{folder_for(item_type)}/{document['id']}.json"
        blob = write_document(self.store, pathname, document)
        logger.info("Saved gallery item %s to %s", document["id"], pathname)
        return document, blob

    def create_item(self, item_type: str, form: GalleryForm) -> tuple[dict, BlobInfo]:
        if not (form.title and form.content and form.author):
            raise InvalidItemError("Missing required fields")

        folder = folder_for(item_type)
        # Validate before any media is written so a bad form leaves no orphans.
        item = GalleryItem(
            id=generate_item_id(item_type),
            title=form.title,
            content=form.content,
            author=form.author,
            publish_date=utc_timestamp(),
            tags=split_tags(form.tags),
            is_published=form.is_published,
            type=item_type,
            store=form.store or "google-play",
            store_url=form.store_url or None,
            app_category=form.app_category or "normal",
            status=form.status or None,
        )
        item_id = item.id
        image_url = None
        icon_url = None
        screenshot_urls: list[str] = []

        if form.icon:
            ext = file_extension(form.icon.filename, "png")
            blob = self.store.put(
                f"{folder}/{item_id}-icon.{ext}",
                form.icon.data,
                content_type=form.icon.content_type,
            )
            icon_url = blob.url
            image_url = blob.url

        for index, shot in enumerate(form.screenshots, start=1):
            ext = file_extension(shot.filename, "jpg")
            blob = self.store.put(
                f"{folder}/{item_id}-screenshot-{index}.{ext}",
                shot.data,
                content_type=shot.content_type,
            )
            screenshot_urls.append(blob.url)
        if screenshot_urls:
            image_url = screenshot_urls[0]

        item = item.model_copy(
            update={
                "image_url": image_url,
                "icon_url": icon_url,
                "screenshot_urls": screenshot_urls or None,
            }
        )
        return self.save_item(item_type, item.to_json_dict())

    def update_item(self, item_type: str, document: dict) -> tuple[dict, BlobInfo]:
        item_id = document["id"]
        existing = find_document(self._blobs(item_type), item_id)
        if existing is None:
            raise ItemNotFoundError(item_id)

        pathname = f"{folder_for(item_type)}/{item_id}.json"
        blob = write_document(self.store, pathname, document)
        # A put on the same key overwrites in place; only a stale key needs removal.
        if existing.pathname != pathname:
            self.store.delete(existing.pathname)
        logger.info("Updated gallery item %s at %s", item_id, pathname)
        return document, blob

    def delete_item(self, item_type: str, item_id: str) -> list[str]:
        blobs = self._blobs(item_type)
        document = find_document(blobs, item_id)
        if document is None:
            raise ItemNotFoundError(item_id)

        deleted = delete_blobs(self.store, [document])
        deleted.extend(delete_blobs(self.store, find_media(blobs, item_id)))
        logger.info("Deleted gallery item %s (%d blobs)", item_id, len(deleted))
        return deleted
