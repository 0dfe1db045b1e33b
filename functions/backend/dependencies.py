"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException

from backend.config import Settings, get_settings
from backend.content import ContentRepository
from backend.drafts import DraftStore
from backend.gallery import GalleryRepository
from backend.storage import BlobStore, InMemoryBlobStore, S3BlobStore

_blob_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    """
    Return a singleton blob store so the in-memory backend keeps its objects
    across requests.
    """
    global _blob_store
    if _blob_store:
        return _blob_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.blob_bucket:
        _blob_store = InMemoryBlobStore()
    else:
        _blob_store = S3BlobStore(
            bucket=settings.blob_bucket,
            region=settings.blob_region or "",
            endpoint=settings.blob_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.blob_public_base_url,
        )
    return _blob_store


def get_gallery_repository(
    store: BlobStore = Depends(get_blob_store),
) -> GalleryRepository:
    return GalleryRepository(store)


def get_content_repository(
    store: BlobStore = Depends(get_blob_store),
) -> ContentRepository:
    return ContentRepository(store)


def get_draft_store(store: BlobStore = Depends(get_blob_store)) -> DraftStore:
    return DraftStore(store)


def is_admin(
    x_admin_token: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> bool:
    """True when the caller presented the admin token, or gating is disabled."""
    if not settings.admin_token:
        return True
    if not x_admin_token:
        return False
    return secrets.compare_digest(
        x_admin_token.encode("utf-8"), settings.admin_token.encode("utf-8")
    )


def require_admin(admin: bool = Depends(is_admin)) -> None:
    if not admin:
        raise HTTPException(status_code=401, detail="Unauthorized")
