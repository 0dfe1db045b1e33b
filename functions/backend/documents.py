"""
Helpers for JSON documents and media kept as blobs under a folder prefix.

Each item lives in ``{folder}/{id}.json``; its media sits beside it as
``{folder}/{id}-<suffix>.<ext>``.
"""

from __future__ import annotations

import json
import logging
import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from botocore.exceptions import ClientError

from backend.storage import BlobInfo, BlobStore

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class MediaFile:
    """An uploaded file waiting to be written to the blob store."""

    filename: str
    data: bytes
    content_type: Optional[str] = None


def generate_item_id(kind: str) -> str:
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{kind}-{millis}-{suffix}"


def utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def split_tags(raw: str) -> list[str]:
    return [tag.strip() for tag in (raw or "").split(",") if tag.strip()]


def file_extension(filename: Optional[str], default: str) -> str:
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[1].strip()
        if ext:
            return ext
    return default


def json_blobs(blobs: Iterable[BlobInfo]) -> list[BlobInfo]:
    return [blob for blob in blobs if blob.pathname.endswith(".json")]


def find_document(blobs: Iterable[BlobInfo], item_id: str) -> Optional[BlobInfo]:
    """Return the JSON blob for ``item_id``; other ids sharing a prefix never match."""
    suffix = f"/{item_id}.json"
    for blob in json_blobs(blobs):
        if blob.pathname.endswith(suffix):
            return blob
    return None


def find_media(blobs: Iterable[BlobInfo], item_id: str) -> list[BlobInfo]:
    marker = f"/{item_id}-"
    return [
        blob
        for blob in blobs
        if marker in blob.pathname and not blob.pathname.endswith(".json")
    ]


def load_documents(store: BlobStore, prefix: str) -> list[dict]:
    """
    Read every JSON document under ``prefix`` into a flat list.

    A file holding an array contributes each object in it; a file holding an
    object contributes it when it carries an ``id``. Unreadable files are
    logged and skipped so one bad blob does not hide the rest of the folder.
    """
    documents: list[dict] = []
    for blob in json_blobs(store.list(prefix)):
        try:
            data = json.loads(store.get_bytes(blob.pathname))
        except (ValueError, OSError, ClientError) as exc:
            logger.warning("Skipping unreadable document %s: %s", blob.pathname, exc)
            continue
        if isinstance(data, list):
            documents.extend(entry for entry in data if isinstance(entry, dict))
        elif isinstance(data, dict) and data.get("id"):
            documents.append(data)
    return documents


def write_document(store: BlobStore, pathname: str, payload: dict) -> BlobInfo:
    body = json.dumps(payload, indent=2, ensure_ascii=False)
    return store.put(pathname, body, content_type=JSON_CONTENT_TYPE)


def read_document(store: BlobStore, pathname: str) -> dict:
    return json.loads(store.get_bytes(pathname))


def delete_blobs(store: BlobStore, blobs: Iterable[BlobInfo]) -> list[str]:
    deleted = []
    for blob in blobs:
        store.delete(blob.pathname)
        deleted.append(blob.pathname)
    return deleted
