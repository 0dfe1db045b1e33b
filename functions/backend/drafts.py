"""
Editor drafts, one JSON blob per editor kind.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from backend.documents import find_document, read_document, write_document
from backend.errors import InvalidItemError
from backend.schemas import MemoDraft
from backend.storage import BlobStore

logger = logging.getLogger(__name__)

DRAFTS_FOLDER = "drafts"
KIND_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]{0,63}$")


def draft_path(kind: str) -> str:
    if not KIND_PATTERN.match(kind):
        raise InvalidItemError(f"Invalid draft kind: {kind}")
    return f"{DRAFTS_FOLDER}/{kind}.json"


class DraftStore:
    def __init__(self, store: BlobStore):
        self.store = store

    def get(self, kind: str) -> Optional[MemoDraft]:
        pathname = draft_path(kind)
        if find_document(self.store.list(f"{DRAFTS_FOLDER}/"), kind) is None:
            return None
        return MemoDraft.model_validate(read_document(self.store, pathname))

    def save(self, kind: str, draft: MemoDraft) -> MemoDraft:
        pathname = draft_path(kind)
        write_document(
            self.store,
            pathname,
            draft.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        logger.info("Saved draft %s", pathname)
        return draft

    def clear(self, kind: str) -> bool:
        pathname = draft_path(kind)
        if find_document(self.store.list(f"{DRAFTS_FOLDER}/"), kind) is None:
            return False
        self.store.delete(pathname)
        logger.info("Cleared draft %s", pathname)
        return True
