"""
HTTP routes for the gallery backend API.
"""

from __future__ import annotations

import json
import logging
import re
from contextlib import contextmanager
from typing import Optional, Sequence, Union
from uuid import uuid4

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    Response,
    UploadFile,
)
from pydantic import ValidationError
from starlette.datastructures import FormData
from starlette.datastructures import UploadFile as StarletteUploadFile

from backend.config import Settings, get_settings
from backend.content import ContentRepository
from backend.dependencies import (
    get_blob_store,
    get_content_repository,
    get_draft_store,
    get_gallery_repository,
    is_admin,
    require_admin,
)
from backend.documents import MediaFile
from backend.drafts import DraftStore
from backend.errors import InvalidItemError, ItemNotFoundError
from backend.gallery import GalleryForm, GalleryRepository
from backend.pagination import paginate
from backend.schemas import (
    ContentCreate,
    ContentItem,
    ContentType,
    ContentUpdate,
    ContentWriteResponse,
    DeleteResponse,
    GalleryItemEnvelope,
    GalleryType,
    GalleryWriteResponse,
    MemoDraft,
    UploadResponse,
)
from backend.storage import BlobStore

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_FOLDER_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]{0,63}$")


@contextmanager
def _failure_message(message: str):
    """
    Map domain errors to HTTP errors; anything unexpected becomes a 500
    carrying ``message``.
    """
    try:
        yield
    except HTTPException:
        raise
    except ItemNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidItemError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid item data") from exc
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from exc
    except Exception as exc:
        logger.exception(message)
        raise HTTPException(status_code=500, detail=message) from exc


def _paged(
    response: Response,
    items: Sequence,
    page: Optional[int],
    page_size: Optional[int],
    default_page_size: int,
) -> list:
    if page is None and page_size is None:
        return list(items)
    result = paginate(items, page or 1, page_size or default_page_size)
    response.headers.update(result.headers())
    return result.items


def _require_gallery_item(envelope: GalleryItemEnvelope) -> dict:
    if not envelope.item or not envelope.item.get("id"):
        raise InvalidItemError("Item data and ID are required")
    return envelope.item


def _form_text(form: FormData, key: str) -> str:
    value = form.get(key)
    return value if isinstance(value, str) else ""


async def _media_from(value) -> Optional[MediaFile]:
    if not isinstance(value, StarletteUploadFile):
        return None
    data = await value.read()
    if not data:
        return None
    return MediaFile(
        filename=value.filename or "", data=data, content_type=value.content_type
    )


async def _read_gallery_form(request: Request) -> GalleryForm:
    form = await request.form()
    screenshots = []
    for value in form.getlist("screenshots"):
        media = await _media_from(value)
        if media:
            screenshots.append(media)
    return GalleryForm(
        title=_form_text(form, "title"),
        content=_form_text(form, "content"),
        author=_form_text(form, "author"),
        tags=_form_text(form, "tags"),
        is_published=_form_text(form, "isPublished") == "true",
        store=_form_text(form, "store") or None,
        store_url=_form_text(form, "storeUrl") or None,
        app_category=_form_text(form, "appCategory") or None,
        status=_form_text(form, "status") or None,
        icon=await _media_from(form.get("file")),
        screenshots=screenshots,
    )


def _safe_filename(filename: Optional[str]) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "-", filename or "").strip("-.")
    return cleaned or "file"


# ---------------------------------------------------------------------------
# Gallery


@router.get("/gallery", response_model=list[dict])
def list_gallery(
    response: Response,
    item_type: Optional[GalleryType] = Query(None, alias="type"),
    page: Optional[int] = Query(None, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=100),
    repo: GalleryRepository = Depends(get_gallery_repository),
    settings: Settings = Depends(get_settings),
):
    if not item_type:
        raise HTTPException(status_code=400, detail="Type parameter is required")
    with _failure_message("Failed to load gallery"):
        items = repo.list_items(item_type)
    return _paged(response, items, page, page_size, settings.gallery_page_size)


@router.post(
    "/gallery",
    response_model=GalleryWriteResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
async def create_gallery_item(
    request: Request,
    item_type: Optional[GalleryType] = Query(None, alias="type"),
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    """
    Create a gallery item.

    A JSON body ``{"item": {...}}`` saves an existing item under ``type``
    (used to move cards between carousels); a multipart form creates a new
    item, uploading its icon and screenshots first.
    """
    if not item_type:
        raise HTTPException(status_code=400, detail="Type parameter is required")

    content_type = request.headers.get("content-type", "")
    with _failure_message("Failed to create gallery item"):
        if "application/json" in content_type:
            envelope = GalleryItemEnvelope.model_validate(await request.json())
            item, blob = repo.save_item(item_type, _require_gallery_item(envelope))
        else:
            form = await _read_gallery_form(request)
            item, blob = repo.create_item(item_type, form)
    return GalleryWriteResponse(item=item, json_url=blob.url)


@router.put(
    "/gallery",
    response_model=GalleryWriteResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def update_gallery_item(
    payload: GalleryItemEnvelope,
    item_type: Optional[GalleryType] = Query(None, alias="type"),
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    if not item_type:
        raise HTTPException(status_code=400, detail="Type parameter is required")
    with _failure_message("Failed to update gallery item"):
        item, blob = repo.update_item(item_type, _require_gallery_item(payload))
    return GalleryWriteResponse(
        item=item, json_url=blob.url, message="Item updated successfully"
    )


@router.delete(
    "/gallery", response_model=DeleteResponse, dependencies=[Depends(require_admin)]
)
def delete_gallery_item(
    item_type: Optional[GalleryType] = Query(None, alias="type"),
    item_id: Optional[str] = Query(None, alias="id"),
    repo: GalleryRepository = Depends(get_gallery_repository),
):
    if not item_type or not item_id:
        raise HTTPException(
            status_code=400, detail="Type and ID parameters are required"
        )
    with _failure_message("Failed to delete gallery item"):
        repo.delete_item(item_type, item_id)
    return DeleteResponse(message="Item deleted successfully")


# ---------------------------------------------------------------------------
# Content (App Story / News)


@router.get(
    "/content",
    response_model=Union[list[ContentItem], ContentItem],
    response_model_exclude_none=True,
)
def list_content(
    response: Response,
    item_type: Optional[ContentType] = Query(None, alias="type"),
    item_id: Optional[str] = Query(None, alias="id"),
    page: Optional[int] = Query(None, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=100),
    admin: bool = Depends(is_admin),
    repo: ContentRepository = Depends(get_content_repository),
    settings: Settings = Depends(get_settings),
):
    """
    List content of one type (or all types), newest first.

    Unpublished items are only visible to admins. With ``id`` the single
    matching item is returned instead of a list.
    """
    with _failure_message("Failed to load content"):
        if item_id:
            item = repo.get_item(item_id)
            if not (admin or item.is_published):
                raise ItemNotFoundError(item_id)
            return item
        items = repo.list_items(item_type, include_unpublished=admin)
    return _paged(response, items, page, page_size, settings.content_page_size)


@router.post(
    "/content",
    response_model=ContentWriteResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def create_content(
    payload: ContentCreate,
    repo: ContentRepository = Depends(get_content_repository),
):
    with _failure_message("Failed to create content"):
        item, blob = repo.create_item(payload)
    return ContentWriteResponse(item=item, json_url=blob.url)


@router.put(
    "/content",
    response_model=ContentWriteResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def update_content(
    payload: ContentUpdate,
    repo: ContentRepository = Depends(get_content_repository),
):
    with _failure_message("Failed to update content"):
        item, blob = repo.update_item(payload)
    return ContentWriteResponse(
        item=item, json_url=blob.url, message="Content updated successfully"
    )


@router.delete(
    "/content", response_model=DeleteResponse, dependencies=[Depends(require_admin)]
)
def delete_content(
    item_id: Optional[str] = Query(None, alias="id"),
    repo: ContentRepository = Depends(get_content_repository),
):
    if not item_id:
        raise HTTPException(status_code=400, detail="ID parameter is required")
    with _failure_message("Failed to delete content"):
        repo.delete_item(item_id)
    return DeleteResponse(message="Content deleted successfully")


# ---------------------------------------------------------------------------
# Uploads and drafts


@router.post(
    "/upload",
    response_model=UploadResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
async def upload_media(
    file: UploadFile = File(...),
    folder: str = Form("uploads"),
    store: BlobStore = Depends(get_blob_store),
):
    if not UPLOAD_FOLDER_PATTERN.match(folder):
        raise HTTPException(status_code=400, detail="Invalid folder")
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(
            status_code=400, detail="Only image uploads are supported"
        )
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="File is empty")

    pathname = f"{folder}/{uuid4().hex[:12]}-{_safe_filename(file.filename)}"
    with _failure_message("Failed to upload file"):
        blob = store.put(pathname, data, content_type=file.content_type)
    logger.info("Uploaded %s (%d bytes)", pathname, blob.size)
    return UploadResponse(
        url=blob.url,
        pathname=blob.pathname,
        content_type=blob.content_type,
        size=blob.size,
    )


@router.get(
    "/drafts/{kind}",
    response_model=MemoDraft,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def get_draft(kind: str, drafts: DraftStore = Depends(get_draft_store)):
    with _failure_message("Failed to load draft"):
        draft = drafts.get(kind)
    if draft is None:
        raise HTTPException(status_code=404, detail="Draft not found")
    return draft


@router.put(
    "/drafts/{kind}",
    response_model=MemoDraft,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
def save_draft(
    kind: str, payload: MemoDraft, drafts: DraftStore = Depends(get_draft_store)
):
    with _failure_message("Failed to save draft"):
        return drafts.save(kind, payload)


@router.delete(
    "/drafts/{kind}",
    response_model=DeleteResponse,
    dependencies=[Depends(require_admin)],
)
def clear_draft(kind: str, drafts: DraftStore = Depends(get_draft_store)):
    with _failure_message("Failed to clear draft"):
        drafts.clear(kind)
    return DeleteResponse(message="Draft cleared")
