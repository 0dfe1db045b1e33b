"""
Pydantic schemas for the gallery backend.

Stored documents and API payloads use camelCase keys; the models expose
snake_case attributes and accept either spelling on input.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from backend.documents import split_tags

GalleryType = Literal["gallery", "featured", "events", "normal"]
StoreKind = Literal["google-play", "app-store"]
AppCategory = Literal["normal", "featured", "events"]
AppStatus = Literal["published", "development", "in-review"]
ContentType = Literal["appstory", "news"]

CONTENT_TYPES: tuple[str, ...] = ("appstory", "news")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Document(CamelModel):
    """Base for stored documents; unknown keys survive a read/write cycle."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GalleryItem(Document):
    """
    A card built by the admin create form.

    Only the form is held to these enums; stored cards are served and
    re-saved as plain dicts.
    """

    id: str = Field(..., min_length=1)
    title: str = ""
    content: str = ""
    author: str = ""
    image_url: Optional[str] = None
    icon_url: Optional[str] = None
    screenshot_urls: Optional[list[str]] = None
    publish_date: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    is_published: bool = False
    type: Optional[GalleryType] = None
    store: Optional[StoreKind] = None
    store_url: Optional[str] = None
    app_category: Optional[AppCategory] = None
    status: Optional[AppStatus] = None


class ContentItem(Document):
    id: str = Field(..., min_length=1)
    title: str = ""
    content: str = ""
    author: str = ""
    type: ContentType = "appstory"
    tags: list[str] = Field(default_factory=list)
    is_published: bool = False
    publish_date: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tag_string(cls, value):
        if isinstance(value, str):
            return split_tags(value)
        return value


class GalleryItemEnvelope(BaseModel):
    """JSON body used by POST (type moves) and PUT on /gallery."""

    item: Optional[dict] = None


class ContentCreate(CamelModel):
    title: str = ""
    content: str = ""
    author: str = ""
    type: ContentType = "appstory"
    tags: Union[list[str], str] = ""
    is_published: bool = True
    image_url: Optional[str] = None


class ContentUpdate(CamelModel):
    id: str = Field(..., min_length=1)
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    type: Optional[ContentType] = None
    tags: Optional[Union[list[str], str]] = None
    is_published: Optional[bool] = None
    image_url: Optional[str] = None


class MemoDraft(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    tags: Optional[str] = None
    is_published: Optional[bool] = None


class GalleryWriteResponse(CamelModel):
    success: bool = True
    item: dict
    json_url: str
    message: Optional[str] = None


class ContentWriteResponse(CamelModel):
    success: bool = True
    item: ContentItem
    json_url: str
    message: Optional[str] = None


class DeleteResponse(CamelModel):
    success: bool = True
    message: str


class UploadResponse(CamelModel):
    url: str
    pathname: str
    content_type: Optional[str] = None
    size: int
