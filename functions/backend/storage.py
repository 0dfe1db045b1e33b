"""
Blob storage abstraction for S3-compatible object stores and in-memory testing.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol, Union
from urllib.parse import quote

import boto3
from botocore.config import Config

Body = Union[bytes, str]


@dataclass
class BlobInfo:
    """A single object as returned by listing or writing."""

    pathname: str
    url: str
    size: int = 0
    content_type: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class BlobStore(Protocol):
    """Defines the operations the API needs from object storage."""

    def list(self, prefix: str) -> list[BlobInfo]:
        ...

    def put(
        self, pathname: str, body: Body, content_type: Optional[str] = None
    ) -> BlobInfo:
        ...

    def get_bytes(self, pathname: str) -> bytes:
        ...

    def delete(self, pathname: str) -> None:
        ...

    def url_for(self, pathname: str) -> str:
        ...


def _to_bytes(body: Body) -> bytes:
    if isinstance(body, str):
        return body.encode("utf-8")
    return body


@dataclass
class _StoredObject:
    data: bytes
    content_type: Optional[str]
    uploaded_at: datetime


@dataclass
class InMemoryBlobStore:
    """Test double for blob storage, safe to share across request threads."""

    base_url: str = "https://example.test/blob"
    objects: dict[str, _StoredObject] = field(default_factory=dict)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def url_for(self, pathname: str) -> str:
        return f"{self.base_url}/{quote(pathname)}"

    def _info(self, pathname: str, stored: _StoredObject) -> BlobInfo:
        return BlobInfo(
            pathname=pathname,
            url=self.url_for(pathname),
            size=len(stored.data),
            content_type=stored.content_type,
            uploaded_at=stored.uploaded_at,
        )

    def list(self, prefix: str) -> list[BlobInfo]:
        with self._lock:
            matches = sorted(
                (pathname, stored)
                for pathname, stored in self.objects.items()
                if pathname.startswith(prefix)
            )
        return [self._info(pathname, stored) for pathname, stored in matches]

    def put(
        self, pathname: str, body: Body, content_type: Optional[str] = None
    ) -> BlobInfo:
        stored = _StoredObject(
            data=_to_bytes(body),
            content_type=content_type,
            uploaded_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self.objects[pathname] = stored
        return self._info(pathname, stored)

    def get_bytes(self, pathname: str) -> bytes:
        with self._lock:
            stored = self.objects.get(pathname)
        if stored is None:
            raise FileNotFoundError(pathname)
        return stored.data

    def delete(self, pathname: str) -> None:
        with self._lock:
            self.objects.pop(pathname, None)

    def reset(self) -> None:
        """Drop every stored object (useful in tests)."""
        with self._lock:
            self.objects.clear()


@dataclass
class S3BlobStore:
    """
    Blob store backed by any S3-compatible service.
    """

    bucket: str
    region: str = ""
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    public_base_url: Optional[str] = None

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def url_for(self, pathname: str) -> str:
        key = quote(pathname)
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}/{key}"
        region = self.region or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{key}"

    def list(self, prefix: str) -> list[BlobInfo]:
        paginator = self._client.get_paginator("list_objects_v2")
        blobs: list[BlobInfo] = []
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                blobs.append(
                    BlobInfo(
                        pathname=obj["Key"],
                        url=self.url_for(obj["Key"]),
                        size=obj.get("Size", 0),
                        uploaded_at=obj.get("LastModified"),
                    )
                )
        return blobs

    def put(
        self, pathname: str, body: Body, content_type: Optional[str] = None
    ) -> BlobInfo:
        data = _to_bytes(body)
        content_type = content_type or "application/octet-stream"
        self._client.put_object(
            Bucket=self.bucket,
            Key=pathname,
            Body=data,
            ContentType=content_type,
        )
        return BlobInfo(
            pathname=pathname,
            url=self.url_for(pathname),
            size=len(data),
            content_type=content_type,
            uploaded_at=datetime.now(timezone.utc),
        )

    def get_bytes(self, pathname: str) -> bytes:
        response = self._client.get_object(Bucket=self.bucket, Key=pathname)
        return response["Body"].read()

    def delete(self, pathname: str) -> None:
        self._client.delete_object(Bucket=self.bucket, Key=pathname)
