"""
Domain errors raised by the repositories and mapped to HTTP responses in routes.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for gallery/content failures the client can act on."""


class ItemNotFoundError(CatalogError):
    def __init__(self, item_id: str, message: str = "Item not found"):
        super().__init__(message)
        self.item_id = item_id


class InvalidItemError(CatalogError):
    """Raised when a request is missing required data."""


class CorruptDocumentError(Exception):
    """A stored document that can no longer be read as its model."""

    def __init__(self, pathname: str):
        super().__init__(f"Stored document {pathname} is invalid")
        self.pathname = pathname
