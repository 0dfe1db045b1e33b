"""
Backend package for the app gallery API.

This package provides a FastAPI application over an S3-compatible blob
store: gallery cards, featured/events carousels and App Story/News posts
are kept as JSON documents with their media files stored beside them.
"""
