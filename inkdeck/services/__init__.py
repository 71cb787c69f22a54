"""Service helpers for Inkdeck."""

from .cache_storage import FilesystemCacheStore

__all__ = ["FilesystemCacheStore"]
