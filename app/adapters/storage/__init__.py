"""Content storage adapters (IPFS pinning)."""

from app.adapters.storage.base import AbstractContentStore, ContentMetadata, StoredContent
from app.adapters.storage.factory import create_content_store
from app.adapters.storage.pinata import PinataContentStore

__all__ = [
    "AbstractContentStore",
    "ContentMetadata",
    "PinataContentStore",
    "StoredContent",
    "create_content_store",
]
