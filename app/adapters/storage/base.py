"""Content storage interface.

The service never inspects stored bytes; it only records the identifier the
storage backend hands back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class StoredContent:
    """Identifier and location of a stored blob."""

    content_id: str
    url: str
    size: int
    content_type: str


@dataclass(frozen=True)
class ContentMetadata:
    """Descriptive metadata attached to a stored blob."""

    name: str
    content_type: str
    uploaded_by: str
    keyvalues: dict[str, str] = field(default_factory=dict)


class AbstractContentStore(ABC):
    """Interface for content-addressed blob storage."""

    @abstractmethod
    async def store(self, blob: bytes, metadata: ContentMetadata) -> StoredContent:
        """Persist ``blob`` and return its content identifier.

        Raises:
            StorageAppError: If the backend rejects the upload or is unreachable.
        """
        raise NotImplementedError
