"""Publishing backend contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pagepilot.models import PublishCredential, PublishResult


class PublishingBackend(ABC):
    """Remote platform that accepts and lists page posts."""

    @abstractmethod
    async def list_posts(self, credential: PublishCredential) -> list[dict[str, Any]]:
        """Return the target's posts in platform order."""

    @abstractmethod
    async def publish_text(self, credential: PublishCredential, text: str) -> PublishResult:
        """Publish a text post."""

    @abstractmethod
    async def publish_photo(self, credential: PublishCredential, url: str, caption: str) -> PublishResult:
        """Publish a photo post from a public image URL."""
