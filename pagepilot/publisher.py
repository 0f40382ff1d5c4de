"""Publish actions combining content generation and the publishing backend."""

from __future__ import annotations

import logging

import httpx

from pagepilot.content import ContentGenerator
from pagepilot.media import ImageStore
from pagepilot.models import PublishCredential, PublishResult
from pagepilot.publishing.base import PublishingBackend

LOGGER = logging.getLogger(__name__)

MISSING_CREDENTIAL_ERROR = "Missing pageId or pageAccessToken from session."
GENERATION_ERROR = "Failed to generate a unique post message."


class Publisher:
    """Generates a unique message and publishes it in one attempt."""

    def __init__(
        self,
        backend: PublishingBackend,
        generator: ContentGenerator,
        image_store: ImageStore | None = None,
    ) -> None:
        self._backend = backend
        self._generator = generator
        self._image_store = image_store

    async def publish_now(self, credential: PublishCredential | None) -> PublishResult:
        """Generate a fresh post and publish it as text."""

        if credential is None or not credential.is_complete:
            return PublishResult.failure(MISSING_CREDENTIAL_ERROR)

        message = await self._generator.generate_unique(credential)
        if message is None:
            return PublishResult.failure(GENERATION_ERROR)

        try:
            return await self._backend.publish_text(credential, message)
        except httpx.HTTPError as exc:
            LOGGER.error("Error publishing to page %s: %s", credential.target_id, exc)
            return PublishResult.failure("Server error", details={"message": str(exc)})

    async def publish_photo(
        self,
        credential: PublishCredential | None,
        data: bytes,
        filename: str,
    ) -> PublishResult:
        """Host the image, then publish it with a generated caption."""

        if credential is None or not credential.is_complete:
            return PublishResult.failure(MISSING_CREDENTIAL_ERROR)
        if self._image_store is None:
            return PublishResult.failure("Image hosting is not configured.")

        try:
            url = await self._image_store.store(data, filename)
        except (httpx.HTTPError, RuntimeError) as exc:
            LOGGER.error("Error storing image %s: %s", filename, exc)
            return PublishResult.failure("Server error", details={"message": str(exc)})

        caption = await self._generator.generate_unique(credential)
        if caption is None:
            return PublishResult.failure(GENERATION_ERROR)

        try:
            return await self._backend.publish_photo(credential, url, caption)
        except httpx.HTTPError as exc:
            LOGGER.error("Error publishing photo to page %s: %s", credential.target_id, exc)
            return PublishResult.failure("Server error", details={"message": str(exc)})
