"""Facebook Graph API implementation of PublishingBackend."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from pagepilot.config import Settings
from pagepilot.models import PublishCredential, PublishResult
from pagepilot.publishing.base import PublishingBackend

LOGGER = logging.getLogger(__name__)


class FacebookGraphClient(PublishingBackend):
    """Page feed and photo operations against the Graph API."""

    def __init__(self, settings: Settings) -> None:
        self._base_url = f"{settings.graph_api_base_url.rstrip('/')}/{settings.graph_api_version}"
        self._timeout = httpx.Timeout(settings.request_timeout_seconds)

    async def list_posts(self, credential: PublishCredential) -> list[dict[str, Any]]:
        async with httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout) as client:
            response = await client.get(
                f"/{credential.target_id}/feed",
                params={"access_token": credential.access_token},
            )
            response.raise_for_status()
            data = response.json()

        posts = data.get("data") if isinstance(data, dict) else None
        if not isinstance(posts, list):
            return []
        return [post for post in posts if isinstance(post, dict)]

    async def publish_text(self, credential: PublishCredential, text: str) -> PublishResult:
        body = await self._post(
            f"/{credential.target_id}/feed",
            {"message": text, "access_token": credential.access_token},
        )
        if "id" in body:
            LOGGER.info("Published post %s to page %s", body["id"], credential.target_id)
            return PublishResult.ok(text, post_id=str(body["id"]))
        return PublishResult.failure("Failed to post", details=body)

    async def publish_photo(self, credential: PublishCredential, url: str, caption: str) -> PublishResult:
        body = await self._post(
            f"/{credential.target_id}/photos",
            {"url": url, "message": caption, "access_token": credential.access_token},
        )
        if "id" in body:
            LOGGER.info("Published photo %s to page %s", body["id"], credential.target_id)
            return PublishResult.ok(caption, post_id=str(body["id"]))
        return PublishResult.failure("Image upload from URL failed!", details=body)

    async def _post(self, path: str, payload: dict[str, str]) -> dict[str, Any]:
        # Graph API errors come back as JSON bodies with 4xx codes; keep them as details.
        async with httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout) as client:
            response = await client.post(path, json=payload)
        try:
            body = response.json()
        except ValueError:
            return {"status_code": response.status_code, "body": response.text}
        return body if isinstance(body, dict) else {"status_code": response.status_code, "body": body}
