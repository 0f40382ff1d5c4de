"""Image hosting used before photo posts."""

from __future__ import annotations

import hashlib
import logging
import time
from abc import ABC, abstractmethod

import httpx

from pagepilot.config import Settings

LOGGER = logging.getLogger(__name__)

CLOUDINARY_BASE_URL = "https://api.cloudinary.com/v1_1"


class ImageStore(ABC):
    """Stores a binary image and returns a public URL."""

    @abstractmethod
    async def store(self, data: bytes, filename: str) -> str:
        """Upload image bytes and return their URL."""


class CloudinaryImageStore(ImageStore):
    """Signed uploads to the Cloudinary image upload API."""

    def __init__(self, settings: Settings) -> None:
        self._cloud_name = settings.cloudinary_cloud_name
        self._api_key = settings.cloudinary_api_key
        self._api_secret = settings.cloudinary_api_secret
        self._timeout = httpx.Timeout(settings.request_timeout_seconds)

    async def store(self, data: bytes, filename: str) -> str:
        if not (self._cloud_name and self._api_key and self._api_secret):
            raise RuntimeError("Cloudinary is not configured")

        timestamp = str(int(time.time()))
        form = {
            "api_key": self._api_key,
            "timestamp": timestamp,
            "signature": sign_upload({"timestamp": timestamp}, self._api_secret),
        }
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                f"{CLOUDINARY_BASE_URL}/{self._cloud_name}/image/upload",
                data=form,
                files={"file": (filename, data)},
            )
            response.raise_for_status()
            body = response.json()

        url = body.get("secure_url") or body.get("url")
        if not url:
            raise RuntimeError(f"Cloudinary upload returned no URL: {body}")
        LOGGER.info("Stored image %s at %s", filename, url)
        return str(url)


def sign_upload(params: dict[str, str], api_secret: str) -> str:
    """Cloudinary signature: sha1 of sorted ``k=v`` pairs joined by ``&`` plus the secret."""

    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()
