"""Prior publications used to keep generated posts unique."""

from __future__ import annotations

import logging

from pagepilot.models import PublishCredential
from pagepilot.publishing.base import PublishingBackend

LOGGER = logging.getLogger(__name__)


class UniquenessOracle:
    """Fetches the message texts already published on a page."""

    def __init__(self, backend: PublishingBackend) -> None:
        self._backend = backend

    async def collect_history(self, credential: PublishCredential | None) -> list[str]:
        """Return published messages in platform order.

        Posts without a text message (photo-only posts, shares) are skipped.
        Absent credentials or any backend failure give an empty history.
        """
        if credential is None or not credential.is_complete:
            return []
        try:
            posts = await self._backend.list_posts(credential)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Could not list posts for page %s: %s", credential.target_id, exc)
            return []
        if not isinstance(posts, list):
            return []
        return [
            post["message"]
            for post in posts
            if isinstance(post, dict) and isinstance(post.get("message"), str)
        ]
