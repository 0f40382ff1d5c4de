"""Generation of page posts that differ from what is already published."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pagepilot.classifier import ClassifierGateway
from pagepilot.history import UniquenessOracle
from pagepilot.models import PublishCredential

LOGGER = logging.getLogger(__name__)


def build_unique_post_prompt(history: Sequence[str], business: str) -> str:
    """Ask for one short sentence that differs from every item in ``history``."""

    existing = '", "'.join(history)
    return (
        f"Give me a clear, short sentence to post on a Facebook page for {business} "
        f'that is different from these existing sentences: "{existing}"'
    )


class ContentGenerator:
    """Builds a publish-ready message from page history.

    Uniqueness is requested in the prompt; the returned text is not checked
    against history afterwards.
    """

    def __init__(
        self,
        oracle: UniquenessOracle,
        classifier: ClassifierGateway,
        business: str = "a coffee business",
    ) -> None:
        self._oracle = oracle
        self._classifier = classifier
        self._business = business

    async def generate_unique(self, credential: PublishCredential) -> str | None:
        try:
            history = await self._oracle.collect_history(credential)
            LOGGER.info("Page %s has %d existing messages", credential.target_id, len(history))
            prompt = build_unique_post_prompt(history, self._business)
            text = await self._classifier.generate(prompt)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Error generating unique post for page %s", credential.target_id)
            return None
        if not text.strip():
            return None
        LOGGER.info("Generated post for page %s: %r", credential.target_id, text[:200])
        return text
