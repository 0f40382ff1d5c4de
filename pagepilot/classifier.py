"""Classifier gateway over the generation backend.

Every call here is a single ``generate`` round-trip. Failures never reach the
caller: classification degrades to the negative verdict and free-form
generation degrades to an empty string (``NEGATIVE_ON_FAILURE``).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from pagepilot.llm.base import LLMProvider
from pagepilot.models import ChatTurn

LOGGER = logging.getLogger(__name__)

NEGATIVE_ON_FAILURE = "false"

POST_INTENT_QUESTION = "Does the following message indicate that the user wants to create a post on Facebook?"
SCHEDULE_INTENT_QUESTION = "Does the following message indicate that the user wants to schedule a Facebook post?"

_BOOLEAN_INSTRUCTION = "Reply with only 'true' or 'false'."
_DATE_INSTRUCTION = (
    "If yes, reply only with the scheduled date (e.g., '2025-07-03 14:00'). "
    "If not, reply only with 'false'."
)


class ClassifierGateway:
    """Asks the model yes/no and date questions about a user message."""

    def __init__(self, llm: LLMProvider, request_timeout_seconds: float = 30.0) -> None:
        self._llm = llm
        self._request_timeout_seconds = request_timeout_seconds

    async def classify(self, question: str, message: str, expect_date: bool = False) -> bool | str:
        """Answer ``question`` about ``message``.

        Boolean questions return True only for the literal answer ``true``.
        Date questions return ``False`` for ``false`` or an empty answer and
        otherwise the trimmed answer as an unvalidated timestamp candidate.
        """
        instruction = _DATE_INSTRUCTION if expect_date else _BOOLEAN_INSTRUCTION
        prompt = f'{question} {instruction}\n\nMessage: "{message}"'
        try:
            answer = await self._ask(prompt)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Classification failed, treating as %s: %s", NEGATIVE_ON_FAILURE, exc)
            return False

        result = answer.strip()
        if expect_date:
            if not result or result.lower() == NEGATIVE_ON_FAILURE:
                return False
            return result
        return result.lower() == "true"

    async def is_post_intent(self, message: str) -> bool:
        return await self.classify(POST_INTENT_QUESTION, message) is True

    async def scheduled_post_time(self, message: str) -> str | None:
        """Return the candidate date string for a scheduling request, if any."""

        verdict = await self.classify(SCHEDULE_INTENT_QUESTION, message, expect_date=True)
        return verdict if isinstance(verdict, str) else None

    async def generate(self, prompt: str) -> str:
        """Generate free text for a single user prompt."""

        try:
            return await self._ask(prompt)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Generation failed: %s", exc)
            return ""

    async def converse(self, turns: Sequence[ChatTurn]) -> str:
        """Produce an ordinary conversational reply for the whole turn sequence."""

        messages = [{"role": turn.role, "content": turn.text} for turn in turns]
        try:
            response = await asyncio.wait_for(
                self._llm.generate(messages), timeout=self._request_timeout_seconds
            )
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Conversation reply failed: %s", exc)
            return ""
        return response.content

    async def _ask(self, prompt: str) -> str:
        response = await asyncio.wait_for(
            self._llm.generate([{"role": "user", "content": prompt}]),
            timeout=self._request_timeout_seconds,
        )
        return response.content
