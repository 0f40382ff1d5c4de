"""Gemini implementation of LLMProvider."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from pagepilot.config import Settings
from pagepilot.llm.base import LLMProvider
from pagepilot.models import LLMResponse

_LOGGER = logging.getLogger(__name__)

_MAX_RETRIES = 3
_RETRY_BACKOFF_SECONDS = [5, 15, 45]


class GeminiProvider(LLMProvider):
    """LLM provider using the Gemini generateContent endpoint."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def generate(self, messages: list[dict[str, str]]) -> LLMResponse:
        payload: dict[str, Any] = {"contents": to_gemini_contents(messages)}

        timeout = httpx.Timeout(self._settings.request_timeout_seconds)
        async with httpx.AsyncClient(base_url=self._settings.gemini_base_url, timeout=timeout) as client:
            for attempt in range(_MAX_RETRIES + 1):
                response = await client.post(
                    f"/models/{self._settings.gemini_model}:generateContent",
                    headers={
                        "x-goog-api-key": self._settings.gemini_api_key,
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
                if response.status_code == 429 and attempt < _MAX_RETRIES:
                    wait = _RETRY_BACKOFF_SECONDS[attempt]
                    _LOGGER.warning(
                        "Gemini rate limited (429), retrying in %ds (attempt %d/%d)",
                        wait,
                        attempt + 1,
                        _MAX_RETRIES,
                    )
                    await asyncio.sleep(wait)
                    continue
                response.raise_for_status()
                break
            data = response.json()

        content = _first_candidate_text(data)
        _LOGGER.info("LLM response: content=%r", content[:200])
        return LLMResponse(content=content, raw=data)


def to_gemini_contents(messages: list[dict[str, str]]) -> list[dict[str, Any]]:
    """Convert role/content messages into Gemini ``contents`` entries."""

    contents: list[dict[str, Any]] = []
    for message in messages:
        role = "model" if message.get("role") == "assistant" else "user"
        contents.append({"role": role, "parts": [{"text": message.get("content", "")}]})
    return contents


def _first_candidate_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates")
    if not candidates:
        _LOGGER.warning("No 'candidates' found in Gemini response")
        return ""
    content = candidates[0].get("content")
    if not content:
        _LOGGER.warning("No 'content' field found in Gemini response")
        return ""
    parts = content.get("parts")
    if not parts:
        _LOGGER.warning("No 'parts' found in Gemini response")
        return ""
    return parts[0].get("text", "") or ""
