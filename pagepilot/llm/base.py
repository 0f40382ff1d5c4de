"""LLM provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pagepilot.models import LLMResponse


class LLMProvider(ABC):
    """Abstract model provider used by the classifier gateway."""

    @abstractmethod
    async def generate(self, messages: list[dict[str, str]]) -> LLMResponse:
        """Generate a model response.

        Messages use ``{"role": "user" | "assistant", "content": ...}``.
        """
