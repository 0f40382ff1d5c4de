"""Core domain models used across layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


@dataclass(slots=True)
class ChatTurn:
    """One role-tagged message in a conversation."""

    role: str
    text: str


class IntentKind(str, Enum):
    CONVERSE = "converse"
    PUBLISH_NOW = "publish_now"
    PUBLISH_LATER = "publish_later"


@dataclass(slots=True)
class IntentVerdict:
    """Classified intent for a single turn."""

    kind: IntentKind
    scheduled_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PublishCredential:
    """Page identifier and access token for one session."""

    target_id: str
    access_token: str

    @property
    def is_complete(self) -> bool:
        return bool(self.target_id) and bool(self.access_token)

    def __repr__(self) -> str:
        return f"PublishCredential(target_id={self.target_id!r}, access_token='***')"


@dataclass(slots=True)
class PublishResult:
    """Structured outcome of a publish attempt."""

    success: bool
    message: str | None = None
    post_id: str | None = None
    error: str | None = None
    details: dict[str, Any] | None = None

    @classmethod
    def ok(cls, message: str, post_id: str | None = None) -> PublishResult:
        return cls(success=True, message=message, post_id=post_id)

    @classmethod
    def failure(cls, error: str, details: dict[str, Any] | None = None) -> PublishResult:
        return cls(success=False, error=error, details=details)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "message": self.message, "id": self.post_id}
        payload: dict[str, Any] = {"error": self.error}
        if self.details is not None:
            payload["details"] = self.details
        return payload


@dataclass(slots=True)
class ScheduledPublish:
    """A publish action registered to run once at or after execute_at."""

    id: int
    execute_at: datetime
    credential: PublishCredential
    created_at: datetime


@dataclass(slots=True)
class RouteOutcome:
    """Result of routing one chat turn."""

    verdict: IntentVerdict
    reply: str
    publish_result: PublishResult | None = None
    scheduled: ScheduledPublish | None = None
    error: str | None = None


@dataclass(slots=True)
class LLMResponse:
    """Result from an LLM generation request."""

    content: str
    raw: dict[str, Any] | None = field(default=None, repr=False)
