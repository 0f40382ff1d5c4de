"""Chat service boundary.

Turns inbound payloads into router calls and always answers with a
``ChatResponse``; no exception escapes to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from pagepilot.models import ChatTurn, IntentKind, RouteOutcome
from pagepilot.publisher import Publisher
from pagepilot.router import IntentRouter, InvalidTurnsError, last_user_text
from pagepilot.session_store import SessionStore

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ChatResponse:
    """Structured result handed back to whatever transport sits in front."""

    ok: bool
    reply: str | None = None
    error: str | None = None
    details: dict[str, Any] | None = None
    outcome: RouteOutcome | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.reply is not None:
            payload["reply"] = self.reply
        if self.error is not None:
            payload["error"] = self.error
        if self.details is not None:
            payload["details"] = self.details
        return payload


class _Part(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str = ""


class _Turn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str
    text: str | None = None
    parts: list[_Part] | None = None

    def to_chat_turn(self) -> ChatTurn:
        text = self.text
        if text is None and self.parts:
            text = self.parts[0].text
        role = "assistant" if self.role in ("assistant", "model") else self.role
        return ChatTurn(role=role, text=text or "")


class _ChatPayload(BaseModel):
    messages: list[_Turn]


def parse_turns(payload: Any) -> list[ChatTurn]:
    """Validate an inbound ``{"messages": [...]}`` payload.

    Accepts ``{role, text}`` turns and ``{role, parts: [{text}]}`` turns.
    """
    try:
        parsed = _ChatPayload.model_validate(payload)
    except ValidationError as exc:
        raise InvalidTurnsError(f"Malformed message list: {exc.error_count()} invalid field(s)") from exc
    return [turn.to_chat_turn() for turn in parsed.messages]


class ChatService:
    """Entry point for chat turns, photo uploads, and page sessions."""

    def __init__(self, router: IntentRouter, publisher: Publisher, sessions: SessionStore) -> None:
        self._router = router
        self._publisher = publisher
        self._sessions = sessions

    async def handle_chat(self, payload: Any, session_id: str | None) -> ChatResponse:
        try:
            turns = parse_turns(payload)
            last_user_text(turns)
            credential = self._sessions.get_credential(session_id) if session_id else None
            outcome = await self._router.route(turns, credential)
        except InvalidTurnsError as exc:
            LOGGER.warning("Rejected chat request: %s", exc)
            return ChatResponse(ok=False, error=str(exc))
        except Exception:  # noqa: BLE001
            LOGGER.exception("Error processing chat request")
            return ChatResponse(ok=False, error="Something went wrong!")

        result = outcome.publish_result
        if outcome.verdict.kind is IntentKind.PUBLISH_NOW and result is not None and not result.success:
            return ChatResponse(
                ok=False,
                reply=outcome.reply,
                error=result.error,
                details=result.to_dict(),
                outcome=outcome,
            )
        return ChatResponse(ok=True, reply=outcome.reply, error=outcome.error, outcome=outcome)

    async def handle_upload(self, data: bytes, filename: str, session_id: str | None) -> ChatResponse:
        if not data:
            return ChatResponse(ok=False, error="No image file uploaded")
        try:
            credential = self._sessions.get_credential(session_id) if session_id else None
            result = await self._publisher.publish_photo(credential, data, filename)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Error processing upload request")
            return ChatResponse(ok=False, error="Server error")
        if result.success:
            return ChatResponse(ok=True, reply=f"Photo uploaded successfully! Message: {result.message}")
        return ChatResponse(ok=False, error=result.error, details=result.to_dict())

    def register_page(self, session_id: str, page_id: str | None, access_token: str | None) -> ChatResponse:
        if not page_id or not access_token:
            return ChatResponse(ok=False, error="Session does not contain pageId or pageAccessToken")
        self._sessions.save_page(session_id, page_id, access_token)
        LOGGER.info("Saved page %s for session %s", page_id, session_id)
        return ChatResponse(ok=True, reply="Session created")

    def logout(self, session_id: str) -> ChatResponse:
        if not self._sessions.has_session(session_id):
            return ChatResponse(ok=False, error="No session")
        self._sessions.delete_session(session_id)
        LOGGER.info("Removed page credentials for session %s", session_id)
        return ChatResponse(ok=True, reply="Session removed")

    def check_session(self, session_id: str | None) -> ChatResponse:
        if not session_id or not self._sessions.has_session(session_id):
            return ChatResponse(ok=False, error="No session")
        credential = self._sessions.get_credential(session_id)
        if credential is None or not credential.is_complete:
            return ChatResponse(ok=False, error="Session found, but missing data")
        return ChatResponse(ok=True, reply="Welcome back!")
