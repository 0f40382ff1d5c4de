"""Command dispatcher for @-prefixed console input.

Commands bypass intent routing. An unrecognised @command returns None,
letting it fall through to the chat service as an ordinary turn.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pagepilot.chat import ChatResponse
from pagepilot.models import ChatTurn

if TYPE_CHECKING:
    from pagepilot.chat import ChatService
    from pagepilot.scheduler import DeferredPublishScheduler

LOGGER = logging.getLogger(__name__)


def parse_command(text: str) -> tuple[str, list[str]] | None:
    """Split an @-prefixed message into (command, args).

    Returns:
        A (command, args) tuple where command is lowercased, or None if text
        is not a valid @command.
    """
    text = text.strip()
    if not text.startswith("@"):
        return None
    parts = text[1:].split()
    if not parts:
        return None
    return parts[0].lower(), parts[1:]


def format_response(response: ChatResponse) -> str:
    if response.ok:
        return response.reply or ""
    lines = [response.reply] if response.reply else []
    lines.append(f"Error: {response.error}")
    return "\n".join(lines)


class CommandDispatcher:
    """Routes @-prefixed input to session, upload, and scheduler helpers."""

    def __init__(self, service: ChatService, scheduler: DeferredPublishScheduler | None = None) -> None:
        self._service = service
        self._scheduler = scheduler

    async def dispatch(self, text: str, session_id: str, turns: list[ChatTurn]) -> str | None:
        parsed = parse_command(text)
        if parsed is None:
            return None
        command, args = parsed
        LOGGER.info("Command dispatch: command=%r args=%d", command, len(args))
        if command == "upload":
            return await self._handle_upload(args, session_id)
        if command == "page":
            return self._handle_page(args, session_id)
        if command == "session":
            return format_response(self._service.check_session(session_id))
        if command == "logout":
            return format_response(self._service.logout(session_id))
        if command == "pending":
            return self._handle_pending()
        if command == "clear":
            turns.clear()
            return "Conversation history cleared."
        return None

    async def _handle_upload(self, args: list[str], session_id: str) -> str:
        if not args:
            return "Usage: @upload <image path>"
        path = Path(" ".join(args)).expanduser()
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            return f"Could not read {path}: {exc}"
        return format_response(await self._service.handle_upload(data, path.name, session_id))

    def _handle_page(self, args: list[str], session_id: str) -> str:
        if len(args) != 2:
            return "Usage: @page <page id> <page access token>"
        return format_response(self._service.register_page(session_id, args[0], args[1]))

    def _handle_pending(self) -> str:
        if self._scheduler is None:
            return "Scheduling is not available."
        pending = self._scheduler.pending()
        if not pending:
            return "No scheduled posts."
        return "\n".join(
            f"#{task.id} at {task.execute_at:%Y-%m-%d %H:%M} for page {task.credential.target_id}"
            for task in pending
        )
