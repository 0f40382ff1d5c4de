"""Per-turn intent routing.

Checks run in a fixed order and the first match wins:

1. publish now   - the create-post question answers ``true``;
2. publish later - the schedule question returns a date string;
3. converse      - default; also runs after a publish-later registration so
                   the user always gets a reply.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from pagepilot.classifier import ClassifierGateway
from pagepilot.models import (
    ChatTurn,
    IntentKind,
    IntentVerdict,
    PublishCredential,
    RouteOutcome,
)
from pagepilot.publisher import Publisher
from pagepilot.scheduler import DeferredPublishScheduler

LOGGER = logging.getLogger(__name__)

SCHEDULE_FORMAT = "%Y-%m-%d %H:%M"


class InvalidTurnsError(ValueError):
    """Raised when a turn list has no usable user message."""


def last_user_text(turns: Sequence[ChatTurn]) -> str:
    """Return the text of the most recent user turn."""

    if not isinstance(turns, Sequence) or isinstance(turns, str) or not turns:
        raise InvalidTurnsError("No valid user message found")
    for turn in reversed(turns):
        if isinstance(turn, ChatTurn) and turn.role == "user":
            # Only the newest user turn counts; an empty one never falls back to older turns.
            if not turn.text:
                break
            return turn.text
    raise InvalidTurnsError("No valid user message found")


def parse_scheduled_time(raw: str) -> datetime | None:
    """Parse ``YYYY-MM-DD HH:mm`` as server local time; None if it does not match."""

    candidate = raw.strip().strip("'\"")
    try:
        parsed = datetime.strptime(candidate, SCHEDULE_FORMAT)
    except ValueError:
        LOGGER.warning("Invalid scheduled date from classifier: %r", raw)
        return None
    return parsed.astimezone()


class IntentRouter:
    """Decides between conversation, immediate publish, and deferred publish."""

    def __init__(
        self,
        classifier: ClassifierGateway,
        publisher: Publisher,
        scheduler: DeferredPublishScheduler,
    ) -> None:
        self._classifier = classifier
        self._publisher = publisher
        self._scheduler = scheduler

    async def route(self, turns: Sequence[ChatTurn], credential: PublishCredential | None) -> RouteOutcome:
        user_text = last_user_text(turns)

        if await self._classifier.is_post_intent(user_text):
            LOGGER.debug("Post intent detected, publishing now")
            result = await self._publisher.publish_now(credential)
            if result.success:
                LOGGER.info("Published post on user request")
                reply = f"Post uploaded successfully! Message: {result.message}"
            else:
                LOGGER.warning("Publish on user request failed: %s", result.error)
                reply = "Post upload failed!"
            return RouteOutcome(
                verdict=IntentVerdict(IntentKind.PUBLISH_NOW),
                reply=reply,
                publish_result=result,
            )

        verdict = IntentVerdict(IntentKind.CONVERSE)
        scheduled = None
        error = None
        raw_date = await self._classifier.scheduled_post_time(user_text)
        if raw_date is not None:
            execute_at = parse_scheduled_time(raw_date)
            if execute_at is not None:
                verdict = IntentVerdict(IntentKind.PUBLISH_LATER, scheduled_at=execute_at)
                if credential is not None and credential.is_complete:
                    scheduled = self._scheduler.schedule(execute_at, credential)
                else:
                    LOGGER.warning("Schedule intent without page credentials; nothing registered")
                    error = "Missing pageId or pageAccessToken from session."

        reply = await self._classifier.converse(turns)
        return RouteOutcome(verdict=verdict, reply=reply, scheduled=scheduled, error=error)
