"""Async scheduler for deferred publish actions.

Pending tasks are held in memory only; a process restart drops them.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import replace
from datetime import datetime
from typing import Awaitable, Callable

from pagepilot.models import PublishCredential, PublishResult, ScheduledPublish

LOGGER = logging.getLogger(__name__)

PublishAction = Callable[[PublishCredential], Awaitable[PublishResult]]


def _local_now() -> datetime:
    return datetime.now().astimezone()


class DeferredPublishScheduler:
    """Polls pending publishes and fires each exactly once when due."""

    def __init__(
        self,
        action: PublishAction,
        poll_interval_seconds: float = 0.5,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._action = action
        self._poll_interval_seconds = poll_interval_seconds
        self._clock = clock
        self._ids = itertools.count(1)
        self._pending: dict[int, ScheduledPublish] = {}
        self._in_flight: set[asyncio.Task[None]] = set()
        self._stop_event = asyncio.Event()

    def schedule(self, execute_at: datetime, credential: PublishCredential) -> ScheduledPublish:
        """Register a publish for ``execute_at`` using a copy of ``credential``."""

        if execute_at.tzinfo is None:
            execute_at = execute_at.astimezone()
        task = ScheduledPublish(
            id=next(self._ids),
            execute_at=execute_at,
            credential=replace(credential),
            created_at=self._clock(),
        )
        self._pending[task.id] = task
        LOGGER.info(
            "Scheduled publish %d for %s on page %s",
            task.id,
            task.execute_at.isoformat(),
            credential.target_id,
        )
        return task

    def pending(self) -> list[ScheduledPublish]:
        """Return tasks that have not fired yet, earliest first."""

        return sorted(self._pending.values(), key=lambda task: task.execute_at)

    def fire_due(self, now: datetime | None = None) -> list[asyncio.Task[None]]:
        """Start every task whose time has come and drop it from the pending set."""

        now = now or self._clock()
        due = [task for task in self.pending() if task.execute_at <= now]
        started: list[asyncio.Task[None]] = []
        for task in due:
            del self._pending[task.id]
            runner = asyncio.create_task(self._execute(task), name=f"scheduled-publish-{task.id}")
            self._in_flight.add(runner)
            runner.add_done_callback(self._in_flight.discard)
            started.append(runner)
        return started

    async def run_forever(self) -> None:
        """Run scheduler loop until stop() is called."""

        while not self._stop_event.is_set():
            self.fire_due()
            await asyncio.sleep(self._poll_interval_seconds)

    def stop(self) -> None:
        """Signal the loop to stop."""

        self._stop_event.set()

    async def _execute(self, task: ScheduledPublish) -> None:
        LOGGER.info("Scheduled publish %d triggered at %s", task.id, self._clock().isoformat())
        try:
            result = await self._action(task.credential)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Scheduled publish %d raised; not retrying", task.id)
            return
        if result.success:
            LOGGER.info("Scheduled publish %d succeeded: %s", task.id, result.post_id)
        else:
            LOGGER.error(
                "Scheduled publish %d failed; not retrying: %s %s",
                task.id,
                result.error,
                result.details,
            )
