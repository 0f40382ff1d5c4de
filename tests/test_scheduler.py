import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from pagepilot.models import PublishCredential, PublishResult
from pagepilot.scheduler import DeferredPublishScheduler

START = datetime(2025, 12, 1, 8, 0).astimezone()


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance_to(self, when: datetime) -> None:
        self.now = when


def _scheduler(action, clock: FakeClock) -> DeferredPublishScheduler:
    return DeferredPublishScheduler(action=action, poll_interval_seconds=0.01, clock=clock)


@pytest.mark.asyncio
async def test_fires_once_at_scheduled_time_with_snapshot():
    clock = FakeClock(START)
    action = AsyncMock(return_value=PublishResult.ok("hi", post_id="1"))
    scheduler = _scheduler(action, clock)
    credential = PublishCredential(target_id="page-1", access_token="token-1")
    execute_at = START + timedelta(hours=1)

    task = scheduler.schedule(execute_at, credential)
    assert task.credential == credential
    assert task.credential is not credential

    clock.advance_to(execute_at)
    await asyncio.gather(*scheduler.fire_due())
    await asyncio.gather(*scheduler.fire_due())

    action.assert_awaited_once_with(credential)
    assert scheduler.pending() == []


@pytest.mark.asyncio
async def test_does_not_fire_before_time():
    clock = FakeClock(START)
    action = AsyncMock(return_value=PublishResult.ok("hi"))
    scheduler = _scheduler(action, clock)
    execute_at = START + timedelta(minutes=30)
    scheduler.schedule(execute_at, PublishCredential("page-1", "token-1"))

    clock.advance_to(execute_at - timedelta(seconds=1))
    assert scheduler.fire_due() == []

    action.assert_not_called()
    assert len(scheduler.pending()) == 1


@pytest.mark.asyncio
async def test_naive_time_is_read_as_local():
    clock = FakeClock(START)
    scheduler = _scheduler(AsyncMock(), clock)

    task = scheduler.schedule(datetime(2025, 12, 1, 9, 0), PublishCredential("page-1", "token-1"))

    assert task.execute_at.tzinfo is not None
    assert task.execute_at.replace(tzinfo=None) == datetime(2025, 12, 1, 9, 0)


@pytest.mark.asyncio
async def test_failure_is_not_retried():
    clock = FakeClock(START)
    action = AsyncMock(return_value=PublishResult.failure("Failed to post", {"error": "bad token"}))
    scheduler = _scheduler(action, clock)
    scheduler.schedule(START, PublishCredential("page-1", "token-1"))

    await asyncio.gather(*scheduler.fire_due())
    clock.advance_to(START + timedelta(days=1))
    await asyncio.gather(*scheduler.fire_due())

    assert action.await_count == 1
    assert scheduler.pending() == []


@pytest.mark.asyncio
async def test_raising_task_does_not_affect_others():
    clock = FakeClock(START)
    calls: list[str] = []

    async def action(credential: PublishCredential) -> PublishResult:
        calls.append(credential.target_id)
        if credential.target_id == "bad":
            raise RuntimeError("boom")
        return PublishResult.ok("fine")

    scheduler = _scheduler(action, clock)
    scheduler.schedule(START, PublishCredential("bad", "t"))
    scheduler.schedule(START, PublishCredential("good", "t"))

    await asyncio.gather(*scheduler.fire_due())

    assert sorted(calls) == ["bad", "good"]


@pytest.mark.asyncio
async def test_slow_task_does_not_block_later_task():
    clock = FakeClock(START)
    release = asyncio.Event()
    finished: list[str] = []

    async def action(credential: PublishCredential) -> PublishResult:
        if credential.target_id == "slow":
            await release.wait()
        finished.append(credential.target_id)
        return PublishResult.ok("ok")

    scheduler = _scheduler(action, clock)
    scheduler.schedule(START, PublishCredential("slow", "t"))
    slow_runners = scheduler.fire_due()

    scheduler.schedule(START + timedelta(minutes=1), PublishCredential("fast", "t"))
    clock.advance_to(START + timedelta(minutes=1))
    await asyncio.gather(*scheduler.fire_due())

    assert finished == ["fast"]
    release.set()
    await asyncio.gather(*slow_runners)
    assert finished == ["fast", "slow"]


@pytest.mark.asyncio
async def test_run_forever_fires_due_tasks_until_stopped():
    clock = FakeClock(START)
    fired = asyncio.Event()

    async def action(credential: PublishCredential) -> PublishResult:
        fired.set()
        return PublishResult.ok("ok")

    scheduler = _scheduler(action, clock)
    scheduler.schedule(START, PublishCredential("page-1", "t"))
    loop_task = asyncio.create_task(scheduler.run_forever())

    await asyncio.wait_for(fired.wait(), timeout=1)
    scheduler.stop()
    await asyncio.wait_for(loop_task, timeout=1)

    assert scheduler.pending() == []


def test_pending_is_sorted_by_time():
    clock = FakeClock(START)
    scheduler = _scheduler(AsyncMock(), clock)
    later = scheduler.schedule(START + timedelta(hours=2), PublishCredential("p", "t"))
    sooner = scheduler.schedule(START + timedelta(hours=1), PublishCredential("p", "t"))

    assert [task.id for task in scheduler.pending()] == [sooner.id, later.id]
