"""Timed update cycles and history flushes.

Timing decisions live in a ``TriggerPolicy`` so they can be tested against a
fixed clock; ``PriceTrackerService`` only sleeps until the policy's next
fire time and hands the work to the orchestrator.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
import math
from collections.abc import Awaitable, Callable
from typing import Protocol

from pricetracker.config.settings import ScheduleSettings
from pricetracker.orchestration.orchestrator import ConcurrentUpdateRejected, UpdateOrchestrator
from pricetracker.schemas.prices import CycleSummary

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class TriggerPolicy(Protocol):
    def is_active(self, moment: datetime.datetime) -> bool: ...

    def interval(self, moment: datetime.datetime) -> datetime.timedelta: ...

    def next_fire(self, after: datetime.datetime) -> datetime.datetime: ...


class ActiveHoursPolicy:
    """Dense cadence between ``start_hour`` and ``end_hour`` (inclusive), sparse outside.

    Fire times are wall-clock boundaries of the applicable interval, counted
    from midnight: every 5 minutes at 06:00-22:59 and on the hour otherwise
    with the defaults.
    """

    def __init__(
        self,
        start_hour: int = 6,
        end_hour: int = 22,
        active_interval: datetime.timedelta = datetime.timedelta(minutes=5),
        idle_interval: datetime.timedelta = datetime.timedelta(minutes=60),
    ) -> None:
        self.start_hour = start_hour
        self.end_hour = end_hour
        self.active_minutes = _whole_minutes(active_interval)
        self.idle_minutes = _whole_minutes(idle_interval)

    @classmethod
    def from_settings(cls, schedule: ScheduleSettings) -> ActiveHoursPolicy:
        return cls(
            start_hour=schedule.active_start_hour,
            end_hour=schedule.active_end_hour,
            active_interval=datetime.timedelta(minutes=schedule.active_interval_minutes),
            idle_interval=datetime.timedelta(minutes=schedule.idle_interval_minutes),
        )

    def is_active(self, moment: datetime.datetime) -> bool:
        return self.start_hour <= moment.hour <= self.end_hour

    def interval(self, moment: datetime.datetime) -> datetime.timedelta:
        minutes = self.active_minutes if self.is_active(moment) else self.idle_minutes
        return datetime.timedelta(minutes=minutes)

    def is_fire_time(self, moment: datetime.datetime) -> bool:
        if moment.second or moment.microsecond:
            return False
        minute_of_day = moment.hour * 60 + moment.minute
        minutes = self.active_minutes if self.is_active(moment) else self.idle_minutes
        return minute_of_day % minutes == 0

    def next_fire(self, after: datetime.datetime) -> datetime.datetime:
        step = math.gcd(self.active_minutes, self.idle_minutes)
        candidate = after.replace(second=0, microsecond=0)
        minute_of_day = candidate.hour * 60 + candidate.minute
        candidate += datetime.timedelta(minutes=step - minute_of_day % step)
        # Two days of steps always contains a boundary of either interval.
        for _ in range(2 * 24 * 60 // step + 1):
            if self.is_fire_time(candidate):
                return candidate
            candidate += datetime.timedelta(minutes=step)
        raise RuntimeError("No fire time found within two days")


def _whole_minutes(interval: datetime.timedelta) -> int:
    minutes = int(interval.total_seconds() // 60)
    if minutes <= 0:
        raise ValueError("Intervals must be at least one minute")
    return minutes


class PriceTrackerService:
    """Background loops driving the orchestrator: timed cycles and periodic flushes."""

    def __init__(
        self,
        orchestrator: UpdateOrchestrator,
        policy: TriggerPolicy,
        flush_interval: datetime.timedelta = datetime.timedelta(minutes=15),
        now: Callable[[], datetime.datetime] = datetime.datetime.now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.orchestrator = orchestrator
        self.policy = policy
        self.flush_interval = flush_interval
        self._now = now
        self._sleep = sleep
        self._running = False
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        await self.orchestrator.load()
        self._running = True
        self._tasks = [
            asyncio.create_task(self._update_loop(), name="price-updates"),
            asyncio.create_task(self._flush_loop(), name="history-flush"),
        ]
        logger.info("Scheduled updates started")

    async def stop(self) -> None:
        """Cancel the loops and flush history one last time."""
        logger.info("Shutting down gracefully...")
        self._running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        await self.orchestrator.save()

    async def trigger(self) -> CycleSummary | None:
        try:
            return await self.orchestrator.run_cycle()
        except ConcurrentUpdateRejected:
            logger.info("Scheduled update skipped, a cycle is already running")
        except Exception:
            logger.exception("Update cycle failed")
        return None

    async def _update_loop(self) -> None:
        while self._running:
            now = self._now()
            fire_at = self.policy.next_fire(now)
            await self._sleep(max((fire_at - now).total_seconds(), 0.0))
            if not self._running:
                break
            await self.trigger()

    async def _flush_loop(self) -> None:
        while self._running:
            await self._sleep(self.flush_interval.total_seconds())
            if not self._running:
                break
            await self.orchestrator.save()
