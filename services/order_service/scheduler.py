"""
Time-driven order status advancement.

Every ``interval_seconds`` the scheduler scans orders that are not yet
terminal and moves each one at most one step forward when enough wall-clock
time has passed since the order was created. Thresholds are measured from
``created_at``, so an order missed by a stopped scheduler catches up on the
following ticks, one step per tick.
"""
import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.observability import (
    food_order_transitions_total,
    food_scheduler_failures_total,
    food_scheduler_tick_duration_seconds,
)

from .lifecycle import OrderStatus, next_status, payment_status_on_delivery
from .models import utcnow
from .repository import OrderRepository

logger = structlog.get_logger(__name__)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class TickResult:
    scanned: int = 0
    advanced: int = 0
    conflicted: int = 0
    failed: int = 0
    skipped: bool = False


class OrderStatusScheduler:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        clock: Callable[[], datetime] = utcnow,
        interval_seconds: float = 60,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.interval_seconds = interval_seconds
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> TickResult:
        """Run one scan. Returns immediately with ``skipped=True`` if a tick is already in flight."""
        if self._lock.locked():
            logger.warning("status_tick_skipped", reason="previous tick still running")
            return TickResult(skipped=True)

        async with self._lock:
            started = time.perf_counter()
            result = TickResult()
            async with self.session_factory() as db:
                # Plain tuples: a rollback after one failed row expires every loaded ORM object
                rows = [
                    (o.id, o.status, o.payment_status, o.created_at)
                    for o in await OrderRepository.list_in_flight(db)
                ]
                now = self.clock()
                result.scanned = len(rows)
                for row in rows:
                    await self._advance(db, row, now, result)

            food_scheduler_tick_duration_seconds.observe(time.perf_counter() - started)
            logger.info(
                "status_tick_completed",
                scanned=result.scanned,
                advanced=result.advanced,
                conflicted=result.conflicted,
                failed=result.failed,
            )
            return result

    async def _advance(self, db: AsyncSession, row: tuple, now: datetime, result: TickResult):
        order_id, status, payment_status, created_at = row
        target = next_status(status, now - as_utc(created_at))
        if target is None:
            return

        values = {"status": target.value}
        expected = {"status": status}
        if target == OrderStatus.DELIVERED:
            new_payment_status = payment_status_on_delivery(payment_status)
            if new_payment_status != payment_status:
                values["payment_status"] = new_payment_status
                # Settlement is derived from the observed payment status
                expected["payment_status"] = payment_status

        try:
            applied = await OrderRepository.conditional_update(
                db, order_id, expected=expected, values=values
            )
        except Exception as e:
            # One bad row must not stop the rest of the batch
            await db.rollback()
            result.failed += 1
            food_scheduler_failures_total.inc()
            logger.error("status_advance_failed", order_id=order_id, status=status, error=str(e))
            return

        if not applied:
            result.conflicted += 1
            logger.info("status_advance_lost_race", order_id=order_id, **expected)
            return

        result.advanced += 1
        food_order_transitions_total.labels(status=target.value, source="scheduler").inc()
        logger.info(
            "order_status_advanced",
            order_id=order_id,
            previous=status,
            status=target.value,
            payment_status=values.get("payment_status", payment_status),
        )

    async def run_forever(self):
        logger.info("status_scheduler_started", interval_seconds=self.interval_seconds)
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.tick()
            except Exception as e:
                # Keep the loop alive: the next tick retries from scratch
                logger.error("status_tick_failed", error=str(e))

    def start(self):
        if not self.running:
            self._task = asyncio.create_task(self.run_forever())

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("status_scheduler_stopped")
