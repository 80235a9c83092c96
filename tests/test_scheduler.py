from datetime import timedelta

from conftest import INTERNAL_HEADERS

from services.order_service.repository import OrderRepository
from services.order_service.scheduler import OrderStatusScheduler, as_utc
from shared.config.database import AsyncSessionLocal


async def _created_at(order_id):
    async with AsyncSessionLocal() as db:
        order = await OrderRepository.get_order(db, order_id)
        return as_utc(order.created_at)


async def _status(order_id):
    async with AsyncSessionLocal() as db:
        order = await OrderRepository.get_order(db, order_id)
        return order.status, order.payment_status


def _scheduler_at(created_at, minutes):
    return OrderStatusScheduler(AsyncSessionLocal, clock=lambda: created_at + timedelta(minutes=minutes))


async def test_fresh_order_is_left_alone(place_order):
    order = await place_order()
    created_at = await _created_at(order["id"])

    result = await _scheduler_at(created_at, 4).tick()

    assert result.scanned == 1
    assert result.advanced == 0
    assert await _status(order["id"]) == ("pending", "pending")


async def test_order_moves_to_preparing_after_five_minutes(place_order):
    order = await place_order()
    created_at = await _created_at(order["id"])
    scheduler = _scheduler_at(created_at, 5)

    result = await scheduler.tick()
    assert result.advanced == 1
    assert await _status(order["id"]) == ("preparing", "pending")

    # Same clock: ready is not due until ten minutes
    result = await scheduler.tick()
    assert result.advanced == 0
    assert await _status(order["id"]) == ("preparing", "pending")


async def test_late_order_catches_up_one_step_per_tick(place_order):
    order = await place_order()
    created_at = await _created_at(order["id"])
    scheduler = _scheduler_at(created_at, 26)

    seen = []
    for _ in range(4):
        await scheduler.tick()
        seen.append(await _status(order["id"]))

    assert seen == [
        ("preparing", "pending"),
        ("ready", "pending"),
        ("out_for_delivery", "pending"),
        ("delivered", "paid"),
    ]

    # Delivered orders are no longer scanned
    result = await scheduler.tick()
    assert result.scanned == 0


async def test_cancelled_order_is_never_advanced(client, place_order, customer_headers):
    order = await place_order()
    created_at = await _created_at(order["id"])
    resp = await client.put(f"/orders/{order['id']}/cancel", headers=customer_headers)
    assert resp.status_code == 200

    scheduler = _scheduler_at(created_at, 60)
    for _ in range(4):
        result = await scheduler.tick()
        assert result.advanced == 0

    assert await _status(order["id"]) == ("cancelled", "pending")


async def test_tick_is_skipped_while_another_is_running(place_order):
    order = await place_order()
    scheduler = _scheduler_at(await _created_at(order["id"]), 30)

    async with scheduler._lock:
        result = await scheduler.tick()

    assert result.skipped
    assert result.scanned == 0
    assert await _status(order["id"]) == ("pending", "pending")


async def test_failure_on_one_order_does_not_stop_the_batch(place_order, monkeypatch):
    broken = await place_order()
    healthy = await place_order()
    created_at = await _created_at(healthy["id"])

    original = OrderRepository.conditional_update

    async def flaky_update(db, order_id, expected, values):
        if order_id == broken["id"]:
            raise RuntimeError("disk on fire")
        return await original(db, order_id, expected, values)

    monkeypatch.setattr(OrderRepository, "conditional_update", staticmethod(flaky_update))

    result = await _scheduler_at(created_at, 30).tick()

    assert result.failed == 1
    assert result.advanced == 1
    assert await _status(broken["id"]) == ("pending", "pending")
    assert await _status(healthy["id"]) == ("preparing", "pending")


async def test_conditional_update_refuses_stale_expectation(place_order):
    order = await place_order()

    async with AsyncSessionLocal() as db:
        applied = await OrderRepository.conditional_update(
            db, order["id"], expected={"status": "preparing"}, values={"status": "ready"}
        )
        assert applied is False

        applied = await OrderRepository.conditional_update(
            db, order["id"], expected={"status": "pending"}, values={"status": "preparing"}
        )
        assert applied is True

    assert await _status(order["id"]) == ("preparing", "pending")


async def test_lost_race_is_counted_as_conflict(place_order, monkeypatch):
    order = await place_order()
    created_at = await _created_at(order["id"])

    original_list = OrderRepository.list_in_flight

    async def list_then_cancel(db):
        rows = await original_list(db)
        # Another writer cancels between the scan and the update
        async with AsyncSessionLocal() as other:
            await OrderRepository.conditional_update(
                other, order["id"], expected={"status": "pending"}, values={"status": "cancelled"}
            )
        return rows

    monkeypatch.setattr(OrderRepository, "list_in_flight", staticmethod(list_then_cancel))

    result = await _scheduler_at(created_at, 30).tick()

    assert result.conflicted == 1
    assert result.advanced == 0
    assert await _status(order["id"]) == ("cancelled", "pending")


async def test_delivery_does_not_overwrite_refund_made_after_the_scan(place_order, monkeypatch):
    order = await place_order()
    created_at = await _created_at(order["id"])

    async with AsyncSessionLocal() as db:
        applied = await OrderRepository.conditional_update(
            db,
            order["id"],
            expected={"status": "pending"},
            values={"status": "out_for_delivery", "payment_status": "failed"},
        )
        assert applied is True

    original_list = OrderRepository.list_in_flight

    async def list_then_refund(db):
        rows = await original_list(db)
        # The customer pays and is refunded while the tick holds the failed snapshot
        async with AsyncSessionLocal() as other:
            for previous, target in (("failed", "paid"), ("paid", "refunded")):
                await OrderRepository.conditional_update(
                    other, order["id"], expected={"payment_status": previous}, values={"payment_status": target}
                )
        return rows

    monkeypatch.setattr(OrderRepository, "list_in_flight", staticmethod(list_then_refund))
    scheduler = _scheduler_at(created_at, 30)

    result = await scheduler.tick()
    assert result.conflicted == 1
    assert result.advanced == 0
    assert await _status(order["id"]) == ("out_for_delivery", "refunded")

    # The next tick sees the refund and keeps it
    monkeypatch.setattr(OrderRepository, "list_in_flight", staticmethod(original_list))
    result = await scheduler.tick()
    assert result.advanced == 1
    assert await _status(order["id"]) == ("delivered", "refunded")


async def test_internal_tick_requires_api_key(client, database):
    resp = await client.post("/orders/internal/tick")
    assert resp.status_code == 403

    resp = await client.post("/orders/internal/tick", headers={"X-Internal-API-Key": "wrong"})
    assert resp.status_code == 403

    resp = await client.post("/orders/internal/tick", headers=INTERNAL_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"scanned": 0, "advanced": 0, "conflicted": 0, "failed": 0, "skipped": False}
