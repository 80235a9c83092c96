from dataclasses import dataclass, field

import pytest

from services.cart_service.saga import SagaOrchestrator


@dataclass
class Journal:
    events: list = field(default_factory=list)


def record(event):
    async def _step(ctx: Journal):
        ctx.events.append(event)
    return _step


async def explode(ctx: Journal):
    raise RuntimeError("kitchen closed")


async def broken_compensation(ctx: Journal):
    raise RuntimeError("undo failed")


async def test_steps_run_in_order_against_shared_context():
    ctx = Journal()
    saga = SagaOrchestrator[Journal]().add_step("a", record("a")).add_step("b", record("b"))

    assert await saga.execute(ctx) is None
    assert ctx.events == ["a", "b"]


async def test_failure_compensates_completed_steps_in_reverse():
    ctx = Journal()
    saga = (
        SagaOrchestrator[Journal]()
        .add_step("reserve", record("reserve"), record("release"))
        .add_step("notify", record("notify"))
        .add_step("charge", record("charge"), broken_compensation)
        .add_step("ship", explode, record("never"))
    )

    with pytest.raises(RuntimeError, match="kitchen closed"):
        await saga.execute(ctx)

    # A failing compensation does not stop the ones before it
    assert ctx.events == ["reserve", "notify", "charge", "release"]
