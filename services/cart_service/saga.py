"""
Minimal saga runner for checkout.

Steps run in order against one shared context object. When a step raises,
the compensations of the steps that already completed run in reverse order
and the original exception is re-raised to the caller.
"""
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

import structlog

from shared.observability import food_saga_compensation_total

logger = structlog.get_logger(__name__)

Ctx = TypeVar("Ctx")
StepFn = Callable[[Ctx], Awaitable[None]]


@dataclass
class SagaStep(Generic[Ctx]):
    name: str
    action: StepFn
    compensation: Optional[StepFn] = None


class SagaOrchestrator(Generic[Ctx]):
    def __init__(self):
        self.steps: list[SagaStep] = []

    def add_step(self, name: str, action: StepFn, compensation: Optional[StepFn] = None):
        self.steps.append(SagaStep(name, action, compensation))
        return self

    async def execute(self, ctx: Ctx) -> None:
        completed: list[SagaStep] = []
        for step in self.steps:
            try:
                await step.action(ctx)
            except Exception as e:
                logger.error("saga_step_failed", step=step.name, error=str(e))
                await self._compensate(completed, ctx)
                raise
            completed.append(step)

    async def _compensate(self, completed: list[SagaStep], ctx: Ctx) -> None:
        logger.info("saga_rollback_started", steps=[s.name for s in completed])
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                await step.compensation(ctx)
            except Exception as ce:
                # Remaining compensations still run
                logger.critical("saga_compensation_failed", step=step.name, error=str(ce))
                continue
            food_saga_compensation_total.labels(step_name=step.name).inc()
            logger.info("saga_compensation_succeeded", step=step.name)
