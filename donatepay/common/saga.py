"""Sequential saga runner with an opt-in compensation policy.

Steps run strictly one after another; each step's result is stored in the
shared context under the step name so later steps can read the identifiers
produced earlier. When a step raises, the completed steps are either left as
they are (`none`) or undone in reverse order (`compensate`).
"""

from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Awaitable, Callable

from donatepay.common.logging import logger
from donatepay.common.metrics import (
    saga_compensations_total,
    saga_step_duration_seconds,
    saga_step_failures_total,
)
from donatepay.common.tracing import get_tracer

COMPENSATION_POLICIES = ("none", "compensate")

tracer = get_tracer("donatepay.saga")


@dataclass
class SagaStep:
    """One remote mutation plus the action that would undo it."""

    name: str
    action: Callable[[dict[str, Any]], Awaitable[Any]]
    compensate: Callable[[Any], Awaitable[None]] | None = None


@dataclass
class Saga:
    """Per-request saga execution state."""

    policy: str = "none"
    service_name: str = "donation-subscriptions"
    context: dict[str, Any] = field(default_factory=dict)
    completed: list[tuple[SagaStep, Any]] = field(default_factory=list)
    compensated: bool = False

    def __post_init__(self) -> None:
        if self.policy not in COMPENSATION_POLICIES:
            raise ValueError(f"Unknown compensation policy: {self.policy}")

    async def run(self, steps: list[SagaStep]) -> dict[str, Any]:
        """Execute `steps` in order and return the accumulated context."""

        for step in steps:
            start = perf_counter()
            with tracer.start_as_current_span(f"saga.{step.name}"):
                try:
                    result = await step.action(self.context)
                except Exception:
                    saga_step_failures_total.labels(service=self.service_name, step=step.name).inc()
                    logger.warning(
                        "saga_step_failed step=%s completed=%s policy=%s",
                        step.name,
                        [done.name for done, _ in self.completed],
                        self.policy,
                    )
                    self.compensated = await self.unwind()
                    raise
                finally:
                    saga_step_duration_seconds.labels(service=self.service_name, step=step.name).observe(
                        max(0.0, perf_counter() - start)
                    )
            self.context[step.name] = result
            self.completed.append((step, result))
        return self.context

    async def unwind(self) -> bool:
        """Undo completed steps in reverse order when the policy allows it.

        Returns True when at least one compensating action ran. Compensation errors are logged and
        counted; they never replace the failure that triggered the unwind.
        """

        if self.policy != "compensate":
            return False
        ran = False
        while self.completed:
            step, result = self.completed.pop()
            if step.compensate is None:
                continue
            ran = True
            try:
                await step.compensate(result)
            except Exception as exc:
                saga_compensations_total.labels(
                    service=self.service_name, step=step.name, result="error"
                ).inc()
                logger.error("saga_compensation_failed step=%s error=%s", step.name, exc)
                continue
            saga_compensations_total.labels(service=self.service_name, step=step.name, result="ok").inc()
            logger.info("saga_compensated step=%s", step.name)
        return ran
