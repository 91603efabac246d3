"""Best-effort task dispatch.

Work that follows an already committed change (audit entries,
notifications) runs here, detached from the request. Each step's failure
is caught and reported on the dispatcher's own error channel; it never
reaches the request's result, and it never stops later steps.
"""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from marketadmin.core.constants import RECENT_FAILURES_SIZE


log = structlog.get_logger()


@dataclass(frozen=True)
class BestEffortStep:
    """A named unit of work whose failure is non-fatal."""

    name: str
    run: Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class StepFailure:
    """Record of one failed best-effort step."""

    step: str
    error_type: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class StepOutcome:
    """Result of one best-effort step."""

    step: str
    ok: bool
    failure: StepFailure | None = None


FailureListener = Callable[[StepFailure], None]


class BestEffortDispatcher:
    """Runs best-effort steps as tracked background tasks.

    Steps passed to one dispatch call run sequentially in order. The
    dispatcher keeps strong references to its tasks until they finish and
    can drain them on shutdown.

    Attributes:
        recent_failures: Bounded history of failures, newest last
    """

    def __init__(self, history_size: int = RECENT_FAILURES_SIZE) -> None:
        self._tasks: set[asyncio.Task[list[StepOutcome]]] = set()
        self._listeners: list[FailureListener] = []
        self.recent_failures: deque[StepFailure] = deque(maxlen=history_size)

    @property
    def pending(self) -> int:
        """Number of dispatched jobs still running."""
        return len(self._tasks)

    def add_failure_listener(self, listener: FailureListener) -> Callable[[], None]:
        """Register a callback for failures. Returns a function removing it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def dispatch(
        self,
        *steps: BestEffortStep,
        context: dict[str, Any] | None = None,
    ) -> asyncio.Task[list[StepOutcome]]:
        """Schedule steps to run in order without waiting for them.

        Args:
            *steps: Steps to run sequentially
            context: Fields attached to every log line and failure record

        Returns:
            The background task, resolving to one outcome per step
        """
        task = asyncio.create_task(self._run(steps, dict(context or {})))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(
        self, steps: tuple[BestEffortStep, ...], context: dict[str, Any]
    ) -> list[StepOutcome]:
        outcomes: list[StepOutcome] = []
        for step in steps:
            try:
                await step.run()
            except Exception as exc:
                failure = StepFailure(
                    step=step.name,
                    error_type=type(exc).__name__,
                    message=str(exc),
                    context=context,
                )
                self._report(failure, exc)
                outcomes.append(StepOutcome(step=step.name, ok=False, failure=failure))
            else:
                log.debug("best_effort_step_succeeded", step=step.name, **context)
                outcomes.append(StepOutcome(step=step.name, ok=True))
        return outcomes

    def _report(self, failure: StepFailure, exc: Exception) -> None:
        self.recent_failures.append(failure)
        log.error(
            "best_effort_step_failed",
            step=failure.step,
            error_type=failure.error_type,
            error=failure.message,
            exc_info=exc,
            **failure.context,
        )
        for listener in list(self._listeners):
            try:
                listener(failure)
            except Exception:
                log.exception("failure_listener_error", step=failure.step)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for dispatched jobs to finish.

        Jobs still running after the timeout are cancelled.
        """
        if not self._tasks:
            return
        tasks = list(self._tasks)
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            log.warning("best_effort_task_cancelled", task=task.get_name())
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


dispatcher = BestEffortDispatcher()


def get_dispatcher() -> BestEffortDispatcher:
    """Dependency returning the process-wide dispatcher."""
    return dispatcher
