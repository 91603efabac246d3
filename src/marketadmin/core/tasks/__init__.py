"""Best-effort background work with its own error channel."""

from marketadmin.core.tasks.dispatch import (
    BestEffortDispatcher,
    BestEffortStep,
    StepFailure,
    StepOutcome,
    dispatcher,
    get_dispatcher,
)


__all__ = [
    "BestEffortDispatcher",
    "BestEffortStep",
    "StepFailure",
    "StepOutcome",
    "dispatcher",
    "get_dispatcher",
]
