"""Status state machine for governed entities.

Each entity kind has an immutable policy: the set of statuses an
administrator may request and the transitions allowed between them.
Professionals move once, from pending to a decision. User accounts move
freely between any two statuses, including to the status they already
have.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

from marketadmin.core.errors import InvalidTransitionError
from marketadmin.modules.professionals.models import ProfessionalStatus
from marketadmin.modules.users.models import UserStatus


class EntityKind(StrEnum):
    """Kinds of entity whose status the admin pipeline governs."""

    PROFESSIONAL = "professional"
    USER = "user"


@dataclass(frozen=True, slots=True)
class StatusTransition:
    """A validated status change."""

    previous: str | None
    new: str


@dataclass(frozen=True, slots=True)
class StatusPolicy:
    """Legal statuses and transitions of one entity kind.

    Attributes:
        statuses: Every status the kind can hold
        transitions: Allowed targets keyed by current status
        default: Status assumed when none is stored
        invalid_state_message: Error message for an illegal transition
    """

    statuses: tuple[str, ...]
    transitions: Mapping[str, frozenset[str]]
    default: str | None = None
    invalid_state_message: str = "Invalid status transition"

    def allows(self, current: str | None, requested: str) -> bool:
        effective = current if current is not None else self.default
        if effective is None:
            return False
        return requested in self.transitions.get(effective, frozenset())


_USER_STATUSES = tuple(status.value for status in UserStatus)

POLICIES: Mapping[EntityKind, StatusPolicy] = MappingProxyType(
    {
        EntityKind.PROFESSIONAL: StatusPolicy(
            statuses=tuple(status.value for status in ProfessionalStatus),
            transitions=MappingProxyType(
                {
                    ProfessionalStatus.PENDING.value: frozenset(
                        {ProfessionalStatus.APPROVED.value, ProfessionalStatus.REJECTED.value}
                    ),
                }
            ),
            invalid_state_message="Professional not found in pending state",
        ),
        EntityKind.USER: StatusPolicy(
            statuses=_USER_STATUSES,
            transitions=MappingProxyType(
                {status: frozenset(_USER_STATUSES) for status in _USER_STATUSES}
            ),
            default=UserStatus.ACTIVE.value,
        ),
    }
)


def validate_requested(kind: EntityKind, requested: object) -> str:
    """Check a requested status against the kind's legal set.

    Runs before the entity is read, so out-of-range input never costs a
    database round trip.

    Raises:
        InvalidTransitionError: Not a string, or not a member of the set
    """
    policy = POLICIES[kind]
    if not isinstance(requested, str) or requested not in policy.statuses:
        raise InvalidTransitionError(
            f"Invalid status. Valid values: {', '.join(policy.statuses)}",
            details={"requested_status": requested if isinstance(requested, str) else None},
        )
    return requested


def transition(kind: EntityKind, current: str | None, requested: str) -> StatusTransition:
    """Validate moving an entity from its current status to the requested one.

    Args:
        kind: Entity kind
        current: Stored status, possibly None
        requested: Target status

    Returns:
        The transition; a missing stored status reads as the default

    Raises:
        InvalidTransitionError: The policy does not allow the move
    """
    requested = validate_requested(kind, requested)
    policy = POLICIES[kind]
    if not policy.allows(current, requested):
        raise InvalidTransitionError(
            policy.invalid_state_message,
            details={"current_status": current, "requested_status": requested},
        )
    previous = current if current is not None else policy.default
    return StatusTransition(previous=previous, new=requested)
