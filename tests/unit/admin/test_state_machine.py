"""Tests for the entity status state machine."""

import pytest

from marketadmin.core.errors import InvalidTransitionError
from marketadmin.modules.admin.state_machine import (
    POLICIES,
    EntityKind,
    StatusTransition,
    transition,
    validate_requested,
)


USER_STATUSES = ["active", "under_review", "rejected", "inactive"]


class TestValidateRequested:
    """Tests for requested status validation."""

    @pytest.mark.parametrize("status", USER_STATUSES)
    def test_user_statuses(self, status):
        assert validate_requested(EntityKind.USER, status) == status

    @pytest.mark.parametrize("status", ["banned", "", "ACTIVE", None, 1, ["active"]])
    def test_user_rejects_out_of_set(self, status):
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_requested(EntityKind.USER, status)

        assert exc_info.value.status_code == 400
        assert "active, under_review, rejected, inactive" in exc_info.value.message

    def test_professional_rejects_unknown(self):
        with pytest.raises(InvalidTransitionError):
            validate_requested(EntityKind.PROFESSIONAL, "suspended")


class TestProfessionalTransitions:
    """Professionals move once, from pending."""

    @pytest.mark.parametrize("requested", ["approved", "rejected"])
    def test_from_pending(self, requested):
        assert transition(EntityKind.PROFESSIONAL, "pending", requested) == StatusTransition(
            previous="pending", new=requested
        )

    @pytest.mark.parametrize("current", ["approved", "rejected"])
    @pytest.mark.parametrize("requested", ["approved", "rejected"])
    def test_decided_is_terminal(self, current, requested):
        with pytest.raises(InvalidTransitionError) as exc_info:
            transition(EntityKind.PROFESSIONAL, current, requested)

        assert exc_info.value.message == "Professional not found in pending state"

    def test_pending_to_pending_is_illegal(self):
        with pytest.raises(InvalidTransitionError):
            transition(EntityKind.PROFESSIONAL, "pending", "pending")

    def test_missing_status_is_illegal(self):
        with pytest.raises(InvalidTransitionError):
            transition(EntityKind.PROFESSIONAL, None, "approved")


class TestUserTransitions:
    """User accounts move between any two statuses."""

    @pytest.mark.parametrize("current", USER_STATUSES)
    @pytest.mark.parametrize("requested", USER_STATUSES)
    def test_any_to_any(self, current, requested):
        assert transition(EntityKind.USER, current, requested) == StatusTransition(
            previous=current, new=requested
        )

    def test_missing_status_reads_as_active(self):
        assert transition(EntityKind.USER, None, "inactive") == StatusTransition(
            previous="active", new="inactive"
        )

    def test_invalid_requested(self):
        with pytest.raises(InvalidTransitionError):
            transition(EntityKind.USER, "active", "banned")


class TestPolicies:
    """Policies are fixed at import."""

    def test_policies_are_read_only(self):
        with pytest.raises(TypeError):
            POLICIES[EntityKind.USER] = POLICIES[EntityKind.PROFESSIONAL]  # type: ignore[index]

    def test_transitions_are_read_only(self):
        with pytest.raises(TypeError):
            POLICIES[EntityKind.PROFESSIONAL].transitions["approved"] = frozenset()  # type: ignore[index]
