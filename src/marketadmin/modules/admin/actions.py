"""Administrative actions the pipeline can apply.

An action names the entity it governs, the status it requests, how the
change is audited and who is told about it.
"""

import json
from dataclasses import dataclass
from typing import Any, ClassVar

from fastapi import Request

from marketadmin.core.audit import AdminAction, TargetType
from marketadmin.core.errors import BadRequestError
from marketadmin.modules.admin.state_machine import EntityKind, StatusTransition
from marketadmin.modules.notifications import messages
from marketadmin.modules.notifications.schemas import NotificationPayload
from marketadmin.modules.professionals.models import Professional, ProfessionalStatus
from marketadmin.modules.users.models import User, UserStatus


USER_STATUS_LABELS = {
    UserStatus.ACTIVE.value: "Active",
    UserStatus.UNDER_REVIEW.value: "Under review",
    UserStatus.REJECTED.value: "Rejected",
    UserStatus.INACTIVE.value: "Inactive",
}


@dataclass(frozen=True)
class ApproveProfessional:
    """Approve a pending professional."""

    professional_id: str

    kind: ClassVar[EntityKind] = EntityKind.PROFESSIONAL
    audit_action: ClassVar[AdminAction] = AdminAction.APPROVE_PROFESSIONAL
    target_type: ClassVar[TargetType] = TargetType.PROFESSIONAL
    status: ClassVar[str] = ProfessionalStatus.APPROVED.value

    @property
    def entity_id(self) -> str:
        return self.professional_id

    async def requested_status(self, request: Request) -> object:
        return self.status

    def audit_details(self, entity: Professional, change: StatusTransition) -> dict[str, Any]:
        return {
            "previous_status": change.previous,
            "new_status": change.new,
            "professional_name": entity.name,
            "professional_email": entity.email,
        }

    def notification(
        self, entity: Professional, change: StatusTransition
    ) -> tuple[str, NotificationPayload] | None:
        if entity.user_id is None:
            return None
        return entity.user_id, messages.professional_approved(self.professional_id)

    def success_message(self, change: StatusTransition) -> str:
        return "Professional approved successfully"

    def response_data(self, change: StatusTransition) -> dict[str, Any]:
        return {
            "professional_id": self.professional_id,
            "previous_status": change.previous,
            "new_status": change.new,
        }


@dataclass(frozen=True)
class RejectProfessional(ApproveProfessional):
    """Reject a pending professional."""

    audit_action: ClassVar[AdminAction] = AdminAction.REJECT_PROFESSIONAL
    status: ClassVar[str] = ProfessionalStatus.REJECTED.value

    def notification(
        self, entity: Professional, change: StatusTransition
    ) -> tuple[str, NotificationPayload] | None:
        if entity.user_id is None:
            return None
        return entity.user_id, messages.professional_rejected(self.professional_id)

    def success_message(self, change: StatusTransition) -> str:
        return "Professional rejected successfully"


@dataclass(frozen=True)
class ChangeUserStatus:
    """Set a user account's status.

    When ``requested`` is None the status is read from the request's JSON
    body, which only happens after rate limiting and authorization.
    """

    user_id: str
    requested: str | None = None

    kind: ClassVar[EntityKind] = EntityKind.USER
    audit_action: ClassVar[AdminAction] = AdminAction.UPDATE_USER_STATUS
    target_type: ClassVar[TargetType] = TargetType.USER

    @property
    def entity_id(self) -> str:
        return self.user_id

    async def requested_status(self, request: Request) -> object:
        if self.requested is not None:
            return self.requested

        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise BadRequestError(
                "Request body must be valid JSON",
                error_code="invalid_body",
            ) from exc

        if not isinstance(body, dict):
            raise BadRequestError(
                "Request body must be a JSON object",
                error_code="invalid_body",
            )
        return body.get("status")

    def audit_details(self, entity: User, change: StatusTransition) -> dict[str, Any]:
        return {
            "previous_status": change.previous,
            "new_status": change.new,
            "user_name": entity.name or "Unknown",
            "user_email": entity.email or "Unknown",
        }

    def notification(
        self, entity: User, change: StatusTransition
    ) -> tuple[str, NotificationPayload] | None:
        return self.user_id, messages.account_status_changed(change.previous, change.new)

    def success_message(self, change: StatusTransition) -> str:
        return f'Status updated to "{USER_STATUS_LABELS[change.new]}".'

    def response_data(self, change: StatusTransition) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "previous_status": change.previous,
            "new_status": change.new,
        }


AdminActionRequest = ApproveProfessional | RejectProfessional | ChangeUserStatus
