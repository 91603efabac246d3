"""Notification content for admin decisions."""

from marketadmin.modules.notifications.models import NotificationType
from marketadmin.modules.notifications.schemas import NotificationPayload


def professional_approved(professional_id: str) -> NotificationPayload:
    return NotificationPayload(
        type=NotificationType.PROFESSIONAL_APPROVED,
        title="Profile approved",
        message="Your professional profile has been approved and is now visible to patients.",
        action_url="/dashboard/profile",
        metadata={"professional_id": professional_id},
    )


def professional_rejected(professional_id: str) -> NotificationPayload:
    return NotificationPayload(
        type=NotificationType.PROFESSIONAL_REJECTED,
        title="Profile not approved",
        message="Your professional profile was not approved. Contact support for details.",
        action_url="/dashboard/profile",
        metadata={"professional_id": professional_id},
    )


def account_status_changed(previous: str | None, new: str) -> NotificationPayload:
    return NotificationPayload(
        type=NotificationType.ACCOUNT_STATUS_CHANGED,
        title="Account status updated",
        message=f"Your account status is now {new}.",
        action_url="/dashboard/account",
        metadata={"previous_status": previous, "new_status": new},
    )
