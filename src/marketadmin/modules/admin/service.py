"""Admin action pipeline.

Every governed change runs the same fixed sequence:

    rate limit -> authorize -> validate requested status -> load entity
    -> state machine -> update + commit -> [audit -> notify] -> respond

Everything up to the commit decides the response. Audit and notification
run afterwards on the best-effort dispatcher: their failures are logged and
recorded there, and the response is already 200.
"""

from enum import StrEnum
from typing import Annotated

import structlog
from structlog.typing import FilteringBoundLogger
from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketadmin.api.dependencies import DBSession, SessionFactory
from marketadmin.core.audit import AuditLogWriter
from marketadmin.core.auth import AuthorizationGuard, Guard
from marketadmin.core.clock import MonotonicClock, server_clock
from marketadmin.core.errors import (
    AppException,
    NotFoundError,
    PersistenceError,
    RateLimitError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from marketadmin.core.rate_limit import RateLimitGate, RateLimitGateDep, RateLimitResult, presets
from marketadmin.core.rate_limit.presets import RateLimitPreset
from marketadmin.core.tasks import BestEffortDispatcher, BestEffortStep, get_dispatcher
from marketadmin.modules.admin.actions import AdminActionRequest
from marketadmin.modules.admin.state_machine import (
    StatusTransition,
    transition,
    validate_requested,
)
from marketadmin.modules.admin.store import EntityStore, GovernedEntity, status_fields
from marketadmin.modules.notifications.service import NotificationService, NotificationSvc


log = structlog.get_logger()


class PipelineStage(StrEnum):
    """Stages a request can end in or pass through."""

    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    PERSIST_FAILED = "persist_failed"
    APPLIED = "applied"
    AUDIT_FAILED = "audit_failed"
    AUDIT_OK = "audit_ok"
    NOTIFY_FAILED = "notify_failed"
    NOTIFY_OK = "notify_ok"
    RESPONDED = "responded"


class AdminActionPipeline:
    """Applies administrative actions to governed entities.

    Attributes:
        gate: Rate limit gate, checked first
        guard: Admin authorization guard, checked second
        session: Session used to load and update the entity
        audit: Audit log writer, run best-effort
        notifications: Notification service, run best-effort
        dispatcher: Runs the best-effort steps
        preset: Rate limit preset for admin routes
        clock: Timestamp authority for status bookkeeping columns
    """

    def __init__(
        self,
        gate: RateLimitGate,
        guard: AuthorizationGuard,
        session: AsyncSession,
        audit: AuditLogWriter,
        notifications: NotificationService,
        dispatcher: BestEffortDispatcher,
        preset: RateLimitPreset = presets.admin,
        clock: MonotonicClock = server_clock,
    ) -> None:
        self.gate = gate
        self.guard = guard
        self.session = session
        self.store = EntityStore(session)
        self.audit = audit
        self.notifications = notifications
        self.dispatcher = dispatcher
        self.preset = preset
        self.clock = clock

    async def run(self, request: Request, action: AdminActionRequest) -> JSONResponse:
        """Run one action through the pipeline.

        Returns:
            200 response with ``success``, ``message`` and ``data``

        Raises:
            RateLimitError: 429, nothing else ran
            ServiceUnavailableError: 503, the rate limiter is down
            UnauthorizedError: 401, caller is not an administrator
            BadRequestError: 400, unreadable body
            InvalidTransitionError: 400, status outside the set or illegal move
            NotFoundError: 404, no such entity
            PersistenceError: 500, the update did not commit
        """
        bound = log.bind(
            action=str(action.audit_action),
            target_type=str(action.target_type),
            target_id=action.entity_id,
        )

        try:
            limit = await self.gate.check(request, self.preset)
        except (RateLimitError, ServiceUnavailableError):
            bound.info("admin_action_stage", stage=PipelineStage.RATE_LIMITED)
            raise

        try:
            return await self._apply(request, action, limit, bound)
        except AppException as exc:
            for name, value in limit.headers().items():
                exc.headers.setdefault(name, value)
            raise

    async def _apply(
        self,
        request: Request,
        action: AdminActionRequest,
        limit: RateLimitResult,
        bound: FilteringBoundLogger,
    ) -> JSONResponse:
        try:
            admin_id = await self.guard.authorize(request.headers.get("Authorization"))
        except UnauthorizedError:
            bound.info("admin_action_stage", stage=PipelineStage.UNAUTHORIZED)
            raise
        request.state.user_id = admin_id
        bound = bound.bind(admin_id=admin_id)

        try:
            requested = validate_requested(action.kind, await action.requested_status(request))
            entity = await self.store.get(action.kind, action.entity_id)
            change = transition(action.kind, entity.status, requested)
        except NotFoundError:
            bound.info("admin_action_stage", stage=PipelineStage.NOT_FOUND)
            raise
        except PersistenceError as exc:
            bound.warning(
                "admin_action_stage",
                stage=PipelineStage.PERSIST_FAILED,
                error_code=exc.error_code,
            )
            raise
        except AppException as exc:
            bound.info("admin_action_stage", stage=PipelineStage.INVALID, error_code=exc.error_code)
            raise

        await self._persist(action, admin_id, change, bound)
        bound.info(
            "admin_action_applied",
            stage=PipelineStage.APPLIED,
            previous_status=change.previous,
            new_status=change.new,
        )

        self._dispatch_follow_up(action, admin_id, entity, change, bound)

        response = JSONResponse(
            status_code=status.HTTP_200_OK,
            content={
                "success": True,
                "message": action.success_message(change),
                "data": action.response_data(change),
            },
            headers=limit.headers(),
        )
        bound.info("admin_action_stage", stage=PipelineStage.RESPONDED)
        return response

    async def _persist(
        self,
        action: AdminActionRequest,
        admin_id: str,
        change: StatusTransition,
        bound: FilteringBoundLogger,
    ) -> None:
        fields = status_fields(action.kind, change.new, admin_id, self.clock.now())
        try:
            await self.store.update(action.kind, action.entity_id, fields)
            await self.session.commit()
        except (NotFoundError, PersistenceError) as exc:
            await self.session.rollback()
            bound.warning(
                "admin_action_stage",
                stage=PipelineStage.PERSIST_FAILED,
                error_code=exc.error_code,
            )
            raise
        except SQLAlchemyError as exc:
            await self.session.rollback()
            bound.error("admin_action_stage", stage=PipelineStage.PERSIST_FAILED, error=str(exc))
            raise PersistenceError() from exc

    def _dispatch_follow_up(
        self,
        action: AdminActionRequest,
        admin_id: str,
        entity: GovernedEntity,
        change: StatusTransition,
        bound: FilteringBoundLogger,
    ) -> None:
        details = action.audit_details(entity, change)  # type: ignore[arg-type]
        notification = action.notification(entity, change)  # type: ignore[arg-type]

        async def write_audit() -> None:
            try:
                await self.audit.record_action(
                    admin_id, action.audit_action, action.entity_id, action.target_type, details
                )
            except Exception:
                bound.warning("admin_action_stage", stage=PipelineStage.AUDIT_FAILED)
                raise
            bound.info("admin_action_stage", stage=PipelineStage.AUDIT_OK)

        async def send_notification() -> None:
            if notification is None:
                bound.info("admin_action_notification_skipped", reason="no_recipient")
                return
            recipient_id, payload = notification
            try:
                await self.notifications.create(recipient_id, payload)
            except Exception:
                bound.warning("admin_action_stage", stage=PipelineStage.NOTIFY_FAILED)
                raise
            bound.info("admin_action_stage", stage=PipelineStage.NOTIFY_OK)

        self.dispatcher.dispatch(
            BestEffortStep("audit", write_audit),
            BestEffortStep("notify", send_notification),
            context={
                "action": str(action.audit_action),
                "target_id": action.entity_id,
                "admin_id": admin_id,
            },
        )


def get_admin_pipeline(
    request_session: DBSession,
    session_factory: SessionFactory,
    gate: RateLimitGateDep,
    guard: Guard,
    notifications: NotificationSvc,
    dispatcher: Annotated[BestEffortDispatcher, Depends(get_dispatcher)],
) -> AdminActionPipeline:
    """Dependency providing the admin pipeline for one request."""
    return AdminActionPipeline(
        gate=gate,
        guard=guard,
        session=request_session,
        audit=AuditLogWriter(session_factory),
        notifications=notifications,
        dispatcher=dispatcher,
    )


Pipeline = Annotated[AdminActionPipeline, Depends(get_admin_pipeline)]
