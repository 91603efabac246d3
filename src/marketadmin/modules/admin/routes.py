"""Admin API routes.

The mutation routes hand the raw request to the pipeline, which enforces
rate limiting and authorization before anything else, including reading
the body.
"""

from typing import Annotated

from fastapi import Depends, Query, Request
from fastapi.responses import JSONResponse

from marketadmin.api.dependencies import SessionFactory
from marketadmin.core.audit import AdminAction, AuditLogFilters, AuditLogWriter, TargetType
from marketadmin.core.auth import AdminId
from marketadmin.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from marketadmin.core.errors import ProblemDetail
from marketadmin.core.rate_limit import presets, rate_limit
from marketadmin.modules.admin import router
from marketadmin.modules.admin.actions import (
    ApproveProfessional,
    ChangeUserStatus,
    RejectProfessional,
)
from marketadmin.modules.admin.schemas import (
    AdminActionResponse,
    AuditLogPage,
    AuditLogRead,
    UserStatusUpdate,
)
from marketadmin.modules.admin.service import Pipeline


ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ProblemDetail, "description": "Invalid status or transition"},
    401: {"model": ProblemDetail, "description": "Not an administrator"},
    404: {"model": ProblemDetail, "description": "Entity not found"},
    429: {"model": ProblemDetail, "description": "Rate limit exceeded"},
    500: {"model": ProblemDetail, "description": "Update could not be persisted"},
    503: {"model": ProblemDetail, "description": "Rate limiter unavailable"},
}


# ============================================================
# Professionals
# ============================================================


@router.post(
    "/professionals/{professional_id}/approve",
    response_model=AdminActionResponse,
    responses=ERROR_RESPONSES,
    summary="Approve professional",
    description="Approve a pending professional. Audited and notified.",
)
async def approve_professional(
    professional_id: str,
    request: Request,
    pipeline: Pipeline,
) -> JSONResponse:
    return await pipeline.run(request, ApproveProfessional(professional_id))


@router.post(
    "/professionals/{professional_id}/reject",
    response_model=AdminActionResponse,
    responses=ERROR_RESPONSES,
    summary="Reject professional",
    description="Reject a pending professional. Audited and notified.",
)
async def reject_professional(
    professional_id: str,
    request: Request,
    pipeline: Pipeline,
) -> JSONResponse:
    return await pipeline.run(request, RejectProfessional(professional_id))


# ============================================================
# Users
# ============================================================


@router.post(
    "/users/{user_id}/status",
    response_model=AdminActionResponse,
    responses=ERROR_RESPONSES,
    summary="Update user status",
    description="Set a user account's status. Re-applying the current status is allowed.",
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": UserStatusUpdate.model_json_schema()}},
        }
    },
)
async def update_user_status(
    user_id: str,
    request: Request,
    pipeline: Pipeline,
) -> JSONResponse:
    return await pipeline.run(request, ChangeUserStatus(user_id))


# ============================================================
# Audit Logs
# ============================================================


@router.get(
    "/audit-logs",
    response_model=AuditLogPage,
    summary="List audit logs",
    description="Audit entries, newest first, optionally filtered.",
    dependencies=[Depends(rate_limit(presets.admin))],
)
async def list_audit_logs(
    _admin_id: AdminId,
    session_factory: SessionFactory,
    action: AdminAction | None = None,
    target_type: TargetType | None = None,
    target_id: str | None = None,
    admin_id: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
) -> AuditLogPage:
    filters = AuditLogFilters(
        action=action,
        target_type=target_type,
        target_id=target_id,
        admin_id=admin_id,
    )
    entries, total = await AuditLogWriter(session_factory).list_entries(filters, page, page_size)
    return AuditLogPage(
        items=[AuditLogRead.model_validate(entry) for entry in entries],
        total=total,
        page=page,
        page_size=page_size,
    )
