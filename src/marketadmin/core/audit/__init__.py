"""Audit logging of administrator actions.

Provides:
- AuditLog model with action and target type codes
- AuditLogWriter for best-effort entries and listing
"""

from marketadmin.core.audit.models import AdminAction, AuditLog, TargetType
from marketadmin.core.audit.service import AuditLogFilters, AuditLogWriter


__all__ = [
    "AdminAction",
    "AuditLog",
    "AuditLogFilters",
    "AuditLogWriter",
    "TargetType",
]
