"""Admin module: governed status changes and the audit log."""

from fastapi import APIRouter


router = APIRouter(prefix="/admin", tags=["admin"])

# Import routes to register them (must be after router is defined)
from marketadmin.modules.admin import routes  # noqa: F401, E402
