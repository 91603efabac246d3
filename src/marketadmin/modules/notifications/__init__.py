"""Notifications module: persistence, live fan-out and the recipient API."""

from fastapi import APIRouter


router = APIRouter(prefix="/notifications", tags=["notifications"])

# Import routes to register them (must be after router is defined)
from marketadmin.modules.notifications import routes  # noqa: F401, E402
