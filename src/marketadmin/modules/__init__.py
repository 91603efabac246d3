"""Feature modules with auto-discovery."""

import logging
from importlib import import_module
from pathlib import Path

from fastapi import APIRouter


logger = logging.getLogger(__name__)


def discover_modules() -> list[APIRouter]:
    """Auto-discover and return routers from all modules.

    Subdirectories whose package exposes a ``router`` attribute are mounted;
    entity-only packages (users, professionals) have none and are skipped.

    Returns:
        List of FastAPI routers from discovered modules.
    """
    modules_dir = Path(__file__).parent
    routers: list[APIRouter] = []

    for path in sorted(modules_dir.iterdir()):
        if path.is_dir() and not path.name.startswith("_"):
            module = import_module(f"marketadmin.modules.{path.name}")
            if hasattr(module, "router"):
                routers.append(module.router)
                logger.info("Loaded module: %s", path.name)

    return routers
