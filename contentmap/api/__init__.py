# contentmap/api/__init__.py
"""API package exports for FastAPI routers.

Centralizes router imports and exposes `get_routers()`, which returns the
routers the application mounts.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

from .projects_api import router as projects_router  # noqa: E402
from .articles_api import router as articles_router  # noqa: E402

__all__ = [
    "projects_router",
    "articles_router",
    "get_routers",
]


def get_routers():
    """Return a list of routers that should be mounted."""
    routers = [projects_router, articles_router]
    logger.debug("Mounting %d routers", len(routers))
    return routers
