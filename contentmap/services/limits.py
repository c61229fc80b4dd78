"""
Resource Limit Gate: per-plan node quota for a project.

The check is read-then-act (soft quota). Two concurrent saves can both pass
and each create a node; the overshoot is bounded by the number of writers.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Protocol

from sqlalchemy.orm import Session

from contentmap.db.models import Project
from contentmap.services.graph_store import SqlGraphStore

logger = logging.getLogger(__name__)

UNLIMITED = 999999

PLAN_NODE_LIMITS: Dict[str, int] = {
    "free": 20,
    "pro": 200,
    "agency": UNLIMITED,
}
DEFAULT_PLAN = "free"


@dataclass(frozen=True)
class LimitCheck:
    allowed: bool
    current: int
    limit: int
    message: Optional[str] = None

    def permits(self, created_in_run: int = 0) -> bool:
        """Whether one more node fits after `created_in_run` nodes were already added."""
        return self.allowed and (self.current + created_in_run) < self.limit

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


class ResourceLimitGate(Protocol):
    def check_node_limit(self, project_id: str) -> LimitCheck: ...


def plan_node_limit(plan: Optional[str]) -> int:
    """Nodes allowed per project on `plan`; unknown plans get the free tier."""
    return PLAN_NODE_LIMITS.get((plan or DEFAULT_PLAN).lower(), PLAN_NODE_LIMITS[DEFAULT_PLAN])


def _node_limit_override() -> Optional[int]:
    raw = os.getenv("NODE_LIMIT_OVERRIDE", "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer NODE_LIMIT_OVERRIDE=%r", raw)
        return None


def node_limit_message(limit: int) -> str:
    return f"Node limit reached ({limit}). Upgrade your plan to add more nodes."


class PlanLimitGate:
    """Limit gate reading the project's plan and node count from the database."""

    def __init__(self, db: Session):
        self.db = db

    def check_node_limit(self, project_id: str) -> LimitCheck:
        project = self.db.get(Project, project_id)
        plan = project.plan if project is not None else DEFAULT_PLAN
        limit = _node_limit_override()
        if limit is None:
            limit = plan_node_limit(plan)

        current = SqlGraphStore(self.db).count_nodes(project_id)
        allowed = current < limit
        logger.debug(
            "Node limit check project=%s plan=%s current=%s limit=%s allowed=%s",
            project_id,
            plan,
            current,
            limit,
            allowed,
        )
        return LimitCheck(
            allowed=allowed,
            current=current,
            limit=limit,
            message=None if allowed else node_limit_message(limit),
        )


__all__ = [
    "PLAN_NODE_LIMITS",
    "UNLIMITED",
    "LimitCheck",
    "ResourceLimitGate",
    "PlanLimitGate",
    "plan_node_limit",
    "node_limit_message",
]
