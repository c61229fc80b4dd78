from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contentmap.db.models import Project
from contentmap.db.session import get_db
from contentmap.domain import ContentNode, Edge, EdgeType, Handle, NodeStatus, NodeType, Position
from contentmap.services.content_sync import ContentLinkSync
from contentmap.services.graph_store import SqlGraphStore, new_id
from contentmap.services.handles import assign_handles
from contentmap.services.limits import PLAN_NODE_LIMITS, PlanLimitGate
from contentmap.services.link_classifier import normalize_domain

logger = logging.getLogger(__name__)

router = APIRouter(tags=["graph"])


# ---------------------------
# Pydantic Schemas
# ---------------------------


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    website_url: Optional[str] = None
    domain: Optional[str] = None
    plan: str = "free"


class ProjectOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    website_url: Optional[str] = None
    domain: Optional[str] = None
    plan: str

    class Config:
        from_attributes = True


class NodeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    node_type: NodeType = NodeType.PLANNED
    slug: Optional[str] = None
    status: NodeStatus = NodeStatus.PLANNED
    target_keyword: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None


class EdgeCreate(BaseModel):
    source_node_id: str
    target_node_id: str
    edge_type: EdgeType = EdgeType.HIERARCHY
    source_handle: Optional[Handle] = None
    target_handle: Optional[Handle] = None
    label: Optional[str] = None


class LimitsOut(BaseModel):
    plan: str
    allowed: bool
    current: int
    limit: int
    message: Optional[str] = None


# ---------------------------
# Helpers
# ---------------------------


def _get_project(db: Session, project_id: str) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail=f"project {project_id} not found")
    return project


def _project_domain(payload: ProjectCreate) -> Optional[str]:
    # Fall back to the website host when no explicit domain is given
    return normalize_domain(payload.domain or payload.website_url).split("/", 1)[0] or None


# ---------------------------
# Projects
# ---------------------------


@router.post("/projects", response_model=ProjectOut, status_code=201)
def create_project(payload: ProjectCreate, db: Session = Depends(get_db)):
    plan = payload.plan.lower()
    if plan not in PLAN_NODE_LIMITS:
        raise HTTPException(status_code=400, detail=f"unknown plan {payload.plan!r}")
    project = Project(
        id=new_id(),
        name=payload.name,
        description=payload.description,
        website_url=payload.website_url,
        domain=_project_domain(payload),
        plan=plan,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("Created project %s (domain=%s, plan=%s)", project.id, project.domain, project.plan)
    return project


@router.get("/projects/{project_id}", response_model=ProjectOut)
def get_project(project_id: str, db: Session = Depends(get_db)):
    return _get_project(db, project_id)


@router.get("/projects/{project_id}/graph")
def get_graph(project_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Nodes and edges of the project canvas."""
    _get_project(db, project_id)
    store = SqlGraphStore(db)
    nodes = [n.as_dict() for n in store.list_nodes(project_id)]
    edges = [e.as_dict() for e in store.list_project_edges(project_id)]
    return {
        "nodes": nodes,
        "edges": edges,
        "meta": {"nodes": len(nodes), "edges": len(edges)},
    }


@router.get("/projects/{project_id}/limits", response_model=LimitsOut)
def get_limits(project_id: str, db: Session = Depends(get_db)):
    project = _get_project(db, project_id)
    check = PlanLimitGate(db).check_node_limit(project_id)
    return LimitsOut(plan=project.plan, **check.as_dict())


# ---------------------------
# Nodes & edges
# ---------------------------


@router.post("/projects/{project_id}/nodes", status_code=201)
def create_node(project_id: str, payload: NodeCreate, db: Session = Depends(get_db)) -> Dict[str, Any]:
    _get_project(db, project_id)
    if payload.node_type is NodeType.EXTERNAL:
        raise HTTPException(
            status_code=400, detail="external nodes are created from article links only"
        )

    check = PlanLimitGate(db).check_node_limit(project_id)
    if not check.allowed:
        raise HTTPException(status_code=403, detail=check.message)

    position = None
    if payload.x is not None and payload.y is not None:
        position = Position(x=payload.x, y=payload.y)
    slug = payload.slug.strip().strip("/").lower() if payload.slug else None

    try:
        node = ContentNode(
            id=new_id(),
            project_id=project_id,
            node_type=payload.node_type,
            title=payload.title,
            slug=slug or None,
            status=payload.status,
            position=position,
            target_keyword=payload.target_keyword,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        created = SqlGraphStore(db).create_node(node)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=f"slug {slug!r} already exists in this project")
    return created.as_dict()


@router.post("/projects/{project_id}/edges", status_code=201)
def create_edge(project_id: str, payload: EdgeCreate, db: Session = Depends(get_db)) -> Dict[str, Any]:
    _get_project(db, project_id)
    store = SqlGraphStore(db)
    source = store.get_node(payload.source_node_id)
    target = store.get_node(payload.target_node_id)
    for node_id, node in ((payload.source_node_id, source), (payload.target_node_id, target)):
        if node is None or node.project_id != project_id:
            raise HTTPException(status_code=404, detail=f"node {node_id} not found in project")

    src_handle, tgt_handle = assign_handles(source.position, target.position)
    edge = Edge(
        id=new_id(),
        project_id=project_id,
        source_node_id=source.id,
        target_node_id=target.id,
        edge_type=payload.edge_type,
        source_handle=payload.source_handle or src_handle,
        target_handle=payload.target_handle or tgt_handle,
        label=payload.label,
    )
    return store.create_edge(edge).as_dict()


@router.delete("/edges/{edge_id}")
def delete_edge(edge_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Delete an edge and unwrap the anchors that produced it in the source article."""
    store = SqlGraphStore(db)
    edge = store.get_edge(edge_id)
    if edge is None:
        raise HTTPException(status_code=404, detail=f"edge {edge_id} not found")
    report = ContentLinkSync(store).remove_edge_and_unlink(edge)
    return report.as_dict()


__all__: List[str] = ["router"]
