"""
Graph Store: CRUD contract consumed by the link-sync engine, plus the
SQLAlchemy implementation used by the API.

Every mutating call commits on its own. A reconciliation run is a sequence of
independent operations, so one failed call must not roll back the ones
before it.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import List, Optional, Protocol

from bs4 import BeautifulSoup
from sqlalchemy import func
from sqlalchemy.orm import Session

from contentmap.db.models import ArticleRow, ContentNodeRow, EdgeRow, Project
from contentmap.domain import Article, ContentNode, Edge, Position

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+(?:['\u2019-]\w+)*")


# ---------- Interface ---------------------------------------------------------


class GraphStore(Protocol):
    """Persistence contract for nodes, edges and article content."""

    def create_node(self, node: ContentNode) -> ContentNode: ...
    def delete_node(self, node_id: str) -> bool: ...
    def create_edge(self, edge: Edge) -> Edge: ...
    def delete_edge(self, edge_id: str) -> bool: ...
    def get_node(self, node_id: str) -> Optional[ContentNode]: ...
    def get_edge(self, edge_id: str) -> Optional[Edge]: ...
    def list_nodes(self, project_id: str) -> List[ContentNode]: ...
    def list_edges(self, source_node_id: str) -> List[Edge]: ...
    def get_article(self, node_id: str) -> Optional[Article]: ...
    def update_article_content(self, node_id: str, html: str) -> bool: ...
    def get_project_domain(self, project_id: str) -> Optional[str]: ...


def new_id() -> str:
    return str(uuid.uuid4())


def count_words(html: str) -> int:
    """Word count of the visible text in an HTML fragment."""
    if not html:
        return 0
    text = BeautifulSoup(html, "html.parser").get_text(separator=" ")
    return len(_WORD_RE.findall(text))


# ---------- Row <-> domain mapping --------------------------------------------


def node_from_row(row: ContentNodeRow) -> ContentNode:
    position = None
    if row.position_x is not None and row.position_y is not None:
        position = Position(x=float(row.position_x), y=float(row.position_y))
    return ContentNode(
        id=row.id,
        project_id=row.project_id,
        node_type=row.node_type,
        title=row.title,
        slug=row.slug,
        url=row.url,
        status=row.status or "planned",
        position=position,
        target_keyword=row.target_keyword,
    )


def edge_from_row(row: EdgeRow) -> Edge:
    return Edge(
        id=row.id,
        project_id=row.project_id,
        source_node_id=row.source_node_id,
        target_node_id=row.target_node_id,
        edge_type=row.edge_type,
        source_handle=row.source_handle or "right",
        target_handle=row.target_handle or "left",
        label=row.label,
    )


# ---------- SQLAlchemy implementation -----------------------------------------


class SqlGraphStore:
    """GraphStore backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # Nodes
    def create_node(self, node: ContentNode) -> ContentNode:
        row = ContentNodeRow(
            id=node.id or new_id(),
            project_id=node.project_id,
            node_type=node.node_type.value,
            title=node.title,
            slug=node.slug,
            url=node.url,
            status=node.status.value,
            target_keyword=node.target_keyword,
            position_x=node.position.x if node.position else None,
            position_y=node.position.y if node.position else None,
        )
        self.db.add(row)
        self._commit()
        return node_from_row(row)

    def delete_node(self, node_id: str) -> bool:
        row = self.db.get(ContentNodeRow, node_id)
        if row is None:
            return False
        self.db.delete(row)
        self._commit()
        return True

    def get_node(self, node_id: str) -> Optional[ContentNode]:
        row = self.db.get(ContentNodeRow, node_id)
        return node_from_row(row) if row is not None else None

    def list_nodes(self, project_id: str) -> List[ContentNode]:
        rows = (
            self.db.query(ContentNodeRow)
            .filter(ContentNodeRow.project_id == project_id)
            .order_by(ContentNodeRow.created_at.asc(), ContentNodeRow.id.asc())
            .all()
        )
        return [node_from_row(r) for r in rows]

    def count_nodes(self, project_id: str) -> int:
        return int(
            self.db.query(func.count(ContentNodeRow.id))
            .filter(ContentNodeRow.project_id == project_id)
            .scalar()
            or 0
        )

    # Edges
    def create_edge(self, edge: Edge) -> Edge:
        row = EdgeRow(
            id=edge.id or new_id(),
            project_id=edge.project_id,
            source_node_id=edge.source_node_id,
            target_node_id=edge.target_node_id,
            source_handle=edge.source_handle.value,
            target_handle=edge.target_handle.value,
            edge_type=edge.edge_type.value,
            label=edge.label,
        )
        self.db.add(row)
        self._commit()
        return edge_from_row(row)

    def delete_edge(self, edge_id: str) -> bool:
        row = self.db.get(EdgeRow, edge_id)
        if row is None:
            return False
        self.db.delete(row)
        self._commit()
        return True

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        row = self.db.get(EdgeRow, edge_id)
        return edge_from_row(row) if row is not None else None

    def list_edges(self, source_node_id: str) -> List[Edge]:
        rows = (
            self.db.query(EdgeRow)
            .filter(EdgeRow.source_node_id == source_node_id)
            .order_by(EdgeRow.created_at.asc(), EdgeRow.id.asc())
            .all()
        )
        return [edge_from_row(r) for r in rows]

    def list_project_edges(self, project_id: str) -> List[Edge]:
        rows = self.db.query(EdgeRow).filter(EdgeRow.project_id == project_id).all()
        return [edge_from_row(r) for r in rows]

    # Articles
    def get_article(self, node_id: str) -> Optional[Article]:
        row = self.db.query(ArticleRow).filter(ArticleRow.node_id == node_id).first()
        if row is None:
            return None
        return Article(
            node_id=row.node_id,
            project_id=row.project_id,
            content=row.content or "",
            word_count=int(row.word_count or 0),
        )

    def update_article_content(self, node_id: str, html: str) -> bool:
        row = self.db.query(ArticleRow).filter(ArticleRow.node_id == node_id).first()
        if row is None:
            return False
        row.content = html
        row.word_count = count_words(html)
        self._commit()
        return True

    # Projects
    def get_project_domain(self, project_id: str) -> Optional[str]:
        project = self.db.get(Project, project_id)
        if project is None:
            return None
        return project.domain or None


__all__ = [
    "GraphStore",
    "SqlGraphStore",
    "new_id",
    "count_words",
    "node_from_row",
    "edge_from_row",
]
