from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from contentmap.db.models import ArticleRow, ContentNodeRow, Project
from contentmap.db.session import get_db
from contentmap.services.content_sync import ContentLinkSync
from contentmap.services.graph_store import SqlGraphStore, count_words
from contentmap.services.limits import PlanLimitGate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["articles"])


class ArticleIn(BaseModel):
    content: str = ""
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None


class ArticleOut(BaseModel):
    node_id: str
    project_id: str
    content: Optional[str] = None
    word_count: int = 0
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None

    class Config:
        from_attributes = True


def _get_node(db: Session, node_id: str) -> ContentNodeRow:
    node = db.get(ContentNodeRow, node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"node {node_id} not found")
    return node


def _get_article(db: Session, node_id: str) -> Optional[ArticleRow]:
    return db.query(ArticleRow).filter(ArticleRow.node_id == node_id).first()


def _sync(db: Session, node: ContentNodeRow, content: Optional[str], previous: Optional[str]):
    project = db.get(Project, node.project_id)
    engine = ContentLinkSync(SqlGraphStore(db), PlanLimitGate(db))
    return engine.reconcile_content_links(
        node.id,
        node.project_id,
        project.domain if project is not None else None,
        content,
        previous_content=previous,
    )


@router.get("/{node_id}", response_model=ArticleOut)
def get_article(node_id: str, db: Session = Depends(get_db)):
    _get_node(db, node_id)
    article = _get_article(db, node_id)
    if article is None:
        raise HTTPException(status_code=404, detail=f"no article for node {node_id}")
    return article


@router.put("/{node_id}")
def save_article(node_id: str, payload: ArticleIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Persist article content, then bring the node's link edges in line with it."""
    node = _get_node(db, node_id)
    if node.node_type == "external":
        raise HTTPException(status_code=400, detail="external nodes cannot hold articles")

    article = _get_article(db, node_id)
    previous: Optional[str] = None
    if article is None:
        article = ArticleRow(node_id=node.id, project_id=node.project_id)
        db.add(article)
    else:
        previous = article.content

    article.content = payload.content
    article.word_count = count_words(payload.content)
    if payload.seo_title is not None:
        article.seo_title = payload.seo_title
    if payload.seo_description is not None:
        article.seo_description = payload.seo_description
    db.commit()
    db.refresh(article)

    # Sync failures never fail the save
    report = _sync(db, node, article.content, previous)
    return {
        "article": ArticleOut.model_validate(article).model_dump(),
        "sync": report.as_dict(),
    }


@router.post("/{node_id}/sync")
def resync_article(node_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Re-run link sync on the persisted content (repairs edges after partial failures)."""
    node = _get_node(db, node_id)
    article = _get_article(db, node_id)
    if article is None:
        raise HTTPException(status_code=404, detail=f"no article for node {node_id}")
    report = _sync(db, node, article.content, None)
    return report.as_dict()
