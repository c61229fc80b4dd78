import os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Never touch the dev database from tests
os.environ["DATABASE_URL"] = "sqlite://"

from typing import Dict, List, Optional, Set

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from contentmap.db.models import Project
from contentmap.db.session import create_tables, make_engine
from contentmap.domain import Article, ContentNode, Edge, NodeType, Position
from contentmap.services.graph_store import count_words, new_id
from contentmap.services.limits import LimitCheck, node_limit_message


@pytest.fixture(autouse=True)
def _no_limit_override(monkeypatch):
    monkeypatch.delenv("NODE_LIMIT_OVERRIDE", raising=False)


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory SQLite database per test (shared across threads for TestClient)."""
    eng = make_engine("sqlite://", poolclass=StaticPool)
    create_tables(eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture(scope="function")
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def project(db):
    p = Project(id=new_id(), name="Site", domain="site.com", plan="free")
    db.add(p)
    db.commit()
    return p


# ---------- In-memory Graph Store -----------------------------------------


class InMemoryGraphStore:
    """
    GraphStore fake that records every mutating call.

    Put an operation name in `fail_ops` to make that call raise.
    """

    def __init__(self, domain: Optional[str] = "site.com"):
        self.domains: Dict[str, Optional[str]] = {}
        self.default_domain = domain
        self.nodes: Dict[str, ContentNode] = {}
        self.edges: Dict[str, Edge] = {}
        self.articles: Dict[str, Article] = {}
        self.calls: List[tuple] = []
        self.fail_ops: Set[str] = set()

    def _record(self, op: str, *args) -> None:
        self.calls.append((op,) + args)
        if op in self.fail_ops:
            raise RuntimeError(f"simulated {op} failure")

    @property
    def mutations(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in {"create_node", "delete_node", "create_edge", "delete_edge", "update_article_content"}]

    # Helpers for arranging tests
    def add_node(self, project_id: str, node_type=NodeType.CLUSTER, title="Node", slug=None, url=None, x=None, y=None) -> ContentNode:
        position = Position(x, y) if x is not None and y is not None else None
        node = ContentNode(
            id=new_id(),
            project_id=project_id,
            node_type=node_type,
            title=title,
            slug=slug,
            url=url,
            position=position,
        )
        self.nodes[node.id] = node
        return node

    def add_edge(self, edge: Edge) -> Edge:
        self.edges[edge.id] = edge
        return edge

    def set_article(self, node_id: str, project_id: str, html: str) -> None:
        self.articles[node_id] = Article(node_id, project_id, html, count_words(html))

    def edges_from(self, source_node_id: str) -> List[Edge]:
        return [e for e in self.edges.values() if e.source_node_id == source_node_id]

    # GraphStore protocol
    def create_node(self, node: ContentNode) -> ContentNode:
        self._record("create_node", node.url or node.slug)
        self.nodes[node.id] = node
        return node

    def delete_node(self, node_id: str) -> bool:
        self._record("delete_node", node_id)
        return self.nodes.pop(node_id, None) is not None

    def create_edge(self, edge: Edge) -> Edge:
        self._record("create_edge", edge.target_node_id)
        self.edges[edge.id] = edge
        return edge

    def delete_edge(self, edge_id: str) -> bool:
        self._record("delete_edge", edge_id)
        return self.edges.pop(edge_id, None) is not None

    def get_node(self, node_id: str) -> Optional[ContentNode]:
        return self.nodes.get(node_id)

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self.edges.get(edge_id)

    def list_nodes(self, project_id: str) -> List[ContentNode]:
        self._record("list_nodes", project_id)
        return [n for n in self.nodes.values() if n.project_id == project_id]

    def list_edges(self, source_node_id: str) -> List[Edge]:
        self._record("list_edges", source_node_id)
        return self.edges_from(source_node_id)

    def get_article(self, node_id: str) -> Optional[Article]:
        return self.articles.get(node_id)

    def update_article_content(self, node_id: str, html: str) -> bool:
        self._record("update_article_content", node_id)
        article = self.articles.get(node_id)
        if article is None:
            return False
        self.articles[node_id] = Article(node_id, article.project_id, html, count_words(html))
        return True

    def get_project_domain(self, project_id: str) -> Optional[str]:
        return self.domains.get(project_id, self.default_domain)


class FixedLimitGate:
    """Limit gate reporting a fixed node budget against the store's node count."""

    def __init__(self, store: InMemoryGraphStore, limit: int):
        self.store = store
        self.limit = limit
        self.checks = 0

    def check_node_limit(self, project_id: str) -> LimitCheck:
        self.checks += 1
        current = len([n for n in self.store.nodes.values() if n.project_id == project_id])
        allowed = current < self.limit
        return LimitCheck(allowed, current, self.limit, None if allowed else node_limit_message(self.limit))


class BrokenLimitGate:
    def check_node_limit(self, project_id: str) -> LimitCheck:
        raise RuntimeError("billing service down")


@pytest.fixture()
def store():
    return InMemoryGraphStore()
