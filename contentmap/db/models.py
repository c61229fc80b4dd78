import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    website_url = Column(String(2048), nullable=True)
    # Bare host used for internal link resolution; NULL disables content sync
    domain = Column(String(255), nullable=True)
    # Owner's subscription tier: free | pro | agency
    plan = Column(String(20), nullable=False, server_default="free", default="free")

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    nodes = relationship(
        "ContentNodeRow", back_populates="project", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Project(name={self.name!r}, domain={self.domain})>"


class ContentNodeRow(Base):
    """
    Vertex of the content map. Internal nodes are identified by `slug`,
    external nodes (node_type == 'external') by `url`.
    """

    __tablename__ = "content_nodes"
    __table_args__ = (
        UniqueConstraint("project_id", "slug", name="uq_content_nodes_project_slug"),
        CheckConstraint(
            "(node_type = 'external' AND slug IS NULL) OR "
            "(node_type != 'external' AND url IS NULL)",
            name="ck_content_nodes_identity",
        ),
        Index("ix_content_nodes_project_id", "project_id"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )

    node_type = Column(String(20), nullable=False)
    title = Column(String(500), nullable=False)
    slug = Column(String(500), nullable=True)
    url = Column(String(2048), nullable=True)
    status = Column(String(20), nullable=False, server_default="planned", default="planned")
    target_keyword = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Canvas coordinates
    position_x = Column(Float, nullable=True)
    position_y = Column(Float, nullable=True)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    project = relationship("Project", back_populates="nodes")
    article = relationship(
        "ArticleRow",
        back_populates="node",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        ident = self.url if self.node_type == "external" else self.slug
        return f"<ContentNode({self.node_type}, {ident!r})>"


class EdgeRow(Base):
    """
    Directed relationship between two nodes. `interlinks` and `outbound` rows
    are owned by the link-sync engine; the other types are user-managed.
    """

    __tablename__ = "edges"
    __table_args__ = (
        Index("ix_edges_source_node_id", "source_node_id"),
        Index("ix_edges_project_id", "project_id"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    source_node_id = Column(
        String(36), ForeignKey("content_nodes.id", ondelete="CASCADE"), nullable=False
    )
    target_node_id = Column(
        String(36), ForeignKey("content_nodes.id", ondelete="CASCADE"), nullable=False
    )

    source_handle = Column(String(10), nullable=False, server_default="right", default="right")
    target_handle = Column(String(10), nullable=False, server_default="left", default="left")
    edge_type = Column(String(20), nullable=False)
    label = Column(String(512), nullable=True)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    source = relationship("ContentNodeRow", foreign_keys=[source_node_id])
    target = relationship("ContentNodeRow", foreign_keys=[target_node_id])

    def __repr__(self):
        return f"<Edge({self.source_node_id} -[{self.edge_type}]-> {self.target_node_id}, label={self.label!r})>"


class ArticleRow(Base):
    __tablename__ = "articles"

    id = Column(String(36), primary_key=True, default=_uuid)
    node_id = Column(
        String(36),
        ForeignKey("content_nodes.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    project_id = Column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )

    content = Column(Text, nullable=True)
    word_count = Column(Integer, nullable=False, server_default="0", default=0)
    seo_title = Column(String(500), nullable=True)
    seo_description = Column(String(500), nullable=True)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    node = relationship("ContentNodeRow", back_populates="article")

    def __repr__(self):
        return f"<Article(node={self.node_id}, words={self.word_count})>"
