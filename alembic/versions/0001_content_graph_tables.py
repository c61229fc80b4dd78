"""content graph tables (projects, content_nodes, edges, articles)

Revision ID: 0001_content_graph
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_content_graph"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "projects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("website_url", sa.String(length=2048), nullable=True),
        sa.Column("domain", sa.String(length=255), nullable=True),
        sa.Column("plan", sa.String(length=20), nullable=False, server_default="free"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # Internal nodes are identified by slug, external nodes by url
    op.create_table(
        "content_nodes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("project_id", sa.String(length=36), nullable=False),
        sa.Column("node_type", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("slug", sa.String(length=500), nullable=True),
        sa.Column("url", sa.String(length=2048), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="planned"),
        sa.Column("target_keyword", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("position_x", sa.Float(), nullable=True),
        sa.Column("position_y", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("project_id", "slug", name="uq_content_nodes_project_slug"),
        sa.CheckConstraint(
            "(node_type = 'external' AND slug IS NULL) OR "
            "(node_type != 'external' AND url IS NULL)",
            name="ck_content_nodes_identity",
        ),
    )
    op.create_index("ix_content_nodes_project_id", "content_nodes", ["project_id"], unique=False)

    op.create_table(
        "edges",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("project_id", sa.String(length=36), nullable=False),
        sa.Column("source_node_id", sa.String(length=36), nullable=False),
        sa.Column("target_node_id", sa.String(length=36), nullable=False),
        sa.Column("source_handle", sa.String(length=10), nullable=False, server_default="right"),
        sa.Column("target_handle", sa.String(length=10), nullable=False, server_default="left"),
        sa.Column("edge_type", sa.String(length=20), nullable=False),
        sa.Column("label", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["source_node_id"], ["content_nodes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_node_id"], ["content_nodes.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_edges_source_node_id", "edges", ["source_node_id"], unique=False)
    op.create_index("ix_edges_project_id", "edges", ["project_id"], unique=False)

    op.create_table(
        "articles",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("node_id", sa.String(length=36), nullable=False),
        sa.Column("project_id", sa.String(length=36), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("word_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("seo_title", sa.String(length=500), nullable=True),
        sa.Column("seo_description", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["node_id"], ["content_nodes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("node_id", name="uq_articles_node_id"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("articles")
    op.drop_index("ix_edges_project_id", table_name="edges")
    op.drop_index("ix_edges_source_node_id", table_name="edges")
    op.drop_table("edges")
    op.drop_index("ix_content_nodes_project_id", table_name="content_nodes")
    op.drop_table("content_nodes")
    op.drop_table("projects")
