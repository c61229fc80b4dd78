#!/usr/bin/env python3
"""
Seed the database with a small demo content map for quick local testing.

Usage:
  python scripts/seed_demo.py [--domain DOMAIN] [--flush]

Reads DATABASE_URL from environment (defaults to sqlite:///./data/contentmap.db)
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Make the script work when run from the repo root without installing the package
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from contentmap.db.models import ArticleRow, Project  # noqa: E402
from contentmap.db.session import SessionLocal  # noqa: E402
from contentmap.db_init import init_db  # noqa: E402
from contentmap.domain import ContentNode, NodeStatus, NodeType, Position  # noqa: E402
from contentmap.services.content_sync import ContentLinkSync  # noqa: E402
from contentmap.services.graph_store import SqlGraphStore, count_words, new_id  # noqa: E402
from contentmap.services.limits import PlanLimitGate  # noqa: E402

logger = logging.getLogger("seed_demo")

DEMO_NODES = [
    # (slug, title, type, x, y)
    ("seo-guide", "The Complete SEO Guide", NodeType.PILLAR, 0.0, 0.0),
    ("keyword-research", "Keyword Research", NodeType.CLUSTER, 400.0, -150.0),
    ("internal-linking", "Internal Linking", NodeType.CLUSTER, 400.0, 150.0),
]

PILLAR_HTML = (
    "<h1>The Complete SEO Guide</h1>"
    '<p>Start with <a href="/keyword-research">keyword research</a>, then plan your '
    '<a href="https://{domain}/internal-linking/">internal links</a>.</p>'
    '<p>Google documents the basics in its '
    '<a href="https://developers.google.com/search/docs">Search Central docs</a>.</p>'
)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Seed a demo content map")
    p.add_argument("--domain", default="example.com", help="project domain")
    p.add_argument("--flush", action="store_true", help="delete existing demo project first")
    return p.parse_args()


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    args = parse_args()
    init_db()

    with SessionLocal() as db:
        if args.flush:
            for project in db.query(Project).filter(Project.name == "Demo project").all():
                db.delete(project)
            db.commit()
            logger.info("Flushed existing demo project(s)")

        project = Project(id=new_id(), name="Demo project", domain=args.domain, plan="pro")
        db.add(project)
        db.commit()

        store = SqlGraphStore(db)
        nodes = {}
        for slug, title, node_type, x, y in DEMO_NODES:
            nodes[slug] = store.create_node(
                ContentNode(
                    id=new_id(),
                    project_id=project.id,
                    node_type=node_type,
                    title=title,
                    slug=slug,
                    status=NodeStatus.WRITING,
                    position=Position(x=x, y=y),
                )
            )

        pillar = nodes["seo-guide"]
        html = PILLAR_HTML.format(domain=args.domain)
        db.add(
            ArticleRow(
                node_id=pillar.id,
                project_id=project.id,
                content=html,
                word_count=count_words(html),
            )
        )
        db.commit()

        report = ContentLinkSync(store, PlanLimitGate(db)).reconcile_content_links(
            pillar.id, project.id, project.domain, html
        )
        logger.info("Seeded project %s: %s", project.id, report.as_dict())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
