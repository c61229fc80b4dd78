from sqlalchemy import inspect, text
from sqlalchemy.pool import StaticPool

from contentmap.db.session import make_engine, ping_db
from contentmap.db_init import init_db


def test_init_db_creates_schema_and_stamps_head():
    engine = make_engine("sqlite://", poolclass=StaticPool)

    init_db(engine)

    tables = set(inspect(engine).get_table_names())
    assert {"projects", "content_nodes", "edges", "articles"} <= tables
    with engine.connect() as conn:
        assert conn.execute(text("select version_num from alembic_version")).scalar() == "0001_content_graph"

    # idempotent: second call upgrades an already-current schema
    init_db(engine)
    assert ping_db(engine) is True


def test_sqlite_foreign_keys_enabled(engine):
    with engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
