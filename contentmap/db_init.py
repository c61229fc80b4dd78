import logging
import os

from sqlalchemy import inspect

from contentmap.db import session as db
from contentmap.db.models import Base

from alembic import command as alembic_command
from alembic.config import Config as AlembicConfig

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _alembic_config_for_engine(engine) -> AlembicConfig:
    """
    Build an Alembic Config pointing to the project's alembic.ini and
    attach the current SQLAlchemy URL so 'alembic' CLI settings are not required.
    """
    ini_path = os.path.join(PROJECT_ROOT, "alembic.ini")
    cfg = AlembicConfig(ini_path)
    cfg.set_main_option("sqlalchemy.url", engine.url.render_as_string(hide_password=False))
    cfg.set_main_option("script_location", os.path.join(PROJECT_ROOT, "alembic"))
    return cfg


def init_db(engine=None) -> None:
    """
    Initialize database schema.

    Strategy:
      - If the database already has an 'alembic_version'
        table, run migrations to 'head' (authoritative schema).
      - If no 'alembic_version' table exists, create all
        tables from ORM metadata and then stamp the DB to 'head' so future runs
        use migrations cleanly.
      - Without alembic.ini (e.g. installed wheel), fall back to create_all().
    """
    engine = engine or db.engine
    inspector = inspect(engine)

    try:
        has_version_table = inspector.has_table("alembic_version")
        if os.path.exists(os.path.join(PROJECT_ROOT, "alembic.ini")):
            cfg = _alembic_config_for_engine(engine)

            with engine.begin() as connection:
                cfg.attributes["connection"] = connection
                if has_version_table:
                    logger.info("Alembic version table found. Applying migrations to head...")
                    alembic_command.upgrade(cfg, "head")
                    logger.info("Migrations applied successfully.")
                else:
                    logger.info(
                        "No alembic_version table detected. Creating ORM tables, then stamping head..."
                    )
                    Base.metadata.create_all(connection)
                    alembic_command.stamp(cfg, "head")
                    logger.info("Schema created and stamped to head.")
        else:
            logger.warning("alembic.ini not found. Creating ORM tables with create_all().")
            Base.metadata.create_all(engine)
            logger.info("Database initialized via create_all().")

    except Exception as e:
        # Never leave the app without tables in dev/CI
        logger.exception(
            "Database initialization via Alembic failed; falling back to create_all(). Error: %s",
            e,
        )
        Base.metadata.create_all(engine)
        logger.info("Database initialized via create_all() after Alembic failure.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
