from __future__ import annotations

import logging
import os
from typing import List

from dotenv import load_dotenv
from fastapi import FastAPI

from contentmap import __version__
from contentmap.api import get_routers
from contentmap.db.session import ping_db
from contentmap.db_init import init_db

load_dotenv()
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Content Map",
    version=__version__,
    docs_url="/docs",
    redoc_url=None,
)

for _router in get_routers():
    app.include_router(_router)


@app.on_event("startup")
def _startup() -> None:
    """Initialize the database on startup."""
    init_db()
    logger.info("Content Map %s ready", __version__)


@app.get("/")
def root() -> dict:
    routers: List[str] = ["/projects", "/articles", "/edges"]
    return {
        "service": "Content Map",
        "routers": routers,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health() -> dict:
    return {"ok": True, "db": ping_db()}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))
