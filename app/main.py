"""
Instagram Flow Automation API
Runs trigger -> condition -> action flows against Instagram webhook events.
"""
from dotenv import load_dotenv
load_dotenv()

import logging
import os
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True  # Override any existing configuration
)

logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """Run Alembic migrations on startup. Uses alembic.ini and DATABASE_URL.
    Fails startup if migrations fail, so the DB is never left out of sync."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_ini = project_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found, skipping Alembic migrations")
        return
    if not os.getenv("DATABASE_URL"):
        logger.warning("DATABASE_URL is not set, skipping Alembic migrations (tables are created from models)")
        return
    try:
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
        alembic_cfg.set_main_option("sqlalchemy.url", config.DATABASE_URL)
        command.upgrade(alembic_cfg, "head")
        logger.info("Alembic migrations completed successfully")
    except Exception as e:
        logger.exception("Alembic migration failed: %s", e)
        raise  # Fail startup so DB is not left out of sync; fix migration or env and redeploy


from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api.routes import flows, instagram, webhooks
from app.core import config
from app.db.session import engine
from app.db.base import Base
# Import all models to ensure they're registered with Base
from app.models import InstagramAccount, Flow, FlowExecution, WebhookEvent

app = FastAPI(title="Instagram Flow Automation")


@app.on_event("startup")
async def startup_event():
    """Create tables, then run Alembic migrations."""
    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables created")
    run_migrations()


app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(flows.router, prefix="/api", tags=["Flows"])
app.include_router(instagram.router, prefix="/api", tags=["Instagram"])
app.include_router(webhooks.router, prefix="/api/webhooks", tags=["Webhooks"])


@app.get("/health")
def health():
    return {"status": "ok"}
