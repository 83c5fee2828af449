from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from backend.app.api.v1.router import router as v1_router
from backend.app.core.config import settings
from backend.app.core.logging_config import configure_logging
from backend.app.db.base import Base
from backend.app.db.session import engine

configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.seed_demo_data:
        # Démo / dev uniquement : en prod le schéma vient d'alembic
        from backend.app.db.seed import run_seed

        Base.metadata.create_all(bind=engine)
        run_seed()
    logger.info("%s %s started (db=%s)", settings.app_name, settings.version, engine.url.render_as_string(hide_password=True))
    yield


app = FastAPI(title=settings.app_name, version=settings.version, debug=settings.debug, lifespan=lifespan)
app.include_router(v1_router, prefix="/v1")
