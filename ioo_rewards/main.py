import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ioo_rewards import __version__
from ioo_rewards.api import router
from ioo_rewards.api.badges import router as badges_router
from ioo_rewards.api.celebrations import router as celebrations_router
from ioo_rewards.core.config import settings
from ioo_rewards.core.database import engine
from ioo_rewards.models.base import Base
from ioo_rewards.services.celebrations import celebration_scheduler
from ioo_rewards.services.events import event_manager

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup and wire the celebration stream."""
    # Import models to register them with Base
    from ioo_rewards.models import badges, content, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    celebration_scheduler.add_listener(event_manager.publish)
    logger.info("%s %s started", settings.app_name, __version__)
    yield
    celebration_scheduler.remove_listener(event_manager.publish)
    celebration_scheduler.reset()
    await engine.dispose()


app = FastAPI(
    lifespan=lifespan,
    title=settings.app_name,
    description="Badges, streaks and celebrations for the Ioo family app",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using allow_origins=["*"]
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router, prefix="/api/v1")
app.include_router(badges_router, prefix="/api/v1")
app.include_router(celebrations_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("ioo_rewards.main:app", host="0.0.0.0", port=settings.port, reload=settings.debug)
