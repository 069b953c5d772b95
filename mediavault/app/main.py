from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager
import logging

from mediavault.app.config import settings
from mediavault.app.exceptions import register_exception_handlers
from mediavault.app.logging_config import setup_logging
from mediavault.app.middleware import register_middleware
from mediavault.api.v1.router import api_router
from mediavault.db.base import Base, engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    if settings.DATABASE_URL.startswith("sqlite"):
        # Local development database; other backends are migrated with Alembic.
        import mediavault.models  # noqa: F401
        Base.metadata.create_all(bind=engine)
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})...")
    yield
    # Shutdown
    logger.info("Shutting down...")


def create_application() -> FastAPI:
    application = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure properly in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(GZipMiddleware, minimum_size=1000)
    register_middleware(application)
    register_exception_handlers(application)

    # Routers
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @application.get("/health")
    async def health_check():
        return {"status": "healthy", "environment": settings.ENVIRONMENT}

    return application


app = create_application()
