import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backup_monitor import __version__
from backup_monitor.core.config import get_settings

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "Backup Monitor %s starting (api key %s, report cleanup %s)",
        __version__,
        "required" if settings.require_api_key else "optional",
        f"after {settings.report_retention_days}d" if settings.report_cleanup_enabled else "off",
    )
    yield
    logger.info("Backup Monitor stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Backup Monitor API",
        version=__version__,
        description="Collects backup job reports from distributed agents for the monitoring dashboard",
        lifespan=lifespan,
    )

    # The dashboard is served from another origin during development only
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.environment == "development" else [],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "X-API-Key"],
    )

    from backup_monitor.api.routes import router as api_router
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
