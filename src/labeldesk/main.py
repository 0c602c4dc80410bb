"""Label back-office API main application."""
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from labeldesk.core.config import app_settings
from labeldesk.core.correlation import CorrelationIDMiddleware
from labeldesk.core.db import create_all, dispose_engine
from labeldesk.core.error_handler import register_exception_handlers
from labeldesk.core.health import router as health_router
from labeldesk.core.logging import configure_logging, get_logger
from labeldesk.core.metrics import METRICS_CONTENT_TYPE, MetricsMiddleware, get_metrics

from .api.artists import router as artists_router
from .api.auth import router as auth_router
from .api.dashboard import router as dashboard_router
from .api.form_validation import router as form_validation_router
from .api.labels import router as labels_router
from .api.release_form import router as release_form_router
from .api.releases import router as releases_router
from .api.uploads import router as uploads_router
from .api.users import router as users_router

# Configure logging
configure_logging(log_level=app_settings.log_level, log_format=app_settings.log_format)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("labeldesk_starting", version=app_settings.app_version, environment=app_settings.environment)

    if app_settings.storage_backend == "local":
        Path(app_settings.upload_dir).mkdir(parents=True, exist_ok=True)

    if app_settings.database_auto_create:
        await create_all()
        logger.info("database_tables_ensured")

    logger.info("labeldesk_started", version=app_settings.app_version)

    yield

    logger.info("labeldesk_shutting_down")
    await dispose_engine()
    logger.info("labeldesk_shutdown")


# Create FastAPI app
app = FastAPI(
    title="Labeldesk Back-Office API",
    version=app_settings.app_version,
    description="Artists, labels, releases, submissions and uploads for a music label",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(CorrelationIDMiddleware)

# Register all exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(health_router)
app.include_router(auth_router, prefix=app_settings.api_prefix)
app.include_router(users_router, prefix=app_settings.api_prefix)
app.include_router(artists_router, prefix=app_settings.api_prefix)
app.include_router(labels_router, prefix=app_settings.api_prefix)
app.include_router(releases_router, prefix=app_settings.api_prefix)
app.include_router(release_form_router, prefix=app_settings.api_prefix)
app.include_router(uploads_router, prefix=app_settings.api_prefix)
app.include_router(dashboard_router, prefix=app_settings.api_prefix)
app.include_router(form_validation_router, prefix=app_settings.api_prefix)

# Stored files are served directly for the local backend; lifespan creates the directory
if app_settings.storage_backend == "local":
    app.mount(
        app_settings.upload_url_prefix,
        StaticFiles(directory=app_settings.upload_dir, check_dir=False),
        name="uploads",
    )


# Prometheus metrics endpoint
@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=get_metrics(), media_type=METRICS_CONTENT_TYPE)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=app_settings.host, port=app_settings.port)
