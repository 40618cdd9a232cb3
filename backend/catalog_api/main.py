from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from catalog_api.core.config import Settings, settings as default_settings
from catalog_api.core.database import Database
from catalog_api.core.errors import register_error_handlers
from catalog_api.core.log_config import configure_logging, log_requests
from catalog_api.routers import health, items, providers
from catalog_api.services.object_storage import ImageUploader, LocalImageUploader, build_uploader


def create_app(
    settings: Optional[Settings] = None,
    uploader: Optional[ImageUploader] = None,
) -> FastAPI:
    """Build the API with its own database pool and image uploader."""
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Workshop Catalog API",
        description="Services and products offered by workshops and technicians",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.db = Database(settings.DATABASE_URL)
    app.state.uploader = uploader or build_uploader(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)
    register_error_handlers(app)

    app.include_router(health.router, prefix="/health")
    app.include_router(providers.router, prefix="/providers")
    app.include_router(items.router, prefix="/items")

    # Serve locally stored catalog images
    if isinstance(app.state.uploader, LocalImageUploader):
        upload_dir = Path(settings.UPLOAD_DIR)
        upload_dir.mkdir(parents=True, exist_ok=True)
        app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    @app.on_event("startup")
    async def startup():
        app.state.db.create_all()

    @app.on_event("shutdown")
    async def shutdown():
        app.state.db.dispose()

    return app
