"""AgriGenius FastAPI application package."""

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from prometheus_client import make_asgi_app

from .api import api_router
from .core.config import settings
from .core.logging_config import setup_logging
from .db.session import init_db
from .services import registry as controller_registry


def create_app() -> FastAPI:
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Initializing %s API", settings.app_name)

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    app.include_router(api_router, prefix=settings.api_prefix)
    app.mount(
        settings.media_url_prefix,
        StaticFiles(directory=settings.data_root, check_dir=False),
        name="media",
    )
    if settings.metrics_enabled:
        app.mount("/metrics", make_asgi_app(), name="metrics")

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Provide a friendly landing response for the bare hostname."""

        return {
            "message": (
                f"{settings.app_name} API is online. Try GET "
                f"{settings.api_prefix}/health for a health check."
            )
        }

    @app.on_event("startup")
    def _bootstrap() -> None:
        Path(settings.data_root).mkdir(parents=True, exist_ok=True)
        init_db()

    @app.on_event("shutdown")
    async def _stop_controllers() -> None:
        if controller_registry.registry is not None:
            await controller_registry.registry.shutdown()
            controller_registry.registry = None

    return app


app = create_app()
