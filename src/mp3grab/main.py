"""Main entry point for the mp3grab application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mp3grab import __version__
from mp3grab.api.deps import init_services, reset_services
from mp3grab.api.errors import register_exception_handlers
from mp3grab.api.routes import convert, download, health, youtube
from mp3grab.config import Settings, settings

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s:%(name)s:%(message)s",
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    cfg = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize resources on startup, clean up on shutdown."""
        cfg.ensure_directories()
        services = init_services(cfg)
        services.sweeper.start()
        logger.info("Serving artifacts from %s", services.files.output_dir)
        try:
            yield
        finally:
            await services.sweeper.stop()
            await services.files.cancel_pending()
            reset_services()

    app = FastAPI(
        title="mp3grab",
        description="Video URL to MP3 conversion with strategy fallback",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Include API routes
    app.include_router(health.router)
    app.include_router(convert.router)
    app.include_router(youtube.router)
    app.include_router(download.router)

    return app


app = create_app()


def main() -> None:
    """Run the application."""
    configure_logging(settings.log_level)
    settings.ensure_directories()
    uvicorn.run(
        "mp3grab.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
