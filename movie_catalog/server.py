"""Aggregate app for the movie catalog API."""
from __future__ import annotations

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from movie_catalog import __version__
from movie_catalog.common.envelope import register_error_handlers
from movie_catalog.common.health import router as health_router
from movie_catalog.config import runtime_config
from movie_catalog.movies.routes import router as movies_router
from movie_catalog.movies.service import MovieService, set_movie_service

logger = logging.getLogger(__name__)


def create_app(service: Optional[MovieService] = None) -> FastAPI:
    """Build the app; pass a service to wire explicit backends instead of the configured ones."""
    if service is not None:
        set_movie_service(service)

    app = FastAPI(title="Movie Catalog API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=runtime_config.get_allowed_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(movies_router)
    return app


runtime_config.load_env_file()
app = create_app()


def main() -> None:
    level = runtime_config.get_log_level()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("Starting movie catalog with config %s", runtime_config.config_snapshot())
    uvicorn.run(
        app,
        host=runtime_config.get_host(),
        port=runtime_config.get_port(),
        log_level=level.lower(),
    )


if __name__ == "__main__":
    main()
