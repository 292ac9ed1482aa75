from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from movie_catalog.api.contracts import HealthResponse
from movie_catalog.api.http_setup import register_exception_handlers, register_http_middleware
from movie_catalog.api.rate_limiter import RequestRateLimiter, register_rate_limit_middleware
from movie_catalog.auth.middleware import create_auth_middleware
from movie_catalog.auth.repository import AuthRepository
from movie_catalog.auth.router import create_auth_router
from movie_catalog.auth.service import AuthService
from movie_catalog.auth.tokens import SessionTokenService
from movie_catalog.core.config import DEV_SECRET_KEY, AppConfig
from movie_catalog.core.logging import setup_logging
from movie_catalog.core.mongo_migrations import apply_mongo_migrations
from movie_catalog.movies.repository import MovieRepository
from movie_catalog.movies.router import MoviesRouter
from movie_catalog.movies.service import MovieService
from movie_catalog.movies.storage import PosterStorage

load_dotenv()
APP_CONFIG = AppConfig.from_env()
setup_logging(APP_CONFIG.logging.level, APP_CONFIG.logging.fmt)
LOGGER = logging.getLogger(__name__)

APP_ROOT = Path(__file__).resolve().parent
POSTERS_PUBLIC_PREFIX = "/uploads/posters"


def create_app(config: AppConfig | None = None, app_root: Path | None = None) -> FastAPI:
    config = config or APP_CONFIG
    runtime_dir = config.storage.runtime_path(app_root or APP_ROOT)
    uploads_dir = runtime_dir / "uploads"
    for directory in [runtime_dir, uploads_dir]:
        directory.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title="Movie Catalog API", version="1.0.0")
    apply_mongo_migrations(config.database)

    tokens = SessionTokenService(config.auth)
    auth_repo = AuthRepository(runtime_dir, config.database)
    auth_service = AuthService(auth_repo, config.auth)
    auth_service.bootstrap_admin_user()

    poster_storage = PosterStorage(
        uploads_dir / "posters",
        max_bytes=config.security.upload_max_bytes,
        public_prefix=POSTERS_PUBLIC_PREFIX,
    )
    movie_service = MovieService(
        repo=MovieRepository(runtime_dir, config.database),
        users=auth_repo,
        storage=poster_storage,
    )

    # Starlette runs the last registered middleware first.
    app.middleware("http")(create_auth_middleware(tokens))
    rate_limiter: RequestRateLimiter | None = None
    if config.security.rate_limit_max_requests > 0:
        rate_limiter = RequestRateLimiter(
            database_path=runtime_dir / "app_state.db",
            max_requests=config.security.rate_limit_max_requests,
            window_seconds=config.security.rate_limit_window_seconds,
        )
        register_rate_limit_middleware(app, limiter=rate_limiter, logger=LOGGER)
    register_http_middleware(app, config=config, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    app.mount("/uploads", StaticFiles(directory=str(uploads_dir)), name="uploads")

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    app.include_router(create_auth_router(auth_service, tokens))
    app.include_router(MoviesRouter(movie_service).build())

    @app.on_event("shutdown")
    async def close_rate_limiter() -> None:
        if rate_limiter is not None:
            rate_limiter.close()

    if config.is_production and config.auth.secret_key == DEV_SECRET_KEY:
        LOGGER.warning("AUTH_SECRET_KEY is not set; using the development secret")
    LOGGER.info("Application configured", extra={"path": str(runtime_dir)})
    return app


app = create_app()
