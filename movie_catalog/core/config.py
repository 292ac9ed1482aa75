"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEV_SECRET_KEY = "dev-insecure-secret-change-me"


@dataclass(frozen=True)
class AuthConfig:
    """Session token, cookie and bootstrap-account configuration."""

    secret_key: str
    issuer: str
    token_ttl_seconds: int
    remember_token_ttl_seconds: int
    reset_token_ttl_seconds: int
    cookie_name: str
    cookie_cross_site: bool
    admin_email: str
    admin_password: str
    admin_name: str


@dataclass(frozen=True)
class DatabaseConfig:
    """MongoDB connection settings; empty URI selects the JSON file store."""

    mongo_uri: str
    mongo_db: str


@dataclass(frozen=True)
class StorageConfig:
    """Filesystem locations for runtime state and uploaded posters."""

    runtime_dir: str

    def runtime_path(self, app_root: Path) -> Path:
        """Resolve runtime directory against the application root."""
        path = Path(self.runtime_dir)
        if not path.is_absolute():
            path = app_root / path
        return path.resolve()


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: str
    fmt: str = "json"


@dataclass(frozen=True)
class SecurityConfig:
    """API perimeter security settings."""

    cors_allowed_origins: list[str]
    request_max_bytes: int
    upload_max_bytes: int
    rate_limit_max_requests: int
    rate_limit_window_seconds: int


@dataclass(frozen=True)
class ServerConfig:
    """Bind address for the HTTP server."""

    host: str
    port: int


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    environment: str
    auth: AuthConfig
    database: DatabaseConfig
    storage: StorageConfig
    logging: LoggingConfig
    security: SecurityConfig
    server: ServerConfig

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @staticmethod
    def from_env() -> "AppConfig":
        """Build app config from process environment."""
        environment = os.getenv("APP_ENV", "development").strip().lower() or "development"
        secret_key = (
            os.getenv("AUTH_SECRET_KEY", "").strip() or DEV_SECRET_KEY
        )
        issuer = os.getenv("AUTH_ISSUER", "movie-catalog").strip() or "movie-catalog"
        token_ttl = int(os.getenv("AUTH_TOKEN_TTL_SECONDS", str(7 * 24 * 3600)))
        remember_ttl = int(
            os.getenv("AUTH_REMEMBER_TOKEN_TTL_SECONDS", str(30 * 24 * 3600))
        )
        reset_ttl = int(os.getenv("AUTH_RESET_TOKEN_TTL_SECONDS", "600"))
        cookie_name = os.getenv("AUTH_COOKIE_NAME", "jwt").strip() or "jwt"
        admin_email = os.getenv("AUTH_ADMIN_EMAIL", "").strip().lower()
        admin_password = os.getenv("AUTH_ADMIN_PASSWORD", "").strip()
        admin_name = os.getenv("AUTH_ADMIN_NAME", "Administrator").strip() or "Administrator"
        mongo_uri = os.getenv("MONGODB_URI", "").strip()
        mongo_db = os.getenv("MONGODB_DB", "movie_catalog").strip() or "movie_catalog"
        runtime_dir = os.getenv("RUNTIME_DIR", "runtime").strip() or "runtime"
        log_level = os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"
        log_format = os.getenv("LOG_FORMAT", "json").strip().lower()
        if log_format not in {"json", "text"}:
            log_format = "json"
        cors_allowed_origins = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ALLOWED_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if origin.strip()
        ]
        request_max_bytes = int(os.getenv("REQUEST_MAX_BYTES", str(10 * 1024 * 1024)))
        upload_max_bytes = int(os.getenv("UPLOAD_MAX_BYTES", str(5 * 1024 * 1024)))
        rate_limit_max_requests = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
        rate_limit_window_seconds = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))
        host = os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0"
        port = int(os.getenv("PORT", "5000"))

        return AppConfig(
            environment=environment,
            auth=AuthConfig(
                secret_key=secret_key,
                issuer=issuer,
                token_ttl_seconds=token_ttl,
                remember_token_ttl_seconds=remember_ttl,
                reset_token_ttl_seconds=reset_ttl,
                cookie_name=cookie_name,
                cookie_cross_site=environment == "production",
                admin_email=admin_email,
                admin_password=admin_password,
                admin_name=admin_name,
            ),
            database=DatabaseConfig(mongo_uri=mongo_uri, mongo_db=mongo_db),
            storage=StorageConfig(runtime_dir=runtime_dir),
            logging=LoggingConfig(level=log_level, fmt=log_format),
            security=SecurityConfig(
                cors_allowed_origins=cors_allowed_origins,
                request_max_bytes=request_max_bytes,
                upload_max_bytes=upload_max_bytes,
                rate_limit_max_requests=rate_limit_max_requests,
                rate_limit_window_seconds=rate_limit_window_seconds,
            ),
            server=ServerConfig(host=host, port=port),
        )
