"""Runtime configuration helpers for the catalog."""
from __future__ import annotations

import os
from typing import List, Optional, Union

from dotenv import find_dotenv, load_dotenv

DEFAULT_DATABASE_NAME = "MovieCatalog"
DEFAULT_ALLOWED_ORIGINS = "http://localhost:3000"


def load_env_file(path: Optional[Union[str, os.PathLike]] = None) -> bool:
    """Load a .env file (default: nearest one from the working directory).

    Variables already set in the process environment win over the file.
    """
    if path is None:
        path = find_dotenv(usecwd=True)
    return load_dotenv(path, override=False)


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _get_int(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def get_env() -> Optional[str]:
    return _get_env("ENV") or _get_env("APP_ENV")


def is_dev_env() -> bool:
    env = (get_env() or "dev").lower()
    return env in {"dev", "local", "development"}


def get_log_level() -> str:
    return (_get_env("LOG_LEVEL") or "INFO").upper()


def get_host() -> str:
    return _get_env("HOST") or "0.0.0.0"


def get_port() -> int:
    return _get_int("PORT", 8000)


def get_movies_backend() -> str:
    return (_get_env("MOVIES_BACKEND") or "mongo").lower()


def get_poster_backend() -> str:
    return (_get_env("POSTER_BACKEND") or "r2").lower()


def get_mongodb_connection_string() -> Optional[str]:
    return _get_env("MONGODB_CONNECTION_STRING")


def get_mongodb_database_name() -> str:
    return _get_env("MONGODB_DATABASE_NAME") or DEFAULT_DATABASE_NAME


def get_mongodb_timeout_ms() -> int:
    return _get_int("MONGODB_TIMEOUT_MS", 10_000)


def get_r2_account_id() -> Optional[str]:
    return _get_env("R2_ACCOUNT_ID")


def get_r2_access_key() -> Optional[str]:
    return _get_env("R2_ACCESS_KEY")


def get_r2_secret_key() -> Optional[str]:
    return _get_env("R2_SECRET_KEY")


def get_r2_bucket_name() -> Optional[str]:
    return _get_env("R2_BUCKET_NAME")


def get_r2_public_url() -> Optional[str]:
    return _get_env("R2_PUBLIC_URL")


def get_r2_service_url() -> Optional[str]:
    explicit = _get_env("R2_SERVICE_URL")
    if explicit:
        return explicit
    account_id = get_r2_account_id()
    if account_id:
        return f"https://{account_id}.r2.cloudflarestorage.com"
    return None


def get_r2_connect_timeout() -> int:
    return _get_int("R2_CONNECT_TIMEOUT", 5)


def get_r2_read_timeout() -> int:
    return _get_int("R2_READ_TIMEOUT", 30)


def get_allowed_origins() -> List[str]:
    raw = _get_env("ALLOWED_ORIGINS") or DEFAULT_ALLOWED_ORIGINS
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def config_snapshot() -> dict:
    """Return the env-driven config, secrets redacted, for startup logging."""
    return {
        "env": get_env(),
        "log_level": get_log_level(),
        "movies_backend": get_movies_backend(),
        "poster_backend": get_poster_backend(),
        "mongodb_database": get_mongodb_database_name(),
        "mongodb_configured": bool(get_mongodb_connection_string()),
        "mongodb_timeout_ms": get_mongodb_timeout_ms(),
        "r2_bucket": get_r2_bucket_name(),
        "r2_public_url": get_r2_public_url(),
        "r2_service_url": get_r2_service_url(),
        "r2_credentials_configured": bool(get_r2_access_key() and get_r2_secret_key()),
        "allowed_origins": get_allowed_origins(),
    }
