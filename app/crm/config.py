import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    default_page_size: int
    max_page_size: int
    cors_origins: tuple[str, ...]
    log_level: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).") from None
    if value < 1:
        raise RuntimeError(f"{name} must be >= 1 (got {value}).")
    return value


def load_settings() -> Settings:
    origins = tuple(o.strip() for o in _getenv("CORS_ORIGINS", "*").split(",") if o.strip())
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///crm.db"),
        default_page_size=_getenv_int("DEFAULT_PAGE_SIZE", 10),
        max_page_size=_getenv_int("MAX_PAGE_SIZE", 100),
        cors_origins=origins or ("*",),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "DEFAULT_PAGE_SIZE": min(s.default_page_size, s.max_page_size),
        "MAX_PAGE_SIZE": s.max_page_size,
        "CORS_ORIGINS": s.cors_origins,
        "LOG_LEVEL": s.log_level,
        # API bodies are small JSON documents (1MB)
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
