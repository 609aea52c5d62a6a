# config.py
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> Tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once and handed to the app."""

    database_url: str
    secret_key: str = "dev_secret"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    upload_dir: str = "uploads"
    upload_url_prefix: str = "/uploads"
    max_upload_bytes: int = 5 * 1024 * 1024
    cors_origins: Tuple[str, ...] = ("*",)
    sql_echo: bool = False
    log_level: str = "INFO"
    require_auth: bool = False

    def __post_init__(self):
        if not self.database_url:
            raise ValueError("DATABASE_URL environment variable is not set")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", ""),
            secret_key=os.getenv("SECRET_KEY", "dev_secret"),
            algorithm=os.getenv("ALGORITHM", "HS256"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            upload_url_prefix=os.getenv("UPLOAD_URL_PREFIX", "/uploads").rstrip("/"),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024))),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            sql_echo=_env_bool("SQL_ECHO"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            require_auth=_env_bool("REQUIRE_AUTH"),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
