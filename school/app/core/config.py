import json
import os
import re
from typing import Annotated, Any
from urllib.parse import quote

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_cors_origins(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, list):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []
    if raw == "*":
        return ["*"]

    # Prefer JSON, but tolerate comma/space separated values.
    if raw.startswith(("[", '"')):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]
        if isinstance(parsed, str):
            raw = parsed.strip()

    origins: list[str] = []
    for part in re.split(r"[,\s]+", raw):
        if not part:
            continue
        if part == "*":
            return ["*"]
        # Browsers send the scheme in Origin, so a bare host allows both.
        candidates = [part] if "://" in part else [f"http://{part}", f"https://{part}"]
        for origin in candidates:
            if origin not in origins:
                origins.append(origin)
    return origins


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    env: str = "development"
    api_url: str = "localhost:8080"

    # Debug mode - enables exception messages in 500 responses
    debug: bool = False

    # PostgreSQL settings
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "admin"
    db_password: str = "adminpassword"
    db_name: str = "classnama"

    db_pool_size: int = 30
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 900  # DB_MAX_IDLE_TIME of 15 minutes
    db_query_timeout: float = 5.0

    # Explicit DATABASE_URL (takes priority over db_* settings)
    database_url_override: str = Field(default="", validation_alias="DATABASE_URL")

    @property
    def database_url(self) -> str:
        """Build database connection URL.

        Priority:
        1. database_url_override (from DATABASE_URL env var or .env file)
        2. Built from db_* settings
        """
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}@"
            f"{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # JWT settings
    auth_token_secret: str = "example"
    auth_token_exp_hours: int = 24 * 7
    auth_token_iss: str = "classnama"

    # Rate limiting settings (token bucket, burst == requests per window)
    rate_limiter_requests_count: int = 10
    rate_limiter_window_seconds: float = 5.0
    rate_limiter_enabled: bool = True

    # Redis / list cache settings
    redis_enabled: bool = True
    cache_backend: str = "redis"  # redis | memory
    redis_addr: str = "localhost:6379"
    redis_pw: str = ""
    redis_db: int = 0
    cache_list_ttl_seconds: int = 30

    @property
    def redis_url(self) -> str:
        """Redis URL assembled from REDIS_ADDR, REDIS_PW and REDIS_DB."""
        auth = f":{quote(self.redis_pw, safe='')}@" if self.redis_pw else ""
        return f"redis://{auth}{self.redis_addr}/{self.redis_db}"

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Use NoDecode so plain comma separated values don't crash JSON parsing.
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def decode_cors_origins(cls, v: Any) -> list[str]:
        return _parse_cors_origins(v)

    @field_validator("rate_limiter_requests_count", "cache_list_ttl_seconds")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate counts are positive."""
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @field_validator("rate_limiter_window_seconds", "db_query_timeout")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("duration must be positive")
        return v

    @field_validator("db_pool_size", "db_max_overflow")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("pool size values must be at least 1")
        return v

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("redis", "memory"):
            raise ValueError("cache_backend must be one of: redis, memory")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    model_config = SettingsConfigDict(
        env_file=os.getenv("SCHOOL_ENV_FILE", ".env"), extra="ignore"
    )


# Global settings instance
settings = Settings()
