"""Application settings loaded from the environment."""

from typing import Optional
from urllib.parse import quote

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from aiportal.core.config.enums import Environment, GrantPolicy, RealtimeBackend


class Settings(BaseSettings):
    """Settings for the AI Portal backend.

    Values are read from environment variables (or a local ``.env`` file).
    Names match the environment variable exactly.
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    PROJECT_NAME: str = "AI Portal"
    ENVIRONMENT: Environment = Environment.LOCAL
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "aiportal"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "aiportal"
    POSTGRES_SSLMODE: str = "prefer"
    db_pool_size: int = 20
    db_pool_max_overflow: int = 40
    CREATE_TABLES_ON_STARTUP: bool = True
    SEED_CATALOG_ON_STARTUP: bool = True

    # Redis (realtime fan-out)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: Optional[str] = None
    REDIS_DB: int = 0
    REALTIME_BACKEND: RealtimeBackend = RealtimeBackend.MEMORY
    REALTIME_HEARTBEAT_SECONDS: float = 30.0
    NOTIFICATION_TIMEOUT_SECONDS: float = 1.0

    # Text generation upstream
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    TEXT_MODEL: str = "gpt-3.5-turbo"
    TEXT_MAX_TOKENS: int = 1000
    TEXT_TEMPERATURE: float = 0.7
    TEXT_TIMEOUT_SECONDS: float = 120.0
    TEXT_FALLBACK_COOLDOWN_SECONDS: float = 60.0

    # Entitlements and quota
    GRANT_POLICY: GrantPolicy = GrantPolicy.FREE_TIER_FALLBACK
    FREE_TIER_WORDS_PER_DAY: int = 500
    FREE_TIER_REQUESTS_PER_DAY: int = 10
    FREE_TIER_IMAGES_PER_DAY: int = 3
    ZERO_CAP_FALLBACK_WORDS: int = 500
    ZERO_CAP_FALLBACK_IMAGES: int = 3
    ZERO_CAP_FALLBACK_REQUESTS: int = 10
    SERIALIZE_METERED_REQUESTS: bool = True
    TRIAL_DURATION_DAYS: int = 7

    @field_validator("OPENAI_API_KEY", "OPENAI_BASE_URL", "REDIS_PASSWORD", mode="before")
    @classmethod
    def _empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def SQLALCHEMY_ASYNC_DATABASE_URI(self) -> str:  # noqa: N802
        """Async SQLAlchemy URI for asyncpg."""
        password = quote(self.POSTGRES_PASSWORD, safe="")
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{password}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def REDIS_URL(self) -> str:  # noqa: N802
        """Redis connection URL including credentials when configured."""
        if self.REDIS_PASSWORD:
            encoded_pwd = quote(self.REDIS_PASSWORD, safe="")
            return f"redis://:{encoded_pwd}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
