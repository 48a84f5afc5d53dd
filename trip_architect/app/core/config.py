import re
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

WINDOW_PATTERN = re.compile(r"^\s*(\d+)\s*(s|sec|second|seconds|m|min|minute|minutes|h|hour|hours|d|day|days)\s*$")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "Trip Plan Architect"
    api_prefix: str = "/api"
    site_url: str = Field(default="https://www.trip-plan-architect.com")

    cors_origins: str = Field(default="http://localhost:3000,http://localhost:5173,http://localhost")

    is_debug: bool = Field(default=False, description="Verbose logging and the /config/status endpoint")

    # LLM provider selection (openai | google)
    llm_provider: str = Field(default="openai")
    openai_api_key: str = Field(default="")
    openai_model: str = Field(default="gpt-4o-mini")
    gemini_api_key: str = Field(default="", description="Google Gemini API key (env: GEMINI_API_KEY)")
    gemini_model: str = Field(default="gemini-1.5-flash")
    generation_timeout_seconds: float = Field(default=60.0)

    # Empty means "no store": the repository degrades to no-op writes and empty reads
    redis_url: str = Field(default="")

    # Rate limiting; storage defaults to the redis_url when left empty
    rate_limit_storage_url: str = Field(default="")
    rate_limit_prefix: str = Field(default="trip-plan-architect")
    global_rate_limit_requests: int = Field(default=30, gt=0)
    global_rate_limit_window: str = Field(default="1 h")
    ip_rate_limit_requests: int = Field(default=5, gt=0)
    ip_rate_limit_window: str = Field(default="1 d")

    plans_page_size: int = Field(default=12, gt=0, le=100)

    discord_webhook_url: str = Field(default="")
    unsplash_access_key: str = Field(default="")

    @field_validator("global_rate_limit_window", "ip_rate_limit_window")
    @classmethod
    def _check_window(cls, value: str) -> str:
        if not WINDOW_PATTERN.match(value):
            raise ValueError(f'Invalid rate limit window {value!r} (expected e.g. "1 h", "30 m", "1 d")')
        return value.strip()

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def store_configured(self) -> bool:
        return bool(self.redis_url.strip())

    @property
    def rate_limit_storage_uri(self) -> str:
        """limits storage URI; empty when neither a limiter store nor redis is configured."""
        if self.rate_limit_storage_url:
            return self.rate_limit_storage_url
        if self.redis_url.startswith(("redis://", "rediss://")):
            return f"async+{self.redis_url}"
        return ""


def mask_secret(value: str, visible: int = 4) -> str:
    if not value:
        return "NOT SET"
    return f"Set ({value[:visible]}***, length={len(value)})"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
