from collections.abc import AsyncGenerator
from functools import lru_cache

from redis.asyncio import Redis

from .core.config import get_settings
from .db.redis import RedisConnectionManager
from .schemas.validation import PlanVersion
from .services.llm import LLMProvider, get_llm_client
from .services.plan_repository import PlanRepository
from .services.rate_limit import RateLimiters, build_rate_limiters


async def get_redis() -> AsyncGenerator[Redis | None, None]:
    client = RedisConnectionManager.get_client()
    try:
        yield client
    finally:
        # shared singleton, closed in the lifespan handler
        pass


def get_plan_repository(version: PlanVersion) -> PlanRepository:
    return PlanRepository(RedisConnectionManager.get_client(), version)


@lru_cache
def get_rate_limiters() -> RateLimiters:
    return build_rate_limiters(get_settings())


def get_llm_provider() -> LLMProvider:
    """Built per request so a bad configuration surfaces as a 500 on that request."""
    return get_llm_client(get_settings())
