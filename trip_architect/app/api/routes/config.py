from fastapi import APIRouter, Depends, HTTPException, status
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ...core.config import get_settings, mask_secret
from ...dependencies import get_redis

router = APIRouter()


@router.get("/status", summary="Configuration presence report (debug mode only)")
async def config_status(redis: Redis | None = Depends(get_redis)) -> dict[str, object]:
    settings = get_settings()
    if not settings.is_debug:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    store = "not configured"
    if redis is not None:
        try:
            await redis.ping()
            store = "connected"
        except RedisError as exc:
            store = f"unreachable: {exc}"

    return {
        "llmProvider": settings.llm_provider,
        "openaiApiKey": mask_secret(settings.openai_api_key, visible=7),
        "geminiApiKey": mask_secret(settings.gemini_api_key),
        "store": store,
        "rateLimits": {
            "global": f"{settings.global_rate_limit_requests} per {settings.global_rate_limit_window}",
            "ip": f"{settings.ip_rate_limit_requests} per {settings.ip_rate_limit_window}",
        },
    }
