from fastapi import APIRouter

from ...core.config import get_settings

router = APIRouter()


@router.get("/health", summary="Application health check")
async def healthcheck() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "llmProvider": settings.llm_provider,
        "store": "redis" if settings.store_configured else "disabled",
    }
