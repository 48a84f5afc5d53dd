from __future__ import annotations

import logging
import math

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from ...core.config import get_settings
from ...core.errors import PlanValidationError, TripArchitectError
from ...dependencies import get_plan_repository
from ...schemas.metadata import PlanListResponse, SavePlanResponse
from ...schemas.scouter import ScouterResponse
from ...schemas.validation import PlanVersion, validate_plan
from ...services.adapters import scouter_response_to_plan

logger = logging.getLogger(__name__)

PLAN_NOT_FOUND = {"error": "Plan not found"}


def build_plans_router(version: PlanVersion) -> APIRouter:
    """Save/list/get endpoints for one plan version; mounted once per namespace."""
    router = APIRouter()

    @router.post(
        "/plans",
        response_model=SavePlanResponse,
        response_model_exclude_none=True,
        summary=f"Save a {version.value} plan",
    )
    async def save_plan(request: Request):
        try:
            record = validate_plan(await request.json(), version)
            slug = await get_plan_repository(version).save(record)
        except (ValueError, TripArchitectError, RedisError) as exc:
            logger.error("Error saving %s plan: %s", version.value, exc)
            details = exc.errors if isinstance(exc, PlanValidationError) else str(exc)
            body = SavePlanResponse(success=False, error="Failed to save plan", details=details)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=body.model_dump(exclude_none=True),
            )
        return SavePlanResponse(success=True, slug=slug)

    @router.get("/plans", response_model=PlanListResponse, summary=f"List {version.value} plans, newest first")
    async def list_plans(page: int = Query(default=1, ge=1)) -> PlanListResponse:
        page_size = get_settings().plans_page_size
        repository = get_plan_repository(version)
        plans = await repository.get_recent_with_metadata(limit=page_size, offset=(page - 1) * page_size)
        total = await repository.get_total_count()
        return PlanListResponse(
            plans=plans,
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size),
        )

    @router.get("/plans/{slug}", summary=f"Fetch a saved {version.value} plan")
    async def get_plan(slug: str):
        record = await get_plan_repository(version).get(slug)
        if record is None:
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=PLAN_NOT_FOUND)
        return record.model_dump(mode="json", exclude_unset=True)

    if version is PlanVersion.V2:

        @router.get("/plans/{slug}/legacy", summary="Fetch a v2 briefing rendered as a v1 plan")
        async def get_plan_as_legacy(slug: str):
            record = await get_plan_repository(version).get(slug)
            if not isinstance(record, ScouterResponse):
                return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=PLAN_NOT_FOUND)
            return scouter_response_to_plan(record).model_dump(mode="json", exclude_unset=True)

    return router
