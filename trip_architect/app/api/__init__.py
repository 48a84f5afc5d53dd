from fastapi import APIRouter

from ..schemas.validation import PlanVersion
from .routes import config, generate, health, sitemap
from .routes.plans import build_plans_router

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(config.router, prefix="/config", tags=["config"])
api_router.include_router(generate.router, tags=["generate"])
api_router.include_router(build_plans_router(PlanVersion.V1), tags=["plans"])
api_router.include_router(build_plans_router(PlanVersion.V2), prefix="/v2", tags=["plans"])
api_router.include_router(build_plans_router(PlanVersion.V3), prefix="/v3", tags=["plans"])
api_router.include_router(sitemap.router, tags=["sitemap"])
