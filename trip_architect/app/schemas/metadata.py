from typing import Any, Literal

from pydantic import BaseModel, Field

PlanVersionTag = Literal["v2", "v3"]


class PlanMetadata(BaseModel):
    id: str
    title: str
    destination: str
    days: int
    target: str
    created_at: int = Field(description="Creation time, epoch milliseconds")
    version: PlanVersionTag | None = None


class SavePlanResponse(BaseModel):
    success: bool
    slug: str | None = None
    error: str | None = None
    details: Any | None = None


class PlanListResponse(BaseModel):
    plans: list[PlanMetadata]
    page: int
    page_size: int
    total: int
    total_pages: int
