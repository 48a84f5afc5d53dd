from fastapi import APIRouter
from fastapi.responses import Response

from ...core.config import get_settings
from ...dependencies import get_plan_repository
from ...schemas.validation import PlanVersion
from ...services.sitemap import render_sitemap

router = APIRouter()


@router.get("/sitemap.xml", summary="Sitemap of static pages and saved plans")
async def sitemap() -> Response:
    slugs = await get_plan_repository(PlanVersion.V1).list()
    xml = render_sitemap(get_settings().site_url, slugs)
    return Response(content=xml, media_type="application/xml")
