"""
Plan save / list / fetch endpoints for the three namespaces
"""
from __future__ import annotations

import itertools
from typing import Any

import httpx
import pytest
from asgi_lifespan import LifespanManager
from redis.exceptions import RedisError

from trip_architect.app.api.routes import config as config_routes
from trip_architect.app.api.routes import plans as plans_routes
from trip_architect.app.core.config import Settings
from trip_architect.app.main import app
from trip_architect.app.schemas.optimized import OptimizedPlan
from trip_architect.app.schemas.plan import Plan
from trip_architect.app.schemas.validation import PlanVersion
from trip_architect.app.services.plan_repository import PlanRepository


async def _request(method: str, url: str, **kwargs: Any) -> httpx.Response:
    async with LifespanManager(app):
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
            response = await client.request(method, url, **kwargs)
            await response.aread()
            return response


@pytest.mark.asyncio
@pytest.mark.contract
async def test_save_then_fetch_v1_plan(tokyo_plan):
    saved = await _request("POST", "/api/plans", json=tokyo_plan)

    assert saved.status_code == 200
    body = saved.json()
    assert body["success"] is True
    assert body["slug"].startswith("plan-")
    assert "error" not in body

    fetched = await _request("GET", f"/api/plans/{body['slug']}")
    assert fetched.status_code == 200
    assert fetched.json() == tokyo_plan


@pytest.mark.asyncio
@pytest.mark.contract
async def test_save_invalid_plan_fails_without_touching_store(fake_redis, tokyo_plan):
    del tokyo_plan["days"]

    response = await _request("POST", "/api/plans", json=tokyo_plan)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Failed to save plan"
    assert body["details"][0]["path"] == "days"
    assert fake_redis.values == {}
    assert fake_redis.pipelines_executed == 0


@pytest.mark.asyncio
async def test_save_storage_failure_is_reported(monkeypatch: pytest.MonkeyPatch, fake_redis, tokyo_plan):
    def broken_pipeline(transaction: bool = True):
        raise RedisError("Connection refused")

    monkeypatch.setattr(fake_redis, "pipeline", broken_pipeline)

    response = await _request("POST", "/api/plans", json=tokyo_plan)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to save plan", "details": "Connection refused"}


@pytest.mark.asyncio
async def test_v1_payload_is_rejected_by_v3_save(tokyo_plan):
    response = await _request("POST", "/api/v3/plans", json=tokyo_plan)

    assert response.status_code == 500
    paths = {detail["path"] for detail in response.json()["details"]}
    assert {"itinerary", "days"} <= paths


@pytest.mark.asyncio
async def test_unknown_slug_is_not_found():
    response = await _request("GET", "/api/plans/plan-123")

    assert response.status_code == 404
    assert response.json() == {"error": "Plan not found"}


@pytest.mark.asyncio
async def test_list_pages_newest_first(monkeypatch: pytest.MonkeyPatch, fake_redis, tokyo_plan):
    monkeypatch.setattr(plans_routes, "get_settings", lambda: Settings(_env_file=None, plans_page_size=2))
    clock = itertools.count(1_700_000_000_000, 1000)
    repository = PlanRepository(fake_redis, PlanVersion.V1, clock=lambda: next(clock))
    slugs = []
    for title in ("Tokyo Day One", "Osaka Food Run", "Kyoto Temples"):
        slugs.append(await repository.save(Plan.model_validate({**tokyo_plan, "title": title})))

    first = (await _request("GET", "/api/plans")).json()
    second = (await _request("GET", "/api/plans?page=2")).json()

    assert first["total"] == 3
    assert first["total_pages"] == 2
    assert first["page_size"] == 2
    assert [plan["id"] for plan in first["plans"]] == [slugs[2], slugs[1]]
    assert first["plans"][0]["destination"] == "Kyoto"
    assert first["plans"][0]["days"] == 2
    assert [plan["id"] for plan in second["plans"]] == [slugs[0]]
    assert second["page"] == 2


@pytest.mark.asyncio
async def test_list_rejects_page_zero():
    response = await _request("GET", "/api/plans?page=0")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_v3_save_and_list_carry_version(optimized_payload):
    saved = await _request("POST", "/api/v3/plans", json=optimized_payload)
    slug = saved.json()["slug"]

    listed = (await _request("GET", "/api/v3/plans")).json()
    fetched = await _request("GET", f"/api/v3/plans/{slug}")

    assert listed["plans"][0]["version"] == "v3"
    assert listed["plans"][0]["target"] == "general"
    assert OptimizedPlan.model_validate(fetched.json()).base_area == "Matsue Station"
    # namespaces do not leak into each other
    assert (await _request("GET", f"/api/plans/{slug}")).status_code == 404


@pytest.mark.asyncio
async def test_v2_plan_renders_as_legacy_plan(scouter_payload):
    slug = (await _request("POST", "/api/v2/plans", json=scouter_payload)).json()["slug"]

    response = await _request("GET", f"/api/v2/plans/{slug}/legacy")

    assert response.status_code == 200
    plan = Plan.model_validate(response.json())
    assert plan.title == "Operation Kurobe"
    assert plan.target == "engineer"
    assert [event[0] for event in plan.days[0].events] == ["09:00", "10:00", "11:00"]
    assert plan.days[0].events[-1][3] == "work"


@pytest.mark.asyncio
async def test_sitemap_lists_saved_plans(tokyo_plan):
    slug = (await _request("POST", "/api/plans", json=tokyo_plan)).json()["slug"]

    response = await _request("GET", "/api/sitemap.xml")

    assert f"/plans/{slug}</loc>" in response.text


@pytest.mark.asyncio
async def test_config_status_hidden_outside_debug(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(config_routes, "get_settings", lambda: Settings(_env_file=None, is_debug=False))

    response = await _request("GET", "/api/config/status")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_config_status_masks_keys(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        config_routes,
        "get_settings",
        lambda: Settings(_env_file=None, is_debug=True, openai_api_key="sk-proj-abcdefghijkl"),
    )

    response = await _request("GET", "/api/config/status")

    assert response.status_code == 200
    body = response.json()
    assert body["openaiApiKey"] == "Set (sk-proj***, length=20)"
    assert body["geminiApiKey"] == "NOT SET"
    assert body["store"] == "connected"


@pytest.mark.asyncio
@pytest.mark.contract
@pytest.mark.parametrize(
    "prefix, fixture, omitted",
    [
        ("", "tokyo_plan", "intro"),
        ("/v3", "optimized_payload", "image_query"),
    ],
)
async def test_fetched_plan_keeps_posted_shape(request: pytest.FixtureRequest, prefix, fixture, omitted):
    payload = request.getfixturevalue(fixture)
    del payload[omitted]

    saved = await _request("POST", f"/api{prefix}/plans", json=payload)
    fetched = await _request("GET", f"/api{prefix}/plans/{saved.json()['slug']}")

    assert fetched.status_code == 200
    assert fetched.json() == payload
    assert omitted not in fetched.json()
