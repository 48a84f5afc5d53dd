from __future__ import annotations

import pytest

from trip_architect.app.core.config import Settings
from trip_architect.app.schemas.plan import Plan
from trip_architect.app.schemas.validation import PlanVersion
from trip_architect.app.services.plan_repository import PlanRepository
from trip_architect.scripts import generate_daily


def test_check_configuration_names_missing_variables():
    settings = Settings(_env_file=None, llm_provider="google", gemini_api_key="", redis_url="")

    assert generate_daily.check_configuration(settings) == ["GEMINI_API_KEY", "REDIS_URL"]


def test_seed_prompts_pick_audience():
    tech = next(seed for seed in generate_daily.SEED_PLANS if seed.theme == "Tech")
    art = next(seed for seed in generate_daily.SEED_PLANS if seed.theme == "Art")

    assert "software engineers" in generate_daily.seed_prompts(tech)[1]
    assert "general travelers" in generate_daily.seed_prompts(art)[1]


@pytest.mark.asyncio
async def test_generate_for_seed_saves_plan(fake_redis, tokyo_plan):
    class _SeedLLM:
        name = "Fake"
        model = "fake-model"

        async def generate_object(self, system_prompt, user_prompt, schema):
            assert schema is Plan
            assert "Hakone" in user_prompt
            return Plan.model_validate(tokyo_plan)

    settings = Settings(_env_file=None, site_url="https://example.com", discord_webhook_url="", unsplash_access_key="")
    repository = PlanRepository(fake_redis, PlanVersion.V1, clock=lambda: 1712345678901)

    slug = await generate_daily.generate_for_seed(generate_daily.SEED_PLANS[0], _SeedLLM(), repository, settings)

    assert slug == "plan-1712345678901"
    assert await repository.get(slug) == Plan.model_validate(tokyo_plan)


@pytest.mark.asyncio
async def test_main_exits_non_zero_when_unconfigured(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        generate_daily,
        "get_settings",
        lambda: Settings(_env_file=None, llm_provider="openai", openai_api_key="", redis_url=""),
    )

    assert await generate_daily.main() == 1


@pytest.mark.asyncio
async def test_describe_namespace_lists_newest_entries(fake_redis, tokyo_plan):
    from trip_architect.scripts.check_redis_data import describe_namespace
    from trip_architect.app.services.plan_repository import NAMESPACES

    repository = PlanRepository(fake_redis, PlanVersion.V1, clock=iter([1_700_000_000_000, 1_700_000_001_000]).__next__)
    await repository.save(Plan.model_validate(tokyo_plan))
    newest = await repository.save(Plan.model_validate(tokyo_plan))

    lines = await describe_namespace(fake_redis, NAMESPACES[PlanVersion.V1], limit=1)

    assert lines[0] == "[v1] plan:slugs: 2 plans"
    assert lines[1].startswith(f"  {newest}  score=1700000001000")
    assert '"title":"Tokyo Tech Tour"' in lines[2]
    assert len(lines) == 3
