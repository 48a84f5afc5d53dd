"""
Scheduled generation of one v1 travel plan from curated seed data.

1. Check configuration (LLM key for the selected provider, REDIS_URL)
2. Pick a random seed
3. Generate a Plan with the configured LLM provider
4. Look up an Unsplash image for the region (optional)
5. Save through the v1 repository
6. Post a Discord embed (optional)

Exit code 1 on any failure, so a CI schedule marks the run red.

    python -m trip_architect.scripts.generate_daily
"""
from __future__ import annotations

import asyncio
import logging
import random
import sys
from dataclasses import dataclass
from pathlib import Path

from redis.exceptions import RedisError

# make the project root importable when run as a file
project_root = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(project_root))

from trip_architect.app.core.config import Settings, get_settings  # noqa: E402
from trip_architect.app.core.errors import TripArchitectError  # noqa: E402
from trip_architect.app.core.logs import configure_logging  # noqa: E402
from trip_architect.app.db.redis import RedisConnectionManager  # noqa: E402
from trip_architect.app.schemas.plan import Plan  # noqa: E402
from trip_architect.app.schemas.validation import PlanVersion  # noqa: E402
from trip_architect.app.services.llm import LLMProvider, get_llm_client  # noqa: E402
from trip_architect.app.services.notifications import (  # noqa: E402
    fetch_unsplash_image,
    send_discord_notification,
)
from trip_architect.app.services.plan_repository import PlanRepository  # noqa: E402

logger = logging.getLogger("generate_daily")


@dataclass(frozen=True)
class SeedPlan:
    region: str
    title: str
    theme: str
    keywords: tuple[str, ...]


SEED_PLANS: tuple[SeedPlan, ...] = (
    # deep work
    SeedPlan("Hakone", "Hakone Onsen Development Camp", "Deep Work", ("hot spring", "ryokan", "laptop", "japanese room")),
    SeedPlan("Nagano", "Lakeside Coworking Retreat", "Deep Work", ("lake", "forest", "laptop", "nature")),
    SeedPlan("Shirahama", "Resort Workation in Shirahama", "Workation", ("white beach", "resort", "tropical", "laptop")),
    SeedPlan("Tokushima", "Kamiyama Satellite Office Tour", "Workation", ("rural japan", "old house", "mountain", "river")),
    # tech and industry
    SeedPlan("Akihabara", "Akihabara Retro Tech Hunt", "Tech", ("akihabara", "electronics", "retro game", "neon")),
    SeedPlan("Fukuoka", "Fukuoka Startup & Engineer Cafe", "Tech", ("fukuoka city", "cafe", "coworking", "modern office")),
    SeedPlan("Tsukuba", "Tsukuba Space & Science Tour", "Science", ("rocket", "space center", "robot", "science museum")),
    SeedPlan("Nagoya", "Nagoya Industrial Tech History", "Industry", ("factory", "machine", "museum", "industrial")),
    SeedPlan("Toyama", "Kurobe Dam Infrastructure Tour", "Industry", ("huge dam", "water release", "mountain", "engineering")),
    # city nomad
    SeedPlan("Kyoto", "Kyoto Machiya Cafe & Temple Work", "Workation", ("kyoto street", "matcha", "temple", "japanese garden")),
    SeedPlan("Kobe", "Kobe Port & Jazz Cafe Coding", "Relax", ("jazz cafe", "coffee", "kobe port", "brick warehouse")),
    # nature and culture
    SeedPlan("Yakushima", "Yakushima Ancient Forest Trek", "Nature", ("ancient forest", "moss", "green", "hiking")),
    SeedPlan("Naoshima", "Naoshima Modern Art Island Tour", "Art", ("modern art", "sculpture", "sea", "island")),
    SeedPlan("Nagasaki", "Gunkanjima Abandoned Island Tour", "History", ("abandoned building", "ruins", "concrete", "island")),
)


def check_configuration(settings: Settings) -> list[str]:
    """Names of the missing environment variables (empty when ready to run)."""
    missing = []
    provider = settings.llm_provider.strip().lower()
    if provider == "openai" and not settings.openai_api_key:
        missing.append("OPENAI_API_KEY")
    elif provider == "google" and not settings.gemini_api_key:
        missing.append("GEMINI_API_KEY")
    if not settings.store_configured:
        missing.append("REDIS_URL")
    return missing


def seed_prompts(seed: SeedPlan) -> tuple[str, str]:
    audience = (
        "software engineers and tech professionals"
        if "Work" in seed.theme or "Tech" in seed.theme
        else "general travelers with specific interests"
    )
    system_prompt = f"""You are a professional travel planner specializing in {seed.theme.lower()} travel experiences.
Create a detailed, realistic travel itinerary that matches the theme and destination provided.
The plan should be well-structured, include specific times, activities, and helpful notes.
Every event is a 6-element array: [time, name, activity, type, note, image query]. Use spot/food/work/move for type."""
    user_prompt = f"""Create a travel plan for {seed.region} with the theme "{seed.theme}".

Title suggestion: "{seed.title}"
Focus keywords: {", ".join(seed.keywords)}

- 3-5 days of activities, 4-8 events per day
- Realistic timing (breakfast at 8:00, lunch at 12:00, ...)
- Mix sightseeing, dining, work time (for workation or deep work themes) and travel time
- Target audience: {audience}"""
    return system_prompt, user_prompt


async def generate_for_seed(
    seed: SeedPlan,
    llm: LLMProvider,
    repository: PlanRepository,
    settings: Settings,
) -> str:
    """Generate, save and announce one plan. Returns the new slug."""
    logger.info("Generating plan for %s (%s, %s)", seed.title, seed.region, seed.theme)
    plan = await llm.generate_object(*seed_prompts(seed), Plan)
    logger.info(
        "Plan generated: %r, %d days, %d events",
        plan.title,
        len(plan.days),
        sum(len(day.events) for day in plan.days),
    )

    await fetch_unsplash_image(settings.unsplash_access_key, seed.region, seed.keywords[0])

    slug = await repository.save(plan)
    plan_url = f"{settings.site_url.rstrip('/')}/plans/{slug}"
    logger.info("Plan saved: %s", plan_url)

    await send_discord_notification(
        settings.discord_webhook_url,
        title=plan.title,
        plan_url=plan_url,
        fields={"Region": seed.region, "Theme": seed.theme, "Keywords": ", ".join(seed.keywords)},
    )
    return slug


async def main() -> int:
    settings = get_settings()
    configure_logging(settings)

    missing = check_configuration(settings)
    if missing:
        logger.error("Missing required environment variables: %s", ", ".join(missing))
        return 1

    seed = random.choice(SEED_PLANS)
    try:
        llm = get_llm_client(settings)
        repository = PlanRepository(RedisConnectionManager.get_client(), PlanVersion.V1)
        slug = await generate_for_seed(seed, llm, repository, settings)
    except (TripArchitectError, RedisError) as exc:
        logger.error("Error during plan generation: %s", exc)
        return 1
    finally:
        await RedisConnectionManager.close()

    logger.info("Generation completed: %s", slug)
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
