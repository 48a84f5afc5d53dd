"""Outbound integrations used by the scheduled generator (Discord, Unsplash)."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

logger = logging.getLogger(__name__)

UNSPLASH_SEARCH_URL = "https://api.unsplash.com/search/photos"
DISCORD_EMBED_COLOR = 0x3B82F6


async def send_discord_notification(
    webhook_url: str,
    *,
    title: str,
    plan_url: str,
    fields: dict[str, str],
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Post an embed about a new plan. Returns False (and logs) instead of raising."""
    if not webhook_url:
        logger.info("Discord webhook not configured, skipping notification")
        return False

    embed = {
        "title": "New Travel Plan Generated",
        "description": title,
        "color": DISCORD_EMBED_COLOR,
        "fields": [
            *({"name": name, "value": value, "inline": True} for name, value in fields.items()),
            {"name": "URL", "value": plan_url, "inline": False},
        ],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=10.0)
    try:
        response = await client.post(webhook_url, json={"embeds": [embed]})
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Discord notification failed: %s", exc)
        return False
    finally:
        if owns_client:
            await client.aclose()

    logger.info("Discord notification sent")
    return True


async def fetch_unsplash_image(
    access_key: str,
    region: str,
    keyword: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> str | None:
    """
    Look up a landscape photo for a region.

    Tries "region keyword" first and falls back to the region alone.
    Returns None when the key is missing, nothing matches, or the API fails.
    """
    if not access_key:
        logger.info("Unsplash API key not configured, skipping image fetch")
        return None

    queries = [f"{region} {keyword}", region] if keyword else [region]
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=10.0)
    try:
        for query in queries:
            try:
                response = await client.get(
                    UNSPLASH_SEARCH_URL,
                    params={"query": query, "orientation": "landscape", "per_page": 1},
                    headers={"Authorization": f"Client-ID {access_key}"},
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.warning("Unsplash API error for %r: %s", query, exc)
                return None
            results = response.json().get("results") or []
            if results:
                logger.info("Image fetched for query: %r", query)
                return results[0]["urls"]["regular"]
            logger.info("No Unsplash results for %r", query)
        return None
    finally:
        if owns_client:
            await client.aclose()
