from __future__ import annotations

import re
from datetime import datetime, timezone
from xml.sax.saxutils import escape

STATIC_PAGES = (
    ("", "daily", "1.0"),
    ("/plans", "daily", "0.8"),
    ("/privacy", "monthly", "0.3"),
    ("/terms", "monthly", "0.3"),
)

_TRAILING_TIMESTAMP = re.compile(r"-(\d{10,})$")


def slug_timestamp(slug: str) -> datetime | None:
    """Slugs end in the creation epoch milliseconds (``plan-1712345678901``)."""
    match = _TRAILING_TIMESTAMP.search(slug)
    if not match:
        return None
    return datetime.fromtimestamp(int(match.group(1)) / 1000, tz=timezone.utc)


def _url(loc: str, lastmod: datetime, changefreq: str, priority: str) -> str:
    return (
        "  <url>\n"
        f"    <loc>{escape(loc)}</loc>\n"
        f"    <lastmod>{lastmod.strftime('%Y-%m-%dT%H:%M:%S+00:00')}</lastmod>\n"
        f"    <changefreq>{changefreq}</changefreq>\n"
        f"    <priority>{priority}</priority>\n"
        "  </url>"
    )


def render_sitemap(base_url: str, plan_slugs: list[str], now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    base_url = base_url.rstrip("/")
    entries = [_url(f"{base_url}{path}", now, freq, priority) for path, freq, priority in STATIC_PAGES]
    for slug in plan_slugs:
        entries.append(_url(f"{base_url}/plans/{slug}", slug_timestamp(slug) or now, "weekly", "0.6"))
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        + "\n".join(entries)
        + "\n</urlset>\n"
    )
