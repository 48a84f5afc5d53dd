"""Sliding-window rate limiting for the generation endpoints.

Two limiters run side by side: one shared by every caller (identifier
``"global"``) and one keyed by client IP. Both fail open: without a configured
storage, or when the storage errors, requests are let through.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass

from limits import RateLimitItem, parse
from limits.aio.strategies import MovingWindowRateLimiter
from limits.errors import ConfigurationError
from limits.storage import storage_from_string
from pydantic import BaseModel

from ..core.config import WINDOW_PATTERN, Settings
from ..core.errors import RateLimitExceeded, RateLimitTier

logger = logging.getLogger(__name__)

GLOBAL_IDENTIFIER = "global"
UNKNOWN_IP = "unknown"

_UNIT_NAMES = {
    "s": "second",
    "sec": "second",
    "m": "minute",
    "min": "minute",
    "h": "hour",
    "d": "day",
}


class RateLimitResult(BaseModel):
    allowed: bool
    limit: int
    remaining: int
    reset_at_ms: int


UNLIMITED = RateLimitResult(allowed=True, limit=0, remaining=0, reset_at_ms=0)


def parse_rate_limit(requests: int, window: str) -> RateLimitItem:
    """``(5, "1 d")`` -> a limits item allowing 5 hits per trailing day."""
    match = WINDOW_PATTERN.match(window)
    if not match:
        raise ValueError(f"Invalid rate limit window: {window!r}")
    amount, unit = match.groups()
    granularity = _UNIT_NAMES.get(unit) or unit.removesuffix("s")
    return parse(f"{requests} per {amount} {granularity}")


@dataclass
class SlidingWindowLimiter:
    tier: RateLimitTier
    item: RateLimitItem
    strategy: MovingWindowRateLimiter
    prefix: str

    async def limit(self, identifier: str) -> RateLimitResult:
        allowed = await self.strategy.hit(self.item, self.prefix, self.tier, identifier)
        stats = await self.strategy.get_window_stats(self.item, self.prefix, self.tier, identifier)
        return RateLimitResult(
            allowed=allowed,
            limit=self.item.amount,
            remaining=stats.remaining,
            reset_at_ms=int(stats.reset_time * 1000),
        )


@dataclass
class RateLimiters:
    global_limiter: SlidingWindowLimiter | None = None
    ip_limiter: SlidingWindowLimiter | None = None


def build_rate_limiters(settings: Settings) -> RateLimiters:
    uri = settings.rate_limit_storage_uri
    if not uri:
        logger.warning("Rate limit storage not configured; generation requests are not limited")
        return RateLimiters()
    try:
        storage = storage_from_string(uri)
    except ConfigurationError as exc:
        logger.warning("Rate limit storage unavailable (%s); generation requests are not limited", exc)
        return RateLimiters()

    strategy = MovingWindowRateLimiter(storage)
    return RateLimiters(
        global_limiter=SlidingWindowLimiter(
            tier="global",
            item=parse_rate_limit(settings.global_rate_limit_requests, settings.global_rate_limit_window),
            strategy=strategy,
            prefix=settings.rate_limit_prefix,
        ),
        ip_limiter=SlidingWindowLimiter(
            tier="ip",
            item=parse_rate_limit(settings.ip_rate_limit_requests, settings.ip_rate_limit_window),
            strategy=strategy,
            prefix=settings.rate_limit_prefix,
        ),
    )


async def check_rate_limit(identifier: str, limiter: SlidingWindowLimiter | None) -> RateLimitResult:
    """
    Count one request for ``identifier`` against ``limiter``.

    Returns:
        RateLimitResult (limit/remaining/reset are 0 when no limiter is configured)

    Raises:
        RateLimitExceeded: when the window is full, with a retry-after hint
    """
    if limiter is None:
        return UNLIMITED

    try:
        result = await limiter.limit(identifier)
    except Exception as exc:
        logger.warning("Rate limit check failed for tier=%s, allowing request: %s", limiter.tier, exc)
        return UNLIMITED

    if not result.allowed:
        raise RateLimitExceeded(
            tier=limiter.tier,
            identifier=identifier,
            limit=result.limit,
            reset_at_ms=result.reset_at_ms,
            now_ms=int(time.time() * 1000),
        )
    logger.debug("Rate limit ok tier=%s id=%s remaining=%s", limiter.tier, identifier, result.remaining)
    return result


async def check_generation_limits(client_ip: str, limiters: RateLimiters) -> None:
    """Global bucket first, then the per-IP bucket; the raised error names the tier that tripped."""
    await check_rate_limit(GLOBAL_IDENTIFIER, limiters.global_limiter)
    await check_rate_limit(client_ip, limiters.ip_limiter)


def get_client_ip(headers: Mapping[str, str]) -> str:
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return headers.get("x-real-ip") or UNKNOWN_IP
