from __future__ import annotations

import math
from typing import Any, Literal

RateLimitTier = Literal["global", "ip"]


class TripArchitectError(Exception):
    """Base class for errors raised by the application layers."""


class PlanValidationError(TripArchitectError):
    def __init__(self, errors: list[dict[str, Any]], message: str = "Plan validation failed") -> None:
        self.errors = errors
        super().__init__(f"{message}: " + "; ".join(f"{e['path'] or '<root>'}: {e['message']}" for e in errors))


class RateLimitExceeded(TripArchitectError):
    def __init__(self, tier: RateLimitTier, identifier: str, limit: int, reset_at_ms: int, now_ms: int) -> None:
        self.tier = tier
        self.identifier = identifier
        self.limit = limit
        self.reset_at_ms = reset_at_ms
        self.retry_after_seconds = max(0, math.ceil((reset_at_ms - now_ms) / 1000))
        super().__init__(f"Rate limit exceeded. Try again in {self.retry_after_seconds} seconds.")


class LLMConfigurationError(TripArchitectError):
    """Provider selector or credentials are wrong. Raised before any network call."""


class LLMProviderError(TripArchitectError):
    """The upstream model API failed or returned something unusable."""
