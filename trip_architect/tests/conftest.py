from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

import pytest
from pydantic import BaseModel

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT))

from trip_architect.app import dependencies  # noqa: E402
from trip_architect.app.core.config import Settings  # noqa: E402
from trip_architect.app.db.redis import RedisConnectionManager  # noqa: E402
from trip_architect.app.services.llm import OnFinish, StructuredStream, TokenUsage  # noqa: E402
from trip_architect.app.services.rate_limit import RateLimiters, build_rate_limiters  # noqa: E402


class _DummyPipeline:
    def __init__(self, client: "_DummyRedisClient") -> None:
        self._client = client
        self._commands: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def __getattr__(self, name: str) -> Callable[..., "_DummyPipeline"]:
        def queue(*args: Any, **kwargs: Any) -> "_DummyPipeline":
            self._commands.append((name, args, kwargs))
            return self

        return queue

    async def execute(self) -> list[Any]:
        self._client.pipelines_executed += 1
        results = []
        for name, args, kwargs in self._commands:
            results.append(await getattr(self._client, name)(*args, **kwargs))
        self._commands.clear()
        return results


class _DummyRedisClient:
    """In-memory stand-in for the handful of redis.asyncio commands the app issues."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.sorted_sets: dict[str, dict[str, float]] = {}
        self.pipelines_executed = 0

    async def ping(self) -> bool:
        return True

    async def set(self, key: str, value: str) -> bool:
        self.values[key] = value
        return True

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def mget(self, keys: list[str]) -> list[str | None]:
        return [self.values.get(key) for key in keys]

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            removed += int(self.values.pop(key, None) is not None)
            removed += int(self.sorted_sets.pop(key, None) is not None)
        return removed

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        members = self.sorted_sets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in members)
        members.update(mapping)
        return added

    async def zcard(self, key: str) -> int:
        return len(self.sorted_sets.get(key, {}))

    async def zrange(
        self,
        key: str,
        start: int,
        end: int,
        desc: bool = False,
        withscores: bool = False,
    ) -> list[Any]:
        ordered = sorted(self.sorted_sets.get(key, {}).items(), key=lambda item: (item[1], item[0]), reverse=desc)
        stop = None if end == -1 else end + 1
        window = ordered[start:stop]
        if withscores:
            return [(member, float(score)) for member, score in window]
        return [member for member, _ in window]

    def pipeline(self, transaction: bool = True) -> _DummyPipeline:
        return _DummyPipeline(self)

    async def aclose(self) -> None:
        return None


class FakeLLMProvider:
    """Provider double: queued objects for generate_object, canned fragments for stream_object."""

    name = "Fake"
    model = "fake-model"

    def __init__(self) -> None:
        self.objects: list[BaseModel] = []
        self.chunks: list[str] = []
        self.stream_error: Exception | None = None
        # chunks delivered before stream_error is raised
        self.error_after = 0
        # seconds slept before each chunk and each generate_object answer
        self.delay = 0.0
        self.calls: list[tuple[str, str, type[BaseModel]]] = []
        self.finished: list[Any] = []

    async def generate_object(self, system_prompt: str, user_prompt: str, schema: type[BaseModel]) -> BaseModel:
        self.calls.append(("generate_object", user_prompt, schema))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.objects.pop(0)

    def stream_object(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: type[BaseModel],
        on_finish: OnFinish | None = None,
    ) -> StructuredStream:
        self.calls.append(("stream_object", user_prompt, schema))

        async def record(event: Any) -> None:
            self.finished.append(event)
            if on_finish is not None:
                outcome = on_finish(event)
                if outcome is not None:
                    await outcome

        return StructuredStream(self._source(), schema, TokenUsage(12, 34), on_finish=record)

    async def _source(self) -> AsyncIterator[str]:
        for index, chunk in enumerate(self.chunks):
            if self.stream_error is not None and index == self.error_after:
                raise self.stream_error
            if self.delay:
                await asyncio.sleep(self.delay)
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error


def memory_rate_limiters(global_requests: int = 30, ip_requests: int = 5, window: str = "1 h") -> RateLimiters:
    settings = Settings(
        _env_file=None,
        rate_limit_storage_url="async+memory://",
        global_rate_limit_requests=global_requests,
        global_rate_limit_window=window,
        ip_rate_limit_requests=ip_requests,
        ip_rate_limit_window=window,
    )
    return build_rate_limiters(settings)


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> _DummyRedisClient:
    """
    Swap the shared Redis client for an in-memory stub.

    Tests marked ``integration`` construct their own client from REDIS_URL.
    """
    client = _DummyRedisClient()

    async def _noop_close(cls: type[RedisConnectionManager]) -> None:
        return None

    monkeypatch.setattr(RedisConnectionManager, "get_client", classmethod(lambda cls: client))
    monkeypatch.setattr(RedisConnectionManager, "close", classmethod(lambda cls: _noop_close(cls)))
    return client


@pytest.fixture(autouse=True)
def unlimited_rate_limits(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(dependencies, "get_rate_limiters", lambda: RateLimiters())


@pytest.fixture
def fake_llm(monkeypatch: pytest.MonkeyPatch) -> FakeLLMProvider:
    provider = FakeLLMProvider()
    monkeypatch.setattr(dependencies, "get_llm_provider", lambda: provider)
    return provider


@pytest.fixture
def tokyo_plan() -> dict[str, Any]:
    return {
        "title": "Tokyo Tech Tour",
        "intro": "Two days of gadgets and ramen.",
        "target": "engineer",
        "days": [
            {
                "day": 1,
                "events": [
                    ["09:00", "Akihabara", "Browse retro electronics", "spot", "Opens at 10 on Sundays", "Akihabara electric town"],
                    ["12:30", "Ramen Street", "Lunch", "food", "Expect a queue", None],
                ],
            },
            {
                "day": 2,
                "events": [
                    ["10:00", "Coworking Shibuya", "Deep work block", "work", "Day pass 2,000 yen", None],
                ],
            },
        ],
    }


@pytest.fixture
def scouter_payload() -> dict[str, Any]:
    return {
        "mission_title": "Operation Kurobe",
        "intro": "Survey the arch dam.",
        "target_spot": {"n": "Kurobe Dam", "q": "Kurobe Dam Toyama"},
        "atmosphere": "Concrete arch holding back a mountain lake.",
        "quests": [
            {"t": "Capture the discharge", "d": "Photograph the water release", "gear": "Sony RX100 VII"},
            {"t": "Trace the tunnel", "d": "Ride the trolley bus tunnel", "gear": "Anker PowerCore 10000"},
        ],
        "affiliate": {"item": "Sony RX100 VII", "reason": "Pocketable zoom", "q": "RX100 VII"},
    }


@pytest.fixture
def optimized_payload() -> dict[str, Any]:
    return {
        "title": "Matsue by Car",
        "image_query": "Matsue, Japan",
        "intro": "A compact loop around Lake Shinji.",
        "base_area": "Matsue Station",
        "itinerary": [
            {
                "day": 1,
                "events": [
                    {"time": "09:00", "spot": "Matsue Castle", "query": "Matsue Castle", "description": "Original keep", "type": "spot"},
                    {"time": "12:00", "spot": "Soba Kitagawa", "query": "Izumo soba Matsue", "description": "Warigo soba", "type": "food"},
                ],
                "google_maps_url": "https://www.google.com/maps/dir/?api=1&origin=Matsue+Station&destination=Matsue+Station",
            }
        ],
        "affiliate": {"label": "Rental cars in Matsue", "url": "https://example.com/rent"},
    }


@pytest.fixture
def make_rate_limiters() -> Callable[..., RateLimiters]:
    return memory_rate_limiters
