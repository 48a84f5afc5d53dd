"""
Redis-backed storage for generated plans.

Each schema version lives in its own key namespace::

    {prefix}:{slug}        full record (JSON)
    {prefix}:meta:{slug}   PlanMetadata projection (JSON) for list views
    {prefix}:slugs         sorted set, score = creation time in epoch ms

with prefix ``plan`` (v1), ``plan:v2`` and ``plan:v3``. The three writes of a
save go out in one pipeline but are not a transaction: a reader can briefly
see an index entry whose metadata is missing, which listing tolerates by
deriving metadata from the full record.

Without a Redis client (REDIS_URL unset) every operation is a no-op: saves
return a slug without writing and reads come back empty.
"""
from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..schemas.metadata import PlanMetadata
from ..schemas.validation import PLAN_MODELS, PlanVersion

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
DEFAULT_RECENT_LIMIT = 10

_SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")
_TITLE_SEPARATORS = re.compile(r"[\s　・、,，/|:：]+")


@dataclass(frozen=True)
class Namespace:
    version: PlanVersion
    prefix: str

    def record_key(self, slug: str) -> str:
        return f"{self.prefix}:{slug}"

    def meta_key(self, slug: str) -> str:
        return f"{self.prefix}:meta:{slug}"

    @property
    def index_key(self) -> str:
        return f"{self.prefix}:slugs"

    @property
    def tag(self) -> str | None:
        return None if self.version is PlanVersion.V1 else self.version.value


NAMESPACES: dict[PlanVersion, Namespace] = {
    PlanVersion.V1: Namespace(PlanVersion.V1, "plan"),
    PlanVersion.V2: Namespace(PlanVersion.V2, "plan:v2"),
    PlanVersion.V3: Namespace(PlanVersion.V3, "plan:v3"),
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_slug(timestamp_ms: int) -> str:
    return f"plan-{timestamp_ms}"


def is_valid_slug(slug: str) -> bool:
    # keeps user-supplied slugs from reaching into meta/index keys or other namespaces
    return bool(_SLUG_PATTERN.match(slug))


def extract_destination(title: str) -> str:
    """Best effort: the first token of the title ("Kyoto Temple Walk" -> "Kyoto")."""
    for token in _TITLE_SEPARATORS.split(title.strip()):
        if token:
            return token
    return ""


def build_metadata(data: dict[str, Any], slug: str, created_at: int, version: PlanVersion) -> PlanMetadata:
    """Project a full record (as a plain dict) onto PlanMetadata."""
    if version is PlanVersion.V2:
        title = str(data.get("mission_title") or slug)
        days = 1
        target = "engineer"
    elif version is PlanVersion.V3:
        title = str(data.get("title") or slug)
        days = len(data.get("itinerary") or [])
        target = str(data.get("target") or "general")
    else:
        title = str(data.get("title") or slug)
        days = len(data.get("days") or [])
        target = str(data.get("target") or "general")

    return PlanMetadata(
        id=slug,
        title=title,
        destination=extract_destination(title),
        days=days,
        target=target,
        created_at=created_at,
        version=NAMESPACES[version].tag,
    )


class PlanRepository:
    def __init__(
        self,
        redis: Redis | None,
        version: PlanVersion | str = PlanVersion.V1,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.redis = redis
        self.version = PlanVersion(version)
        self.namespace = NAMESPACES[self.version]
        self.model: type[BaseModel] = PLAN_MODELS[self.version]
        self._clock = clock

    @property
    def available(self) -> bool:
        return self.redis is not None

    async def save(self, record: BaseModel) -> str:
        """
        Persist a validated record.

        Returns:
            the new slug, ``plan-{epoch_ms}``. Two saves in the same
            millisecond share a slug and the later one wins.
        """
        if not isinstance(record, self.model):
            raise TypeError(f"{self.version.value} repository expects {self.model.__name__}, got {type(record).__name__}")

        created_at = self._clock()
        slug = generate_slug(created_at)

        if self.redis is None:
            logger.debug("Redis not configured, plan not saved: %s", slug)
            return slug

        metadata = build_metadata(record.model_dump(mode="json"), slug, created_at, self.version)
        pipe = self.redis.pipeline(transaction=False)
        # only the fields the caller set, so a read returns the posted shape
        pipe.set(self.namespace.record_key(slug), record.model_dump_json(exclude_unset=True))
        pipe.set(self.namespace.meta_key(slug), metadata.model_dump_json())
        pipe.zadd(self.namespace.index_key, {slug: created_at})
        await pipe.execute()

        logger.info("Plan saved: namespace=%s slug=%s", self.namespace.prefix, slug)
        return slug

    async def get(self, slug: str) -> BaseModel | None:
        if self.redis is None:
            return None
        if not is_valid_slug(slug):
            return None

        try:
            data = await self.redis.get(self.namespace.record_key(slug))
        except RedisError as exc:
            logger.warning("Error retrieving plan %s: %s", slug, exc)
            return None
        if not data:
            return None

        try:
            return self.model.model_validate_json(data)
        except ValidationError as exc:
            logger.warning("Stored plan %s does not match %s: %s", slug, self.model.__name__, exc)
            return None

    async def list(self) -> list[str]:
        """All slugs, newest first."""
        if self.redis is None:
            return []
        try:
            return await self.redis.zrange(self.namespace.index_key, 0, -1, desc=True)
        except RedisError as exc:
            logger.warning("Error listing plans: %s", exc)
            return []

    async def get_recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[str]:
        if self.redis is None:
            return []
        limit = min(limit, MAX_PAGE_SIZE)
        if limit <= 0:
            return []
        try:
            return await self.redis.zrange(self.namespace.index_key, 0, limit - 1, desc=True)
        except RedisError as exc:
            logger.warning("Error getting recent plans: %s", exc)
            return []

    async def get_recent_with_metadata(self, limit: int = DEFAULT_RECENT_LIMIT, offset: int = 0) -> list[PlanMetadata]:
        """
        One page of metadata, newest first.

        The page is a rank range on the index (offset .. offset+limit-1),
        with ``limit`` capped at MAX_PAGE_SIZE. Slugs whose metadata entry is
        missing (records saved before metadata existed) are derived from the
        full record and are never dropped from the page.
        """
        if self.redis is None:
            return []
        limit = min(limit, MAX_PAGE_SIZE)
        if limit <= 0 or offset < 0:
            return []

        try:
            entries = await self.redis.zrange(
                self.namespace.index_key, offset, offset + limit - 1, desc=True, withscores=True
            )
            if not entries:
                return []
            raw_metadata = await self.redis.mget([self.namespace.meta_key(slug) for slug, _ in entries])
        except RedisError as exc:
            logger.warning("Error listing plan metadata: %s", exc)
            return []

        plans: list[PlanMetadata] = []
        for (slug, score), raw in zip(entries, raw_metadata):
            metadata = self._load_metadata(slug, raw)
            if metadata is None:
                metadata = await self._derive_metadata(slug, int(score))
            plans.append(metadata)
        return plans

    async def get_total_count(self) -> int:
        if self.redis is None:
            return 0
        try:
            return int(await self.redis.zcard(self.namespace.index_key))
        except RedisError as exc:
            logger.warning("Error counting plans: %s", exc)
            return 0

    def _load_metadata(self, slug: str, raw: str | None) -> PlanMetadata | None:
        if not raw:
            return None
        try:
            return PlanMetadata.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Corrupt metadata for %s, deriving from record: %s", slug, exc)
            return None

    async def _derive_metadata(self, slug: str, created_at: int) -> PlanMetadata:
        logger.debug("Metadata missing for %s, falling back to full record", slug)
        try:
            raw = await self.redis.get(self.namespace.record_key(slug))  # type: ignore[union-attr]
            data = json.loads(raw) if raw else None
        except (RedisError, ValueError) as exc:
            logger.warning("Error reading plan %s for metadata: %s", slug, exc)
            data = None

        if isinstance(data, dict):
            return build_metadata(data, slug, created_at, self.version)
        return PlanMetadata(
            id=slug,
            title=slug,
            destination="",
            days=0,
            target="",
            created_at=created_at,
            version=self.namespace.tag,
        )
