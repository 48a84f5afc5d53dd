"""
Print the newest index entries of each plan namespace with their metadata.

    REDIS_URL=redis://... python -m trip_architect.scripts.check_redis_data [limit]
"""
from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

from redis.asyncio import Redis

# make the project root importable when run as a file
project_root = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(project_root))

from trip_architect.app.core.config import get_settings  # noqa: E402
from trip_architect.app.db.redis import RedisConnectionManager  # noqa: E402
from trip_architect.app.services.plan_repository import NAMESPACES, Namespace  # noqa: E402

DEFAULT_LIMIT = 5


async def describe_namespace(redis: Redis, namespace: Namespace, limit: int = DEFAULT_LIMIT) -> list[str]:
    total = await redis.zcard(namespace.index_key)
    lines = [f"[{namespace.version.value}] {namespace.index_key}: {total} plans"]
    entries = await redis.zrange(namespace.index_key, 0, limit - 1, desc=True, withscores=True)
    for slug, score in entries:
        created = datetime.fromtimestamp(score / 1000, tz=timezone.utc)
        meta = await redis.get(namespace.meta_key(slug))
        lines.append(f"  {slug}  score={int(score)}  date={created.isoformat()}")
        lines.append(f"    metadata: {meta if meta else '(missing, derived from record on read)'}")
    return lines


async def main(limit: int = DEFAULT_LIMIT) -> int:
    if not get_settings().store_configured:
        print("REDIS_URL is not set", file=sys.stderr)
        return 1

    redis = RedisConnectionManager.get_client()
    try:
        for namespace in NAMESPACES.values():
            print("\n".join(await describe_namespace(redis, namespace, limit)))
            print("-" * 50)
    finally:
        await RedisConnectionManager.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main(int(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_LIMIT)))
