from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from .api import api_router
from .core.config import settings
from .core.logs import configure_logging, log_loaded_configuration
from .db.redis import RedisConnectionManager

configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_loaded_configuration(settings, logger)
    # create the shared Redis client up front so the first request does not pay for it
    try:
        if RedisConnectionManager.get_client() is not None:
            logger.info("Redis client initialised")
    except (RedisError, ValueError) as exc:  # pragma: no cover - malformed REDIS_URL
        logger.warning("Redis client initialisation failed: %s", exc)
    yield
    await RedisConnectionManager.close()


app = FastAPI(title=settings.project_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_prefix)
