from __future__ import annotations

import logging

from .config import Settings, mask_secret

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Root logger setup. Debug mode lowers the level so logger.debug traces show up."""
    level = logging.DEBUG if settings.is_debug else logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    # third-party clients are noisy at DEBUG
    for noisy in ("httpx", "httpcore", "openai", "google_genai"):
        logging.getLogger(noisy).setLevel(max(level, logging.INFO))


def log_loaded_configuration(settings: Settings, logger: logging.Logger) -> None:
    logger.info("Loaded configuration")
    logger.info("  - LLM provider: %s", settings.llm_provider)
    logger.info(
        "  - Global rate limit: %s reqs / %s",
        settings.global_rate_limit_requests,
        settings.global_rate_limit_window,
    )
    logger.info("  - IP rate limit: %s reqs / %s", settings.ip_rate_limit_requests, settings.ip_rate_limit_window)
    logger.info("  - Debug mode: %s", settings.is_debug)
    logger.info("  - OpenAI API key: %s", mask_secret(settings.openai_api_key, visible=7))
    logger.info("  - Gemini API key: %s", mask_secret(settings.gemini_api_key))
    logger.info("  - Redis URL: %s", "Set" if settings.store_configured else "NOT SET (plans will not be persisted)")
