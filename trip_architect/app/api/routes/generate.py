from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ValidationError

from ... import dependencies
from ...core.errors import LLMConfigurationError, LLMProviderError, RateLimitExceeded, TripArchitectError
from ...schemas.inputs import GenerateInput, GenerateInputV3, InputValidationResult
from ...schemas.validation import PLAN_MODELS, PlanVersion, format_validation_errors
from ...services.llm import FinishEvent, LLMProvider
from ...services.prompts import (
    PromptPair,
    input_check_prompts,
    optimized_plan_prompts,
    plan_prompts,
    scouter_prompts,
)
from ...services.rate_limit import check_generation_limits, get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter()

STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"
STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
}

PromptBuilder = Callable[[Any, LLMProvider], Awaitable[PromptPair]]


def _error(status_code: int, **body: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body)


def _rate_limited(exc: RateLimitExceeded, client_ip: str) -> JSONResponse:
    body: dict[str, Any] = {"error": str(exc), "type": exc.tier}
    if exc.tier == "ip":
        body["ip"] = client_ip
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=body,
        headers={"Retry-After": str(exc.retry_after_seconds)},
    )


def _log_finish(event: FinishEvent) -> None:
    if event.error is not None:
        logger.warning("Generation ended without a valid object: %s", event.error)
        return
    logger.info("Generation complete: total_tokens=%s", event.usage.total_tokens)


async def _v1_prompts(payload: GenerateInput, _llm: LLMProvider) -> PromptPair:
    return plan_prompts(payload)


async def _v2_prompts(payload: GenerateInput, _llm: LLMProvider) -> PromptPair:
    return scouter_prompts(payload)


async def _v3_prompts(payload: GenerateInputV3, llm: LLMProvider) -> PromptPair:
    # place names are checked (and corrected) before the itinerary is generated
    system_prompt, user_prompt = input_check_prompts(payload)
    check = await llm.generate_object(system_prompt, user_prompt, InputValidationResult)
    if check.isValid:
        return optimized_plan_prompts(payload)

    logger.info(
        "Input corrected: %r -> %r, %r -> %r (%s)",
        payload.destination,
        check.correctedDestination,
        payload.base_area,
        check.correctedBaseArea,
        check.reason,
    )
    return optimized_plan_prompts(
        payload,
        corrected={"destination": check.correctedDestination, "base_area": check.correctedBaseArea},
    )


async def _primed(first: str, rest: AsyncIterator[str]) -> AsyncIterator[str]:
    if first:
        yield first
    try:
        async for fragment in rest:
            yield fragment
    except TripArchitectError as exc:
        # status is already sent; the finish event records the failure
        logger.error("Plan stream aborted after first fragment: %s", exc)


async def _generate(
    request: Request,
    version: PlanVersion,
    input_model: type[BaseModel],
    build_prompts: PromptBuilder,
):
    try:
        llm = dependencies.get_llm_provider()
    except LLMConfigurationError as exc:
        logger.error("LLM provider misconfigured: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, error=str(exc))

    try:
        payload = input_model.model_validate(await request.json())
    except ValidationError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, error="Invalid input", details=format_validation_errors(exc))
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, error="Request body must be JSON")

    client_ip = get_client_ip(request.headers)
    try:
        await check_generation_limits(client_ip, dependencies.get_rate_limiters())
    except RateLimitExceeded as exc:
        logger.info("Rate limited: tier=%s ip=%s", exc.tier, client_ip)
        return _rate_limited(exc, client_ip)

    # one deadline bounds the input check and the whole stream
    budget = dependencies.get_settings().generation_timeout_seconds
    deadline = asyncio.get_running_loop().time() + budget if budget else None
    try:
        try:
            async with asyncio.timeout_at(deadline):
                system_prompt, user_prompt = await build_prompts(payload, llm)
        except TimeoutError as exc:
            raise LLMProviderError("Generation exceeded its time limit") from exc
        stream = llm.stream_object(system_prompt, user_prompt, PLAN_MODELS[version], on_finish=_log_finish)
        stream.deadline = deadline
        fragments = stream.text_stream()
        # pull the first fragment here so connection and auth failures become a 500 instead of a broken 200
        try:
            first = await anext(fragments)
        except StopAsyncIteration:
            first = ""
    except TripArchitectError as exc:
        logger.error("Plan generation failed (%s, %s): %s", version.value, llm.name, exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, error="Failed to generate plan", details=str(exc))

    logger.info("Streaming %s plan from %s to %s", version.value, llm.name, client_ip)
    return StreamingResponse(_primed(first, fragments), media_type=STREAM_MEDIA_TYPE, headers=STREAM_HEADERS)


@router.post("/generate", summary="Stream a v1 day-by-day plan")
async def generate_plan(request: Request):
    return await _generate(request, PlanVersion.V1, GenerateInput, _v1_prompts)


@router.post("/v2/generate", summary="Stream a v2 engineer mission briefing")
async def generate_scouter(request: Request):
    return await _generate(request, PlanVersion.V2, GenerateInput, _v2_prompts)


@router.post("/v3/generate", summary="Stream a v3 route-optimized itinerary")
async def generate_optimized(request: Request):
    return await _generate(request, PlanVersion.V3, GenerateInputV3, _v3_prompts)
