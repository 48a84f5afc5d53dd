from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import TypeVar

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel

from ....core.errors import LLMConfigurationError, LLMProviderError
from ..gemini_schema import to_gemini_schema
from ..streaming import OnFinish, StructuredStream, TokenUsage, parse_structured_output

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_MODEL = "gemini-1.5-flash"


class GoogleProvider:
    """Gemini backend. The response schema is translated by hand from the pydantic model."""

    name = "Google Gemini"

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, timeout: float | None = None) -> None:
        if not api_key:
            raise LLMConfigurationError("Google API key is required")
        self.model = model or DEFAULT_MODEL
        self.timeout = timeout
        self._client = genai.Client(api_key=api_key)
        logger.info("[GoogleProvider] Initialized with model: %s", self.model)

    @staticmethod
    def _config(system_prompt: str, schema: type[BaseModel]) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=system_prompt,
            response_mime_type="application/json",
            response_schema=to_gemini_schema(schema),
        )

    async def generate_object(self, system_prompt: str, user_prompt: str, schema: type[T]) -> T:
        try:
            async with asyncio.timeout(self.timeout):
                response = await asyncio.to_thread(
                    self._client.models.generate_content,
                    model=self.model,
                    contents=user_prompt,
                    config=self._config(system_prompt, schema),
                )
        except TimeoutError as exc:
            raise LLMProviderError(f"Gemini generation exceeded {self.timeout:g} seconds") from exc
        except genai_errors.APIError as exc:
            raise LLMProviderError(f"Gemini API call failed: {exc}") from exc

        metadata = response.usage_metadata
        if metadata:
            logger.info(
                "[GoogleProvider] generate_object usage: input=%s output=%s",
                metadata.prompt_token_count,
                metadata.candidates_token_count,
            )
        return parse_structured_output(schema, response.text or "")

    def stream_object(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: type[BaseModel],
        on_finish: OnFinish | None = None,
    ) -> StructuredStream:
        usage = TokenUsage()

        async def fragments() -> AsyncIterator[str]:
            try:
                stream = await self._client.aio.models.generate_content_stream(
                    model=self.model,
                    contents=user_prompt,
                    config=self._config(system_prompt, schema),
                )
                async for chunk in stream:
                    metadata = chunk.usage_metadata
                    if metadata:
                        usage.input_tokens = metadata.prompt_token_count or 0
                        usage.output_tokens = metadata.candidates_token_count or 0
                    if chunk.text:
                        yield chunk.text
            except genai_errors.APIError as exc:
                raise LLMProviderError(f"Gemini API call failed: {exc}") from exc

        return StructuredStream(fragments(), schema, usage=usage, on_finish=on_finish, timeout=self.timeout)
