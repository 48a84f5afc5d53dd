from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, TypeVar

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel

from ....core.errors import LLMConfigurationError, LLMProviderError
from ..streaming import OnFinish, StructuredStream, TokenUsage, parse_structured_output

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAIProvider:
    """Chat Completions backend using native JSON-schema structured output."""

    name = "OpenAI"

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, timeout: float | None = None) -> None:
        if not api_key:
            raise LLMConfigurationError("OpenAI API key is required")
        self.model = model or DEFAULT_MODEL
        self.timeout = timeout
        self._client = AsyncOpenAI(api_key=api_key)
        logger.info("[OpenAIProvider] Initialized with model: %s", self.model)

    @staticmethod
    def _messages(system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    @staticmethod
    def _response_format(schema: type[BaseModel]) -> dict[str, Any]:
        return {
            "type": "json_schema",
            "json_schema": {
                "name": schema.__name__,
                "schema": schema.model_json_schema(),
                # strict mode rejects tuple arrays and length bounds; pydantic enforces them instead
                "strict": False,
            },
        }

    async def generate_object(self, system_prompt: str, user_prompt: str, schema: type[T]) -> T:
        try:
            async with asyncio.timeout(self.timeout):
                completion = await self._client.chat.completions.create(
                    model=self.model,
                    messages=self._messages(system_prompt, user_prompt),
                    response_format=self._response_format(schema),
                )
        except TimeoutError as exc:
            raise LLMProviderError(f"OpenAI generation exceeded {self.timeout:g} seconds") from exc
        except OpenAIError as exc:
            raise LLMProviderError(f"OpenAI API call failed: {exc}") from exc

        if completion.usage:
            logger.info(
                "[OpenAIProvider] generate_object usage: input=%s output=%s",
                completion.usage.prompt_tokens,
                completion.usage.completion_tokens,
            )
        content = completion.choices[0].message.content if completion.choices else None
        return parse_structured_output(schema, content or "")

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
                stream = await self._client.chat.completions.create(
                    model=self.model,
                    messages=self._messages(system_prompt, user_prompt),
                    response_format=self._response_format(schema),
                    stream=True,
                    stream_options={"include_usage": True},
                )
                async for chunk in stream:
                    # the last chunk carries usage and no choices
                    if chunk.usage:
                        usage.input_tokens = chunk.usage.prompt_tokens
                        usage.output_tokens = chunk.usage.completion_tokens
                    for choice in chunk.choices:
                        if choice.delta and choice.delta.content:
                            yield choice.delta.content
            except OpenAIError as exc:
                raise LLMProviderError(f"OpenAI API call failed: {exc}") from exc

        return StructuredStream(fragments(), schema, usage=usage, on_finish=on_finish, timeout=self.timeout)
