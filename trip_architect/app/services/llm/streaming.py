from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_core import from_json

from ...core.errors import LLMProviderError, TripArchitectError
from ...schemas.partial import partial_model
from ...schemas.validation import format_validation_errors

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class FinishEvent:
    """Delivered once when a structured stream ends, successfully or not."""

    object: BaseModel | None
    usage: TokenUsage = field(default_factory=TokenUsage)
    error: Exception | None = None
    raw_text: str = ""


OnFinish = Callable[[FinishEvent], Awaitable[None] | None]


def parse_structured_output(schema: type[T], text: str) -> T:
    try:
        return schema.model_validate_json(text)
    except ValidationError as exc:
        problems = "; ".join(f"{e['path']}: {e['message']}" for e in format_validation_errors(exc)[:5])
        raise LLMProviderError(f"Model output does not match {schema.__name__}: {problems}") from exc


class StructuredStream:
    """
    Incrementally growing JSON object produced by a model.

    ``text_stream()`` forwards raw fragments as they arrive (this is what the
    HTTP layer sends to the client). ``partial_objects()`` re-parses the buffer
    after every fragment and yields deep-partial snapshots. Either can be
    consumed, once. When the source is exhausted the buffer is validated
    strictly and ``on_finish`` is called with the result and token usage.
    """

    def __init__(
        self,
        source: AsyncIterator[str],
        schema: type[BaseModel],
        usage: TokenUsage | None = None,
        on_finish: OnFinish | None = None,
        timeout: float | None = None,
    ) -> None:
        self.schema = schema
        self.usage = usage or TokenUsage()
        self.timeout = timeout
        # absolute loop time; when set it replaces the per-stream timeout
        self.deadline: float | None = None
        self.final: FinishEvent | None = None
        self._source = source
        self._on_finish = on_finish
        self._buffer: list[str] = []
        self._consumed = False

    @property
    def text(self) -> str:
        return "".join(self._buffer)

    def __aiter__(self) -> AsyncIterator[str]:
        return self.text_stream()

    async def text_stream(self) -> AsyncIterator[str]:
        if self._consumed:
            raise RuntimeError("StructuredStream can only be consumed once")
        self._consumed = True

        loop = asyncio.get_running_loop()
        deadline = self.deadline
        if deadline is None and self.timeout:
            deadline = loop.time() + self.timeout
        error: Exception | None = None
        try:
            while True:
                try:
                    async with asyncio.timeout_at(deadline):
                        fragment = await anext(self._source)
                except StopAsyncIteration:
                    break
                if fragment:
                    self._buffer.append(fragment)
                    yield fragment
        except TimeoutError as exc:
            error = LLMProviderError("Generation exceeded its time limit")
            raise error from exc
        except TripArchitectError as exc:
            error = exc
            raise
        except Exception as exc:
            error = LLMProviderError(f"Streaming failed: {exc}")
            raise error from exc
        finally:
            await self._finish(error)

    async def partial_objects(self) -> AsyncIterator[dict[str, Any]]:
        partial = partial_model(self.schema)
        last: dict[str, Any] | None = None
        async for _ in self.text_stream():
            try:
                data = from_json(self.text, allow_partial=True)
            except ValueError:
                continue
            try:
                snapshot = partial.model_validate(data).model_dump(mode="json", exclude_unset=True)
            except ValidationError:
                continue
            if snapshot != last:
                last = snapshot
                yield snapshot

    async def _finish(self, error: Exception | None) -> None:
        if self.final is not None:
            return
        text = self.text
        result: BaseModel | None = None
        if error is None:
            try:
                result = parse_structured_output(self.schema, text)
            except LLMProviderError as exc:
                error = exc
        self.final = FinishEvent(object=result, usage=self.usage, error=error, raw_text=text)

        if error is None:
            logger.info(
                "Stream finished: schema=%s input_tokens=%s output_tokens=%s",
                self.schema.__name__,
                self.usage.input_tokens,
                self.usage.output_tokens,
            )
        else:
            logger.warning("Stream finished with error: schema=%s error=%s", self.schema.__name__, error)

        if self._on_finish is not None:
            outcome = self._on_finish(self.final)
            if inspect.isawaitable(outcome):
                await outcome
