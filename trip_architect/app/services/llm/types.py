from __future__ import annotations

from typing import Protocol, TypeVar

from pydantic import BaseModel

from .streaming import FinishEvent, OnFinish, StructuredStream, TokenUsage

T = TypeVar("T", bound=BaseModel)

__all__ = ["FinishEvent", "LLMProvider", "OnFinish", "StructuredStream", "TokenUsage"]


class LLMProvider(Protocol):
    """
    Common interface for the model backends.

    Call sites only use these two operations, so the backend can be swapped
    through configuration (LLM_PROVIDER) without code changes.
    """

    name: str
    model: str

    async def generate_object(self, system_prompt: str, user_prompt: str, schema: type[T]) -> T:
        """Generate a complete object, already validated against ``schema``."""
        ...

    def stream_object(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: type[BaseModel],
        on_finish: OnFinish | None = None,
    ) -> StructuredStream:
        """Stream an object; ``on_finish`` receives the final object and token usage."""
        ...
