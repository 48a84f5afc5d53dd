from .client import SUPPORTED_PROVIDERS, get_llm_client
from .streaming import FinishEvent, OnFinish, StructuredStream, TokenUsage, parse_structured_output
from .types import LLMProvider

__all__ = [
    "SUPPORTED_PROVIDERS",
    "get_llm_client",
    "FinishEvent",
    "OnFinish",
    "StructuredStream",
    "TokenUsage",
    "parse_structured_output",
    "LLMProvider",
]
