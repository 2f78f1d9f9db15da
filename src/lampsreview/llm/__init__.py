"""LLM provider abstraction layer."""

from lampsreview.llm.base import LLMProvider, LLMResponse, Message
from lampsreview.llm.factory import create_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "Message",
    "create_provider",
]
