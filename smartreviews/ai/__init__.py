"""
Smart Reviews AI Module
=======================

Completion service clients used to synthesize review content:
- product summary written from the human reviews
- recurring keywords extracted from the human reviews
"""

from .llm_client import (
    LLMClient,
    LLMProvider,
    LLMResponse,
    AnthropicClient,
    OpenAIClient,
    get_llm_client,
)

__all__ = [
    "LLMClient",
    "LLMProvider",
    "LLMResponse",
    "AnthropicClient",
    "OpenAIClient",
    "get_llm_client",
]
