"""
Smart Reviews LLM Client
========================

Completion clients for review synthesis: Claude (Anthropic) by default,
OpenAI as fallback.

The synthesis pipeline only needs one capability: prompt in, text out,
synchronously. It is used to:
1. Summarize the human reviews of a product
2. Extract the recurring keywords of those reviews

Clients are injected into SynthesisCoordinator, so tests substitute a
stub implementing LLMClient.
"""

import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from enum import Enum

from ..errors import GenerationError

logger = logging.getLogger(__name__)


class LLMProvider(Enum):
    """Supported LLM providers."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


@dataclass
class LLMResponse:
    """Text of a completion plus usage accounting."""
    content: str
    model: str
    provider: LLMProvider
    tokens_input: int = 0
    tokens_output: int = 0
    cost_usd: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.tokens_input + self.tokens_output


class LLMClient(ABC):
    """Completion service interface."""

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Complete the prompt. Raises GenerationError on any failure or empty output."""
        pass


class _HostedClient(LLMClient):
    """
    Shared flow of the SDK-backed clients: key check, lazy SDK client,
    error wrapping, empty-output rejection, cost accounting.

    Subclasses set PROVIDER, KEY_ENV, DEFAULT_MODEL, PRICING and
    implement _build_client and _request.
    """

    PROVIDER: LLMProvider
    KEY_ENV: str
    DEFAULT_MODEL: str
    # USD per 1M tokens
    PRICING: Dict[str, Dict[str, float]] = {}
    FALLBACK_PRICING = {"input": 3.0, "output": 15.0}

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or self._key_from_env()
        self.model = model or self.DEFAULT_MODEL
        self.timeout = timeout
        self._client = None

    def _key_from_env(self) -> Optional[str]:
        return os.getenv(self.KEY_ENV)

    @abstractmethod
    def _build_client(self):
        """Instantiate the provider SDK client."""

    @abstractmethod
    def _request(self, prompt, system, max_tokens, temperature) -> Tuple[Optional[str], int, int]:
        """One SDK call: (text, input tokens, output tokens)."""

    def _sdk_kwargs(self) -> dict:
        kwargs = {"api_key": self.api_key}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return kwargs

    def _get_client(self):
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        pricing = self.PRICING.get(self.model, self.FALLBACK_PRICING)
        cost = (input_tokens * pricing["input"] + output_tokens * pricing["output"]) / 1_000_000
        return round(cost, 6)

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> LLMResponse:
        name = self.PROVIDER.value
        if not self.api_key:
            raise GenerationError(f"{self.KEY_ENV} required for {name} completions")

        try:
            text, input_tokens, output_tokens = self._request(prompt, system, max_tokens, temperature)
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"{name} completion failed ({self.model}): {e}")
            raise GenerationError(f"{name} completion failed: {e}") from e

        if text is None or not text.strip():
            raise GenerationError(f"{name} returned an empty completion")

        return LLMResponse(
            content=text,
            model=self.model,
            provider=self.PROVIDER,
            tokens_input=input_tokens,
            tokens_output=output_tokens,
            cost_usd=self._calculate_cost(input_tokens, output_tokens),
        )


class AnthropicClient(_HostedClient):
    """
    Claude via the Anthropic Messages API.

    - claude-3-5-sonnet-20240620 (default)
    - claude-3-haiku-20240307 (fast, cheap)
    """

    PROVIDER = LLMProvider.ANTHROPIC
    KEY_ENV = "ANTHROPIC_API_KEY"
    DEFAULT_MODEL = "claude-3-5-sonnet-20240620"
    PRICING = {
        "claude-3-5-sonnet-20240620": {"input": 3.0, "output": 15.0},
        "claude-3-5-sonnet-20241022": {"input": 3.0, "output": 15.0},
        "claude-3-haiku-20240307": {"input": 0.25, "output": 1.25},
    }

    def __init__(self, api_key=None, model=None, timeout=None):
        super().__init__(api_key, model, timeout)
        if not self.api_key:
            logger.warning("ANTHROPIC_API_KEY not set - review synthesis will fail when triggered")

    def _build_client(self):
        import anthropic
        return anthropic.Anthropic(**self._sdk_kwargs())

    def _request(self, prompt, system, max_tokens, temperature):
        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        response = self._get_client().messages.create(**kwargs)
        if not response.content:
            raise GenerationError("anthropic returned no content blocks")
        return response.content[0].text, response.usage.input_tokens, response.usage.output_tokens


class OpenAIClient(_HostedClient):
    """GPT via Chat Completions. Used when only an OpenAI key is configured."""

    PROVIDER = LLMProvider.OPENAI
    KEY_ENV = "OPENAI_API_KEY"
    DEFAULT_MODEL = "gpt-4o-mini"
    PRICING = {
        "gpt-4o": {"input": 2.5, "output": 10.0},
        "gpt-4o-mini": {"input": 0.15, "output": 0.6},
    }
    FALLBACK_PRICING = PRICING["gpt-4o"]

    def _key_from_env(self) -> Optional[str]:
        # GPT_API_KEY accepted as an alias
        return os.getenv("OPENAI_API_KEY") or os.getenv("GPT_API_KEY")

    def _build_client(self):
        import openai
        return openai.OpenAI(**self._sdk_kwargs())

    def _request(self, prompt, system, max_tokens, temperature):
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})

        response = self._get_client().chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if not response.choices:
            raise GenerationError("openai returned no choices")
        usage = response.usage
        return response.choices[0].message.content, usage.prompt_tokens, usage.completion_tokens


def get_llm_client(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    timeout: Optional[float] = None,
) -> LLMClient:
    """
    Pick the completion client.

    Priority:
    1. Explicit provider
    2. ANTHROPIC_API_KEY present → Claude
    3. OPENAI_API_KEY or GPT_API_KEY present → GPT
    4. Claude without a key (warned at startup, fails on first generation)
    """
    if provider is None:
        has_anthropic = bool(os.getenv("ANTHROPIC_API_KEY"))
        has_openai = bool(os.getenv("OPENAI_API_KEY") or os.getenv("GPT_API_KEY"))
        provider = "openai" if has_openai and not has_anthropic else "anthropic"

    if provider == "openai":
        return OpenAIClient(model=model, timeout=timeout)
    return AnthropicClient(model=model, timeout=timeout)
