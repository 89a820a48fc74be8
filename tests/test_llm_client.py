"""
Tests for the completion clients.

Note: These tests mock the provider SDK clients; no API call is made.
"""

import pytest
from unittest.mock import MagicMock, patch

from smartreviews.ai.llm_client import (
    AnthropicClient,
    OpenAIClient,
    LLMProvider,
    get_llm_client,
)
from smartreviews.errors import GenerationError


def anthropic_response(text="Short summary.", input_tokens=1000, output_tokens=100):
    response = MagicMock()
    response.content = [MagicMock(text=text)]
    response.usage.input_tokens = input_tokens
    response.usage.output_tokens = output_tokens
    return response


def openai_response(text="battery,price", prompt_tokens=1000, completion_tokens=100):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    response.usage.prompt_tokens = prompt_tokens
    response.usage.completion_tokens = completion_tokens
    return response


class TestAnthropicClient:

    def make_client(self):
        client = AnthropicClient(api_key="test-key")
        client._client = MagicMock()
        return client

    def test_default_model(self):
        assert AnthropicClient(api_key="k").model == "claude-3-5-sonnet-20240620"

    def test_generate(self):
        client = self.make_client()
        client._client.messages.create.return_value = anthropic_response()

        response = client.generate("Summarize", max_tokens=256, temperature=0.2)

        assert response.content == "Short summary."
        assert response.provider == LLMProvider.ANTHROPIC
        assert response.total_tokens == 1100
        # 1000 * 3.0 / 1M + 100 * 15.0 / 1M
        assert response.cost_usd == pytest.approx(0.0045)
        kwargs = client._client.messages.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "Summarize"}]
        assert kwargs["max_tokens"] == 256
        assert "system" not in kwargs

    def test_sdk_error_wrapped(self):
        client = self.make_client()
        client._client.messages.create.side_effect = RuntimeError("overloaded")

        with pytest.raises(GenerationError, match="overloaded"):
            client.generate("Summarize")

    def test_empty_completion_rejected(self):
        client = self.make_client()
        client._client.messages.create.return_value = anthropic_response(text="   ")

        with pytest.raises(GenerationError):
            client.generate("Summarize")

    def test_no_content_blocks_rejected(self):
        client = self.make_client()
        response = anthropic_response()
        response.content = []
        client._client.messages.create.return_value = response

        with pytest.raises(GenerationError):
            client.generate("Summarize")

    @patch.dict("os.environ", {}, clear=True)
    def test_missing_key(self):
        client = AnthropicClient()

        with pytest.raises(GenerationError, match="ANTHROPIC_API_KEY"):
            client.generate("Summarize")


class TestOpenAIClient:

    def make_client(self):
        client = OpenAIClient(api_key="test-key")
        client._client = MagicMock()
        return client

    def test_generate(self):
        client = self.make_client()
        client._client.chat.completions.create.return_value = openai_response()

        response = client.generate("Keywords", system="Be terse")

        assert response.content == "battery,price"
        assert response.provider == LLMProvider.OPENAI
        messages = client._client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "Be terse"}
        assert messages[1] == {"role": "user", "content": "Keywords"}

    def test_none_content_rejected(self):
        client = self.make_client()
        client._client.chat.completions.create.return_value = openai_response(text=None)

        with pytest.raises(GenerationError):
            client.generate("Keywords")

    def test_sdk_error_wrapped(self):
        client = self.make_client()
        client._client.chat.completions.create.side_effect = ConnectionError("reset")

        with pytest.raises(GenerationError):
            client.generate("Keywords")


class TestFactory:

    @patch.dict("os.environ", {"ANTHROPIC_API_KEY": "a", "OPENAI_API_KEY": "o"}, clear=True)
    def test_anthropic_preferred(self):
        assert isinstance(get_llm_client(), AnthropicClient)

    @patch.dict("os.environ", {"OPENAI_API_KEY": "o"}, clear=True)
    def test_openai_when_only_key(self):
        client = get_llm_client()
        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o-mini"

    @patch.dict("os.environ", {"ANTHROPIC_API_KEY": "a"}, clear=True)
    def test_explicit_provider_and_model(self):
        client = get_llm_client(provider="openai", model="gpt-4o", timeout=30)
        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o"
        assert client.timeout == 30

    @patch.dict("os.environ", {}, clear=True)
    def test_defaults_to_anthropic_without_keys(self):
        client = get_llm_client()
        assert isinstance(client, AnthropicClient)
        assert client.api_key is None
