"""Unit tests for LLM provider adapters - OpenAI and Ollama."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from src.config.settings import Settings
from src.utils.errors import LLMError, ProviderUnavailableError, RateLimitError


# ======================================================================
# Shared helpers
# ======================================================================


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_text_model": "",
        "openai_embedding_model": "",
        "ollama_base_url": "http://localhost:11434",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _chat_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=100)
    return response


_SCHEMA = {"name": "test", "schema": {"type": "object"}}


# ======================================================================
# OpenAI LLM Provider
# ======================================================================


class TestOpenAILLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_provider_name_reflects_base_url(self) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(_settings()).get_provider_name() == "openai"
        assert (
            OpenAILLMProvider(_settings(openai_base_url="https://api.groq.com/openai/v1")).get_provider_name()
            == "openai-compatible"
        )

    def test_is_available_with_key(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(settings).is_available() is True

    def test_is_available_without_key(self) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(_settings(openai_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_missing_key_never_builds_client(self) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI") as client_cls:
            provider = OpenAILLMProvider(_settings(openai_api_key=""))
            with pytest.raises(ProviderUnavailableError):
                await provider.complete("system", "user")
            assert await provider.validate_credentials() is False

        client_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_success(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("LLM response text"))

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            result = await provider.complete("system prompt", "user prompt")

        assert result == "LLM response text"
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert "response_format" not in kwargs

    @pytest.mark.asyncio
    async def test_complete_passes_json_schema(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response("{}"))

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            await provider.complete("s", "u", response_schema=_SCHEMA)

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_schema", "json_schema": _SCHEMA}

    @pytest.mark.asyncio
    async def test_empty_content_raises_llm_error(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response(None))

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(LLMError):
                await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_timeout_maps_to_provider_unavailable(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APITimeoutError(request=MagicMock())
        )

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(ProviderUnavailableError):
                await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_rate_limit_maps_to_rate_limit_error(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.RateLimitError(
                message="Rate limit exceeded",
                response=MagicMock(status_code=429),
                body=None,
            )
        )

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(RateLimitError):
                await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_api_error_maps_to_llm_error(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError(message="bad request", request=MagicMock(), body=None)
        )

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(LLMError):
                await provider.complete("system", "user")

    @pytest.mark.asyncio
    async def test_validate_credentials_success(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.models.list = AsyncMock(return_value=MagicMock())

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            assert await provider.validate_credentials() is True

    @pytest.mark.asyncio
    async def test_validate_credentials_failure(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        mock_client = AsyncMock()
        mock_client.models.list = AsyncMock(
            side_effect=openai.APIError(message="Invalid key", request=MagicMock(), body=None)
        )

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            assert await provider.validate_credentials() is False


# ======================================================================
# Ollama LLM Provider
# ======================================================================


class TestOllamaLLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_get_provider_name(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider

        assert OllamaLLMProvider(settings).get_provider_name() == "ollama"

    def test_is_available_with_url(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider

        assert OllamaLLMProvider(settings).is_available() is True

    @pytest.mark.asyncio
    async def test_complete_uses_json_object_mode(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_chat_response('{"reject": false}'))

        with patch("src.providers.llm.ollama_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OllamaLLMProvider(settings)
            result = await provider.complete("s", "u", response_schema=_SCHEMA)

        assert result == '{"reject": false}'
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["model"] == "llama3.1"

    @pytest.mark.asyncio
    async def test_connection_error_maps_to_provider_unavailable(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(message="refused", request=MagicMock())
        )

        with patch("src.providers.llm.ollama_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OllamaLLMProvider(settings)
            with pytest.raises(ProviderUnavailableError):
                await provider.complete("s", "u")

    @pytest.mark.asyncio
    async def test_validate_credentials_unreachable(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider

        mock_http = AsyncMock()
        mock_http.__aenter__.return_value = mock_http
        mock_http.get = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with patch("src.providers.llm.ollama_provider.httpx.AsyncClient", return_value=mock_http):
            provider = OllamaLLMProvider(settings)
            assert await provider.validate_credentials() is False
