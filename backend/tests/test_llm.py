"""
Unit tests for the LLM module.
Tests LLMMessage, LLMResponse, providers, and factory.
"""

import pytest
from unittest.mock import AsyncMock, patch, MagicMock

from codebricks.config import Settings
from codebricks.core.errors import ProviderError
from codebricks.llm.base import LLMMessage, LLMResponse
from codebricks.llm.gemini_provider import GeminiProvider
from codebricks.llm.deepseek_provider import DeepSeekProvider
from codebricks.llm.factory import build_llm_providers, create_llm_provider
from codebricks.utils.media import MediaPart


def _mock_async_client(mock_client, json_data):
    mock_response = MagicMock()
    mock_response.json.return_value = json_data
    mock_response.raise_for_status = MagicMock()

    mock_instance = AsyncMock()
    mock_instance.post.return_value = mock_response
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_client.return_value = mock_instance
    return mock_instance


class TestLLMMessage:
    """Tests for LLMMessage dataclass."""

    def test_text_message(self):
        msg = LLMMessage.text("user", "Hello")
        assert msg.role == "user"
        assert msg.content == "Hello"
        assert not msg.has_media("image")

    def test_multimodal_with_image(self):
        msg = LLMMessage.multimodal("user", "What is this?",
                                     media=[MediaPart("image/png", "abc123")])
        assert isinstance(msg.content, list)
        assert len(msg.content) == 2
        assert msg.content[0]["type"] == "image_url"
        assert msg.content[0]["image_url"]["url"] == "data:image/png;base64,abc123"
        assert msg.content[1] == {"type": "text", "text": "What is this?"}
        assert msg.has_media("image")
        assert not msg.has_media("audio")

    def test_multimodal_with_audio(self):
        msg = LLMMessage.multimodal("user", "Listen",
                                     media=[MediaPart("audio/webm", "AAAA")])
        assert msg.content[0] == {
            "type": "input_audio",
            "input_audio": {"data": "AAAA", "format": "webm"},
        }
        assert msg.has_media("audio")

    def test_multimodal_text_only(self):
        msg = LLMMessage.multimodal("user", "Just text")
        assert len(msg.content) == 1
        assert msg.content[0]["type"] == "text"

    def test_multimodal_rejects_other_media(self):
        with pytest.raises(ValueError, match="Unsupported media type"):
            LLMMessage.multimodal("user", "x", media=[MediaPart("video/mp4", "AAAA")])


class TestLLMResponse:
    """Tests for LLMResponse dataclass."""

    def test_basic_response(self):
        resp = LLMResponse(content="Hello!", model="gemini-2.0-flash")
        assert resp.content == "Hello!"
        assert resp.usage == {}
        assert resp.raw is None


class TestGeminiProvider:
    """Tests for the Gemini provider."""

    def test_init_defaults(self):
        provider = GeminiProvider(api_key="test-key")
        assert provider.model == "gemini-2.0-flash"
        assert provider.base_url == "https://generativelanguage.googleapis.com/v1beta"
        assert provider.supports_images and provider.supports_audio

    def test_headers(self):
        headers = GeminiProvider(api_key="g-key")._get_headers()
        assert headers["x-goog-api-key"] == "g-key"

    def test_build_payload(self):
        provider = GeminiProvider(api_key="test")
        messages = [
            LLMMessage.text("system", "sys prompt"),
            LLMMessage.text("user", "hello"),
            LLMMessage.text("assistant", "hi"),
            LLMMessage.multimodal("user", "look", media=[MediaPart("image/png", "iVBO")]),
        ]
        payload = provider._build_payload(messages, 0.2, 100, json_output=True)

        assert payload["systemInstruction"] == {"parts": [{"text": "sys prompt"}]}
        assert [c["role"] for c in payload["contents"]] == ["user", "model", "user"]
        assert payload["contents"][2]["parts"][0] == {
            "inline_data": {"mime_type": "image/png", "data": "iVBO"}
        }
        assert payload["generationConfig"] == {
            "temperature": 0.2,
            "maxOutputTokens": 100,
            "responseMimeType": "application/json",
        }

    @pytest.mark.asyncio
    async def test_chat_completion_success(self):
        provider = GeminiProvider(api_key="test-key", model="gemini-test")

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_async_client(mock_client, {
                "candidates": [{"content": {"parts": [{"text": '{"code": '}, {"text": '"x"}'}]}}],
                "usageMetadata": {"promptTokenCount": 7, "candidatesTokenCount": 3, "totalTokenCount": 10},
                "modelVersion": "gemini-test-001",
            })

            result = await provider.chat_completion([LLMMessage.text("user", "Hello")])

            assert result.content == '{"code": "x"}'
            assert result.model == "gemini-test-001"
            assert result.usage["total_tokens"] == 10
            url = mock_instance.post.call_args.args[0]
            assert url.endswith("/models/gemini-test:generateContent")

    @pytest.mark.asyncio
    async def test_null_usage_metadata(self):
        provider = GeminiProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_async_client(mock_client, {
                "candidates": [{"content": {"parts": [{"text": "{}"}]}}],
                "usageMetadata": None,
            })

            result = await provider.chat_completion([LLMMessage.text("user", "Hello")])

            assert result.usage["total_tokens"] == 0

    @pytest.mark.asyncio
    async def test_no_candidates_raises(self):
        provider = GeminiProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_async_client(mock_client, {"promptFeedback": {"blockReason": "SAFETY"}})

            with pytest.raises(ProviderError, match="SAFETY"):
                await provider.chat_completion([LLMMessage.text("user", "Hello")])


class TestDeepSeekProvider:
    """Tests for the DeepSeek provider."""

    def test_init_defaults(self):
        provider = DeepSeekProvider(api_key="test-key")
        assert provider.model == "deepseek-chat"
        assert "deepseek.com" in provider.base_url
        assert not provider.supports_images
        assert not provider.supports_audio

    def test_format_messages_flattens_blocks(self):
        provider = DeepSeekProvider(api_key="test")
        formatted = provider._format_messages([
            LLMMessage.text("system", "sys"),
            LLMMessage.multimodal("user", "hello"),
        ])
        assert formatted == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hello"},
        ]

    @pytest.mark.asyncio
    async def test_chat_completion_json_mode(self):
        provider = DeepSeekProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_async_client(mock_client, {
                "choices": [{"message": {"content": '{"explanation": "ok"}'}}],
                "model": "deepseek-chat",
                "usage": {"total_tokens": 12},
            })

            result = await provider.chat_completion(
                [LLMMessage.text("user", "Explain")], json_output=True
            )

            assert result.content == '{"explanation": "ok"}'
            payload = mock_instance.post.call_args.kwargs["json"]
            assert payload["response_format"] == {"type": "json_object"}
            headers = mock_instance.post.call_args.kwargs["headers"]
            assert headers["Authorization"] == "Bearer test-key"

    @pytest.mark.asyncio
    async def test_null_usage(self):
        provider = DeepSeekProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_async_client(mock_client, {
                "choices": [{"message": {"content": "{}"}}],
                "usage": None,
            })

            result = await provider.chat_completion([LLMMessage.text("user", "Explain")])

            assert result.content == "{}"
            assert result.usage == {}

    @pytest.mark.asyncio
    async def test_no_choices_raises(self):
        provider = DeepSeekProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_async_client(mock_client, {"choices": [], "usage": {}})

            with pytest.raises(ProviderError):
                await provider.chat_completion([LLMMessage.text("user", "Hello")])


class TestLLMFactory:
    """Tests for LLM provider factory."""

    def test_create_gemini_provider(self):
        provider = create_llm_provider(provider="gemini", api_key="test-key", model="gemini-pro")
        assert isinstance(provider, GeminiProvider)
        assert provider.model == "gemini-pro"

    def test_create_deepseek_provider(self):
        provider = create_llm_provider(provider="deepseek", api_key="test-key")
        assert isinstance(provider, DeepSeekProvider)

    def test_no_api_key_returns_none(self):
        assert create_llm_provider(provider="gemini", api_key="") is None

    def test_unsupported_provider_raises(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_llm_provider(provider="unsupported", api_key="key")

    def test_custom_base_url(self):
        provider = create_llm_provider(
            provider="deepseek",
            api_key="key",
            base_url="https://custom.api.com/v1"
        )
        assert provider.base_url == "https://custom.api.com/v1"

    def test_build_from_settings(self):
        settings = Settings(gemini_api_key="g-key", deepseek_api_key=None, llm_temperature=0.1)
        providers = build_llm_providers(settings)
        assert isinstance(providers["gemini"], GeminiProvider)
        assert providers["gemini"].default_temperature == 0.1
        assert providers["deepseek"] is None
