"""
Google Gemini LLM Provider.
Talks to the Generative Language REST API (models/{model}:generateContent).
Images and audio are sent as inline_data parts.
"""

import httpx
import logging
import time
from typing import Optional, List, Dict, Any

from .base import LLMProvider, LLMMessage, LLMResponse
from ..core.errors import ProviderError
from ..utils.media import parse_data_uri

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """
    Provider for Gemini models.
    System messages become the request's systemInstruction; the assistant
    role is mapped to Gemini's "model" role.
    """

    name = "gemini"
    supports_images = True
    supports_audio = True

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        default_temperature: float = 0.7,
        default_max_tokens: int = 2048,
        timeout: float = 120.0,
        log_calls: bool = True,
    ):
        super().__init__(api_key, model, base_url, default_temperature, default_max_tokens, log_calls)
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _to_parts(content) -> List[Dict[str, Any]]:
        """Convert OpenAI-style content blocks into Gemini parts."""
        if isinstance(content, str):
            return [{"text": content}]

        parts: List[Dict[str, Any]] = []
        for block in content:
            block_type = block.get("type")
            if block_type == "text":
                parts.append({"text": block["text"]})
            elif block_type == "image_url":
                media = parse_data_uri(block["image_url"]["url"])
                parts.append({"inline_data": {"mime_type": media.mime_type, "data": media.data}})
            elif block_type == "input_audio":
                audio = block["input_audio"]
                parts.append({"inline_data": {
                    "mime_type": f"audio/{audio['format']}",
                    "data": audio["data"],
                }})
        return parts

    def _build_payload(
        self,
        messages: List[LLMMessage],
        temperature: float,
        max_tokens: int,
        json_output: bool,
    ) -> Dict[str, Any]:
        system_texts: List[str] = []
        contents: List[Dict[str, Any]] = []
        for msg in messages:
            if msg.role == "system":
                system_texts.append(msg.content if isinstance(msg.content, str) else str(msg.content))
                continue
            contents.append({
                "role": "model" if msg.role == "assistant" else "user",
                "parts": self._to_parts(msg.content),
            })

        generation_config: Dict[str, Any] = {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
        }
        if json_output:
            generation_config["responseMimeType"] = "application/json"

        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if system_texts:
            payload["systemInstruction"] = {"parts": [{"text": "\n\n".join(system_texts)}]}
        return payload

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            raise ProviderError(
                f"Gemini returned no candidates (block reason: {block_reason or 'unknown'})."
            )
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_output: bool = False,
        **kwargs
    ) -> LLMResponse:
        """Send request to the generateContent endpoint."""
        start_time = time.time()
        model = kwargs.get("model", self.model)
        url = f"{self.base_url}/models/{model}:generateContent"
        payload = self._build_payload(
            messages,
            temperature if temperature is not None else self.default_temperature,
            max_tokens or self.default_max_tokens,
            json_output,
        )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"LLM API call starting: provider=gemini, model={model}, "
                f"temperature={payload['generationConfig']['temperature']}, "
                f"{len(payload['contents'])} contents, json_output={json_output}"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                resp.raise_for_status()
                data = resp.json()

            content = self._extract_text(data)
            usage_meta = data.get("usageMetadata") or {}
            usage = {
                "prompt_tokens": usage_meta.get("promptTokenCount", 0),
                "completion_tokens": usage_meta.get("candidatesTokenCount", 0),
                "total_tokens": usage_meta.get("totalTokenCount", 0),
            }
            duration_ms = (time.time() - start_time) * 1000

            if self.log_calls:
                logger.info(
                    "LLM API call completed",
                    extra={"extra_fields": {
                        "provider": "gemini",
                        "model": data.get("modelVersion", model),
                        **usage,
                        "duration_ms": round(duration_ms, 2),
                    }}
                )

            return LLMResponse(
                content=content,
                model=data.get("modelVersion", model),
                usage=usage,
                raw=data,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"LLM API call failed: {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "provider": "gemini",
                    "model": model,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                }}
            )
            raise
