"""
DeepSeek LLM Provider.
Uses the OpenAI-compatible chat/completions endpoint.
DeepSeek chat models accept text only.
"""

import httpx
import logging
import time
from typing import Optional, List, Dict, Any

from .base import LLMProvider, LLMMessage, LLMResponse
from ..core.errors import ProviderError

logger = logging.getLogger(__name__)


class DeepSeekProvider(LLMProvider):
    """
    Provider for DeepSeek chat models.
    Compatible with the OpenAI chat/completions request and response format.
    """

    name = "deepseek"

    def __init__(
        self,
        api_key: str,
        model: str = "deepseek-chat",
        base_url: str = "https://api.deepseek.com/v1",
        default_temperature: float = 0.7,
        default_max_tokens: int = 2048,
        timeout: float = 120.0,
        log_calls: bool = True,
    ):
        super().__init__(api_key, model, base_url, default_temperature, default_max_tokens, log_calls)
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _format_messages(self, messages: List[LLMMessage]) -> List[Dict[str, Any]]:
        """Flatten content blocks to text; media is rejected before it gets here."""
        formatted = []
        for m in messages:
            if isinstance(m.content, str):
                content = m.content
            else:
                content = "\n".join(b["text"] for b in m.content if b.get("type") == "text")
            formatted.append({"role": m.role, "content": content})
        return formatted

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_output: bool = False,
        **kwargs
    ) -> LLMResponse:
        """Send request to the Chat Completions endpoint."""
        start_time = time.time()
        url = f"{self.base_url}/chat/completions"
        payload: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "messages": self._format_messages(messages),
            "temperature": temperature if temperature is not None else self.default_temperature,
            "max_tokens": max_tokens or self.default_max_tokens,
        }
        if json_output:
            payload["response_format"] = {"type": "json_object"}

        if logger.isEnabledFor(logging.DEBUG):
            message_summary = f"{len(messages)} messages"
            if messages:
                first_msg = str(messages[0].content)[:200] if messages[0].content else ""
                message_summary += f", first: {first_msg}"
            logger.debug(
                f"LLM API call starting: provider=deepseek, model={payload['model']}, "
                f"temperature={payload['temperature']}, {message_summary}"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                resp.raise_for_status()
                data = resp.json()

            choices = data.get("choices") or []
            if not choices:
                raise ProviderError("DeepSeek returned no choices.")
            usage = data.get("usage") or {}
            duration_ms = (time.time() - start_time) * 1000

            if self.log_calls:
                logger.info(
                    "LLM API call completed",
                    extra={"extra_fields": {
                        "provider": "deepseek",
                        "model": data.get("model", self.model),
                        "prompt_tokens": usage.get("prompt_tokens", 0),
                        "completion_tokens": usage.get("completion_tokens", 0),
                        "total_tokens": usage.get("total_tokens", 0),
                        "duration_ms": round(duration_ms, 2),
                    }}
                )

            return LLMResponse(
                content=choices[0]["message"].get("content") or "",
                model=data.get("model", self.model),
                usage=usage,
                raw=data,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"LLM API call failed: {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "provider": "deepseek",
                    "model": payload.get("model"),
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                }}
            )
            raise
