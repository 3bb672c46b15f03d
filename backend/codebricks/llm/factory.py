"""
LLM Provider Factory - Creates the configured LLM provider instances.
"""

from typing import Dict, Optional
from .base import LLMProvider
from .gemini_provider import GeminiProvider
from .deepseek_provider import DeepSeekProvider

SUPPORTED_PROVIDERS = ("gemini", "deepseek")


def create_llm_provider(
    provider: str = "gemini",
    api_key: str = "",
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    **kwargs
) -> Optional[LLMProvider]:
    """
    Create an LLM provider instance based on configuration.

    Args:
        provider: Provider name ("gemini" or "deepseek")
        api_key: API key for the provider
        model: Model name (uses provider default if not specified)
        base_url: Custom base URL (uses provider default if not specified)
        **kwargs: Additional provider-specific parameters

    Returns:
        LLMProvider instance, or None if api_key is not configured
    """
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported LLM provider: {provider}")

    if not api_key:
        return None

    params = {"api_key": api_key}
    if model:
        params["model"] = model
    if base_url:
        params["base_url"] = base_url
    params.update(kwargs)

    if provider == "gemini":
        return GeminiProvider(**params)
    return DeepSeekProvider(**params)


def build_llm_providers(settings) -> Dict[str, Optional[LLMProvider]]:
    """
    Create every supported provider from settings.

    Providers without an API key map to None so callers can report them as
    not configured.
    """
    common = {
        "default_temperature": settings.llm_temperature,
        "default_max_tokens": settings.llm_max_tokens,
        "timeout": settings.llm_timeout,
        "log_calls": settings.log_llm_calls,
    }
    return {
        "gemini": create_llm_provider(
            provider="gemini",
            api_key=settings.gemini_api_key or "",
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            **common,
        ),
        "deepseek": create_llm_provider(
            provider="deepseek",
            api_key=settings.deepseek_api_key or "",
            model=settings.deepseek_model,
            base_url=settings.deepseek_base_url,
            **common,
        ),
    }
