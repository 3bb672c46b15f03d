"""LLM module - provides unified interface for LLM API providers."""

from .base import LLMProvider, LLMMessage, LLMResponse
from .gemini_provider import GeminiProvider
from .deepseek_provider import DeepSeekProvider
from .factory import create_llm_provider, build_llm_providers, SUPPORTED_PROVIDERS

__all__ = [
    'LLMProvider',
    'LLMMessage',
    'LLMResponse',
    'GeminiProvider',
    'DeepSeekProvider',
    'create_llm_provider',
    'build_llm_providers',
    'SUPPORTED_PROVIDERS',
]
