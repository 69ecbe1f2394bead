"""LLM client factory to switch between providers."""
from __future__ import annotations

import logging

from meeting_intel.core.config import Settings
from meeting_intel.llm.base import LLMProvider

logger = logging.getLogger(__name__)


def create_llm_provider(settings: Settings) -> LLMProvider:
    """
    Build the generation/embedding client selected by LLM_PROVIDER.

    Raises:
        ConfigurationError: the selected provider's API key is missing
    """
    provider = settings.LLM_PROVIDER.lower()

    if provider == "gemini":
        from meeting_intel.llm.gemini import GeminiClient

        logger.info(f"Using Gemini ({settings.GEMINI_MODEL}, {settings.GEMINI_EMBEDDING_MODEL})")
        return GeminiClient(
            api_key=settings.GEMINI_API_KEY,
            base_url=settings.GEMINI_BASE_URL,
            model=settings.GEMINI_MODEL,
            embedding_model=settings.GEMINI_EMBEDDING_MODEL,
            temperature=settings.LLM_TEMPERATURE,
        )

    elif provider == "ollama":
        from meeting_intel.llm.ollama import OllamaClient

        logger.info(f"Using Ollama at {settings.OLLAMA_BASE_URL} ({settings.LLM_MODEL})")
        return OllamaClient(
            base_url=settings.OLLAMA_BASE_URL,
            model=settings.LLM_MODEL,
            embedding_model=settings.EMBEDDING_MODEL,
            api_key=settings.OLLAMA_API_KEY,
            num_ctx=settings.LLM_NUM_CTX,
            temperature=settings.LLM_TEMPERATURE,
        )

    else:
        logger.error(f"Unknown LLM_PROVIDER: {provider}")
        raise ValueError(f"Invalid LLM_PROVIDER: {provider}. Must be 'gemini' or 'ollama'")
