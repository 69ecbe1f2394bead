from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from meeting_intel.core.exceptions import ConfigurationError, ProviderError
from meeting_intel.llm.base import LLMProvider

logger = logging.getLogger(__name__)

# Retry decorator for transient failures (connection issues, timeouts)
# Does NOT retry on HTTP 4xx/5xx responses
gemini_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=2, min=2, max=30),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout, ConnectionError)),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class GeminiClient(LLMProvider):
    """
    Google Generative Language REST client.

    Uses models/{model}:generateContent for text and
    models/{embedding_model}:embedContent for vectors.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        model: str = "gemini-1.5-flash",
        embedding_model: str = "text-embedding-004",
        temperature: float = 0.3,
    ) -> None:
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.embedding_model = embedding_model
        self.temperature = temperature

        # Generation over a full transcript can take a while
        self.timeout = httpx.Timeout(connect=5.0, read=120.0, write=10.0, pool=10.0)
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        )

    def _get_headers(self) -> Dict[str, str]:
        return {"x-goog-api-key": self.api_key}

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self.client.aclose()

    @gemini_retry
    async def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.client.post(url, json=payload, headers=self._get_headers())
        response.raise_for_status()
        return response.json()

    async def _call(self, action: str, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await self._post(url, payload)
        except httpx.HTTPStatusError as e:
            logger.error(f"Gemini {action} HTTP error: {e.response.status_code} - {e.response.text}")
            raise ProviderError(
                self.name,
                f"{action} failed ({e.response.status_code}): {e.response.text}",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.TimeoutException as e:
            logger.error(f"Gemini {action} timed out")
            raise ProviderError(self.name, f"{action} timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Cannot reach Gemini at {self.base_url}: {e}")
            raise ProviderError(self.name, f"{action} failed: {e}") from e

    async def generate(self, prompt: str) -> str:
        logger.info(f"Sending prompt to Gemini ({len(prompt)} chars)")
        data = await self._call(
            "generate",
            f"{self.base_url}/models/{self.model}:generateContent",
            {
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {"temperature": self.temperature},
            },
        )

        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise ProviderError(self.name, f"generate returned no text ({reason})")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text.strip():
            raise ProviderError(self.name, "generate returned an empty response")
        return text

    async def embed(self, text: str) -> List[float]:
        data = await self._call(
            "embed",
            f"{self.base_url}/models/{self.embedding_model}:embedContent",
            {
                "model": f"models/{self.embedding_model}",
                "content": {"parts": [{"text": text}]},
            },
        )

        values = (data.get("embedding") or {}).get("values")
        if not values:
            raise ProviderError(self.name, "embed returned no vector")
        return [float(v) for v in values]
