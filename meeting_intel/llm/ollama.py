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

from meeting_intel.core.exceptions import ProviderError
from meeting_intel.llm.base import LLMProvider

logger = logging.getLogger(__name__)

# Retry decorator for transient failures (connection issues, timeouts)
# Does NOT retry on HTTP 4xx errors (bad request, model not found)
ollama_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=2, min=2, max=30),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout, ConnectionError)),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class OllamaClient(LLMProvider):
    """
    Ollama generation and embedding client.

    A local Ollama needs no key; OLLAMA_API_KEY is sent as a bearer token
    when talking to a hosted instance.
    """

    name = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        embedding_model: str = "nomic-embed-text",
        api_key: Optional[str] = None,
        num_ctx: int = 8192,
        temperature: float = 0.3,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.embedding_model = embedding_model
        self.api_key = api_key
        self.num_ctx = num_ctx
        self.temperature = temperature

        # Extended timeout for LLM generation (can take several minutes)
        self.timeout = httpx.Timeout(
            connect=5.0,
            read=600.0,
            write=10.0,
            pool=10.0,
        )
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            limits=httpx.Limits(max_connections=5, max_keepalive_connections=2),
        )

    def _get_headers(self) -> Dict[str, str]:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self.client.aclose()

    @ollama_retry
    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.client.post(
            f"{self.base_url}{path}", json=payload, headers=self._get_headers()
        )
        response.raise_for_status()
        return response.json()

    async def _call(self, action: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await self._post(path, payload)
        except httpx.HTTPStatusError as e:
            logger.error(f"Ollama HTTP error: {e.response.status_code} - {e.response.text}")
            raise ProviderError(
                self.name,
                f"{action} failed ({e.response.status_code}): {e.response.text}",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.TimeoutException as e:
            logger.error(f"Ollama {action} timed out after {self.timeout.read}s")
            raise ProviderError(self.name, f"{action} timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Cannot connect to Ollama at {self.base_url}")
            raise ProviderError(
                self.name, f"Cannot connect to Ollama. Is it running at {self.base_url}?"
            ) from e

    async def generate(self, prompt: str) -> str:
        logger.info(f"Sending prompt to Ollama ({len(prompt)} chars)")
        data = await self._call(
            "generate",
            "/api/generate",
            {
                "model": self.model,
                "prompt": prompt,
                "stream": False,
                "options": {
                    "num_ctx": self.num_ctx,
                    "temperature": self.temperature,
                },
            },
        )

        text = data.get("response", "").strip()
        if not text:
            logger.warning("Empty response from Ollama")
            raise ProviderError(self.name, "generate returned an empty response")
        return text

    async def embed(self, text: str) -> List[float]:
        # Null bytes break the embeddings endpoint
        text = text.replace("\x00", "")
        data = await self._call(
            "embed",
            "/api/embeddings",
            {"model": self.embedding_model, "prompt": text},
        )

        embedding = data.get("embedding")
        if not embedding:
            raise ProviderError(self.name, "embed returned no vector")
        return [float(v) for v in embedding]
