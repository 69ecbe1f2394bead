from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List


class LLMProvider(ABC):
    """Text generation and embedding backend."""

    name: str = "llm"

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return the model's text response for a single prompt."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Return one embedding vector for the text."""

    async def close(self) -> None:
        return None

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
