"""LLM adapters for text generation and embeddings.

Provides a base interface and concrete adapters for OpenAI-compatible
APIs and a deterministic mock for testing.
"""

import hashlib
import json
import math
import os
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

MODEL_ALIASES = ("flash", "pro")


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: The fully formatted prompt string.
            model: Optional model alias ("flash", "pro") or identifier.

        Returns:
            Raw string response from the model (expected to be JSON).
        """

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """Return the embedding vector for ``text``.

        All vectors from one adapter have the same length.
        """

    def ping(self) -> None:
        """Raise if the backing service is unreachable. No-op by default."""


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion and embedding APIs.

    Configured for deterministic, non-streaming output with
    low temperature suitable for structured JSON generation.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 2048,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        embedding_model: str = "text-embedding-3-small",
        model_aliases: Optional[Dict[str, str]] = None,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Default model identifier.
            max_tokens: Maximum tokens in the completion.
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
            embedding_model: Model used by ``embed``.
            model_aliases: Mapping of aliases ("flash", "pro") to identifiers.
        """
        from openai import OpenAI

        resolved_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        client_kwargs: dict = {"api_key": resolved_key}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens
        self._embedding_model = embedding_model
        self._aliases = dict(model_aliases or {})

    def _resolve_model(self, model: Optional[str]) -> str:
        if not model:
            return self._model
        return self._aliases.get(model, model)

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """Call the OpenAI chat completion API.

        Args:
            prompt: The fully formatted prompt string.
            model: Optional model alias or identifier.

        Returns:
            Raw string content from the model response.
        """
        response = self._client.chat.completions.create(
            model=self._resolve_model(model),
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
            top_p=1,
            max_tokens=self._max_tokens,
            stream=False,
            seed=42,
        )
        return response.choices[0].message.content or ""

    def embed(self, text: str) -> List[float]:
        response = self._client.embeddings.create(
            model=self._embedding_model,
            input=text,
        )
        return list(response.data[0].embedding)

    def ping(self) -> None:
        self._client.models.list()


# ---------------------------------------------------------------------------
# Fixed mock response used for local testing. Carries every narrative key so
# each flow's schema projection finds what it needs.
# ---------------------------------------------------------------------------
_MOCK_RESPONSE = {
    "summary": "Mock summary for testing purposes.",
    "highlights": ["Traffic steady week over week"],
    "recommendations": ["Verify integration with upstream services."],
    "title": "Mock Draft Title",
    "content": "Mock draft content. It has two short sentences.",
    "metaDescription": "Mock meta description.",
    "suggestedKeywords": ["mock"],
    "opportunities": [
        {
            "title": "Mock opportunity",
            "source": "news",
            "description": "Test fixture opportunity.",
            "relevanceScore": 0.9,
            "estimatedValue": "Unknown",
            "deadline": None,
            "url": None,
        }
    ],
}

_MOCK_RESPONSE_JSON = json.dumps(_MOCK_RESPONSE, indent=2)

MOCK_EMBEDDING_DIMENSIONS = 64

_TOKEN_RE = re.compile(r"[a-z0-9]+")


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter for local testing and CI.

    ``generate`` returns a fixed JSON response. ``embed`` hashes word tokens
    into a fixed-length bag-of-words vector, so identical text always maps
    to an identical vector.
    """

    def __init__(self, dimensions: int = MOCK_EMBEDDING_DIMENSIONS) -> None:
        self._dimensions = dimensions

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """Return a fixed JSON string regardless of input."""
        return _MOCK_RESPONSE_JSON

    def embed(self, text: str) -> List[float]:
        vector = [0.0] * self._dimensions
        for token in _TOKEN_RE.findall((text or "").lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            index = int.from_bytes(digest[:4], "big") % self._dimensions
            sign = 1.0 if digest[4] % 2 == 0 else -1.0
            vector[index] += sign
        norm = math.sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]
