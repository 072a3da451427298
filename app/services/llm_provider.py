"""
app/services/llm_provider.py

Process-wide LLM adapter and structured-generation helper used by the flows.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from functools import lru_cache
from typing import TypeVar

from pydantic import BaseModel

from app.config import get_llm_settings, get_retry_settings
from llm_synthesis.adapter import BaseLLMAdapter, MockLLMAdapter, OpenAILLMAdapter
from llm_synthesis.retry import RetryPolicy, generate_with_retry

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

SUPPORTED_ADAPTERS = {"openai", "mock"}


@lru_cache(maxsize=1)
def get_llm_adapter() -> BaseLLMAdapter:
    """
    Build and cache the configured adapter. ``LLM_ADAPTER=mock`` needs no key.
    """

    settings = get_llm_settings()
    if settings.adapter not in SUPPORTED_ADAPTERS:
        raise RuntimeError(
            f"Unsupported LLM_ADAPTER '{settings.adapter}'. Allowed values: {sorted(SUPPORTED_ADAPTERS)}."
        )
    if settings.adapter == "mock":
        logger.info("Using mock LLM adapter")
        return MockLLMAdapter()

    return OpenAILLMAdapter(
        model=settings.flash_model,
        max_tokens=settings.max_tokens,
        api_key=settings.api_key,
        base_url=settings.base_url,
        embedding_model=settings.embedding_model,
        model_aliases={"flash": settings.flash_model, "pro": settings.pro_model},
    )


def reset_llm_adapter() -> None:
    """
    Drop the cached adapter so the next call rebuilds its client.
    """

    get_llm_adapter.cache_clear()


def get_retry_policy() -> RetryPolicy:
    settings = get_retry_settings()
    return RetryPolicy(
        max_retries=settings.max_retries,
        base_delay=settings.base_delay_seconds,
        max_delay=settings.max_delay_seconds,
    )


def generate_structured(
    adapter: BaseLLMAdapter,
    prompt: str,
    output_model: type[M],
    *,
    model: str = "flash",
    sleep: Callable[[float], None] = time.sleep,
) -> M:
    """
    Generate and validate one structured response with the configured
    transport and formatting retries.
    """

    return generate_with_retry(
        adapter,
        prompt,
        output_model,
        model=model,
        max_retries=get_retry_settings().format_retries,
        policy=get_retry_policy(),
        sleep=sleep,
    )
