"""
app/services/content_drafter_service.py

Content drafting flow with a Flesch reading-ease score on the result.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Sequence
from typing import Any

from app.errors import InternalFlowError
from app.logging_utils import log_flow_error
from app.services.llm_provider import generate_structured
from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.prompt_builder import MarketingPromptBuilder
from llm_synthesis.schema import ContentDraft

logger = logging.getLogger(__name__)

FLOW_NAME = "contentDrafterFlow"
DRAFT_CONFIDENCE = 0.85
META_DESCRIPTION_MAX_CHARS = 155

_WORD_RE = re.compile(r"[A-Za-z]+(?:'[A-Za-z]+)?")
_SENTENCE_END_RE = re.compile(r"[.!?]+")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")


def count_syllables(word: str) -> int:
    """
    Vowel-group heuristic; a trailing silent ``e`` does not count. Every word
    has at least one syllable.
    """

    lowered = word.lower()
    groups = len(_VOWEL_GROUP_RE.findall(lowered))
    if lowered.endswith("e") and not lowered.endswith(("le", "ee")) and groups > 1:
        groups -= 1
    return max(1, groups)


def flesch_reading_ease(text: str) -> float:
    """
    Flesch reading ease clamped to 0..100. Text without words scores 0.
    """

    words = _WORD_RE.findall(text)
    if not words:
        return 0.0
    sentences = max(1, len([part for part in _SENTENCE_END_RE.split(text) if part.strip()]))
    syllables = sum(count_syllables(word) for word in words)
    score = 206.835 - 1.015 * (len(words) / sentences) - 84.6 * (syllables / len(words))
    return round(min(100.0, max(0.0, score)), 1)


def truncate_meta_description(text: str, limit: int = META_DESCRIPTION_MAX_CHARS) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


class ContentDrafterService:
    def __init__(
        self,
        *,
        adapter: BaseLLMAdapter,
        prompt_builder: MarketingPromptBuilder | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._adapter = adapter
        self._prompts = prompt_builder or MarketingPromptBuilder()
        self._sleep = sleep

    def draft(
        self,
        *,
        topic: str,
        content_type: str,
        target_keywords: Sequence[str],
        tone: str,
        word_count: int,
    ) -> dict[str, Any]:
        prompt = self._prompts.content_draft(
            topic=topic,
            content_type=content_type,
            target_keywords=list(target_keywords),
            tone=tone,
            word_count=word_count,
        )
        try:
            draft = generate_structured(self._adapter, prompt, ContentDraft, model="pro", sleep=self._sleep)
        except Exception as exc:
            log_flow_error(logger, flow=FLOW_NAME, step="generate_draft", error=exc)
            raise InternalFlowError("Failed to draft content.") from exc

        return {
            "title": draft.title,
            "content": draft.content,
            "metaDescription": truncate_meta_description(draft.meta_description),
            "suggestedKeywords": list(draft.suggested_keywords),
            "readabilityScore": flesch_reading_ease(draft.content),
            "confidence": DRAFT_CONFIDENCE,
        }
