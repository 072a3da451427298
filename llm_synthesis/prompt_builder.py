"""Structured prompt builders for the marketing flows."""

import json
from typing import Dict, List, Optional, Type

from pydantic import BaseModel

from llm_synthesis.schema import (
    BriefNarrative,
    CompetitorSummary,
    ContentDraft,
    OpportunityRanking,
)

_SYSTEM_INSTRUCTIONS = """\
You are a senior marketing operations analyst.

STRICT RULES:
- Use ONLY the data provided below. Do not invent numbers.
- Return strictly valid JSON matching the schema defined below.
- Do NOT include any text outside the JSON object.
- Do NOT wrap the JSON in markdown code fences.
"""

_SECTION_TEMPLATE = """\
## {title}
```json
{data}
```
"""

_CONTENT_GUIDANCE = {
    "blog": "a long-form blog post with headings",
    "social": "a short social media post with a clear call to action",
    "email": "a marketing email with a subject-style title and a concise body",
    "ad": "ad copy with a punchy headline and one supporting line",
}


class MarketingPromptBuilder:
    """Builds deterministic prompts that ask for one JSON object per flow."""

    def marketing_brief(self, metrics: Dict, date_range: str, properties: List[str]) -> str:
        """Build the executive brief prompt.

        Args:
            metrics: Aggregated analytics (totals, top pages, top sources).
            date_range: Reporting window label.
            properties: Analytics property names covered.

        Returns:
            A fully formatted prompt string.
        """
        sections = self._format_data_sections(
            reporting_window={"date_range": date_range, "properties": properties},
            analytics=metrics,
        )
        return self._compose(
            sections,
            BriefNarrative,
            "Write an executive marketing brief: a one sentence summary, up to "
            "three highlights and up to three actionable recommendations.",
        )

    def competitor_summary(self, changes: List[Dict], excerpts: Optional[Dict[str, str]] = None) -> str:
        """Build the competitor change read-out prompt.

        Args:
            changes: Detected changes as plain dictionaries.
            excerpts: Optional page text excerpts keyed by URL (full checks).

        Returns:
            A fully formatted prompt string.
        """
        data: Dict = {"competitor_changes": changes}
        if excerpts:
            data["page_excerpts"] = excerpts
        return self._compose(
            self._format_data_sections(**data),
            CompetitorSummary,
            "Summarize in 1-2 sentences what these competitor changes mean for our business.",
        )

    def content_draft(
        self,
        *,
        topic: str,
        content_type: str,
        target_keywords: List[str],
        tone: str,
        word_count: int,
    ) -> str:
        brief = {
            "topic": topic,
            "format": _CONTENT_GUIDANCE.get(content_type, content_type),
            "tone": tone,
            "target_word_count": word_count,
            "target_keywords": target_keywords,
        }
        return self._compose(
            self._format_data_sections(content_brief=brief),
            ContentDraft,
            "Draft the content. Work every target keyword in naturally, keep the "
            "meta description under 155 characters and suggest related keywords.",
        )

    def opportunity_ranking(self, signals: List[Dict], industry: str, min_relevance: float) -> str:
        return self._compose(
            self._format_data_sections(
                criteria={"industry": industry, "minimum_relevance": min_relevance},
                signals=signals,
            ),
            OpportunityRanking,
            "Identify business opportunities (RFPs, partnerships, events, grants) in "
            "the signals. Score relevance to the industry between 0 and 1. Keep each "
            "opportunity's source and url from its signal.",
        )

    def _compose(self, sections: str, output_model: Type[BaseModel], task: str) -> str:
        schema_json = json.dumps(output_model.model_json_schema(by_alias=True), indent=2)
        return (
            f"{_SYSTEM_INSTRUCTIONS}\n"
            f"# PROVIDED DATA\n\n{sections}\n"
            f"# OUTPUT SCHEMA\n\n"
            f"Your response MUST conform to this JSON schema:\n\n"
            f"```json\n{schema_json}\n```\n\n"
            f"# TASK\n\n{task}"
        )

    def _format_data_sections(self, **data: object) -> str:
        """Format each data value as a labeled JSON section."""
        parts = []
        for key, value in data.items():
            title = key.replace("_", " ").title()
            body = json.dumps(value, indent=2, default=str)
            parts.append(_SECTION_TEMPLATE.format(title=title, data=body))
        return "\n".join(parts)
