"""Structured output schemas the LLM must return for each flow.

These describe only the narrative portion of a flow response. Computed
fields (metrics, scores, timestamps, confidence) are attached by the
calling service, never by the model.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _NarrativeModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        str_strip_whitespace=True,
        populate_by_name=True,
    )


class BriefNarrative(_NarrativeModel):
    """Executive marketing brief narrative."""

    summary: str = Field(min_length=1)
    highlights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class CompetitorSummary(_NarrativeModel):
    """One or two sentence business read-out of detected competitor changes."""

    summary: str = Field(min_length=1)


class ContentDraft(_NarrativeModel):
    """Drafted marketing content."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    meta_description: str = Field(default="", alias="metaDescription")
    suggested_keywords: List[str] = Field(default_factory=list, alias="suggestedKeywords")


class OpportunityCandidate(_NarrativeModel):
    """A ranked business opportunity derived from the supplied signals."""

    title: str = Field(min_length=1)
    source: str = Field(min_length=1)
    description: str = ""
    relevance_score: float = Field(alias="relevanceScore", ge=0.0, le=1.0)
    estimated_value: str = Field(default="Unknown", alias="estimatedValue")
    deadline: Optional[str] = None
    url: Optional[str] = None


class OpportunityRanking(_NarrativeModel):
    """Model-ranked list of opportunities."""

    opportunities: List[OpportunityCandidate] = Field(default_factory=list)
