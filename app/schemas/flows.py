"""
app/schemas/flows.py

Request schemas for the callable flow endpoints.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _FlowRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class MarketingBriefRequest(_FlowRequest):
    date_range: Literal["today", "yesterday", "last7days", "last30days"] = Field(
        default="last7days",
        alias="dateRange",
    )
    properties: list[str] = Field(default_factory=lambda: ["bespoke-ethos", "gmfg"], min_length=1)


class CompetitorWatchRequest(_FlowRequest):
    competitors: list[str] = Field(default_factory=list, description="URLs; empty uses configured defaults")
    check_type: Literal["full", "quick"] = Field(default="quick", alias="checkType")


class ContentDrafterRequest(_FlowRequest):
    topic: str = Field(min_length=1, max_length=500)
    content_type: Literal["blog", "social", "email", "ad"] = Field(alias="contentType")
    target_keywords: list[str] = Field(default_factory=list, alias="targetKeywords")
    tone: Literal["professional", "casual", "authoritative"] = "professional"
    word_count: int = Field(default=500, ge=50, le=5000, alias="wordCount")


class OpportunityScannerRequest(_FlowRequest):
    sources: list[Literal["nglcc", "events", "news", "linkedin"]] = Field(
        default_factory=lambda: ["nglcc", "news"],
        min_length=1,
    )
    industry: str = Field(default="consulting", min_length=1)
    min_relevance_score: float = Field(default=0.7, ge=0.0, le=1.0, alias="minRelevanceScore")


class SelfHealingRequest(_FlowRequest):
    check_all: bool = Field(default=True, alias="checkAll")
    specific_service: str | None = Field(default=None, alias="specificService")
