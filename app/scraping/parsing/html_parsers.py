"""
BeautifulSoup-based parsing layer for competitor pages.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

MAX_TEXT_CHARS = 10_000
MAX_EXTRACTED_ITEMS = 20
MIN_PHRASE_LENGTH = 8

PRICE_MENTION_REGEX = re.compile(
    r"(?:USD|US\$|\$|EUR|€|GBP|£)\s?\d+(?:,\d{3})*(?:\.\d{1,2})?"
    r"(?:\s?/\s?(?:month|mo|year|yr|user))?"
    r"(?-i:\s+[A-Z][A-Za-z]+)?",
    flags=re.IGNORECASE,
)

_STRIPPED_TAGS = ("script", "style", "noscript")
_PHRASE_TAGS = ("h1", "h2", "h3")


class HTMLParsingLayer:
    """
    Deterministic parser utilities for HTML documents.
    """

    @classmethod
    def parse(cls, html: str) -> BeautifulSoup:
        return BeautifulSoup(html or "", "html.parser")

    @classmethod
    def extract_title(cls, soup: BeautifulSoup) -> str:
        if soup.title is None:
            return ""
        return cls._clean_text(soup.title.get_text(" ", strip=True))

    @classmethod
    def extract_key_phrases(cls, soup: BeautifulSoup, limit: int = MAX_EXTRACTED_ITEMS) -> tuple[str, ...]:
        """
        Return heading texts (h1-h3) in document order, de-duplicated.

        Must run before ``extract_text``, which strips nodes from the tree.
        """

        phrases: list[str] = []
        for node in soup.find_all(_PHRASE_TAGS):
            phrase = cls._clean_text(node.get_text(" ", strip=True))
            if len(phrase) < MIN_PHRASE_LENGTH:
                continue
            phrases.append(phrase)
        return cls._dedupe(phrases)[:limit]

    @classmethod
    def extract_text(cls, soup: BeautifulSoup, max_chars: int = MAX_TEXT_CHARS) -> str:
        """
        Strip script/style blocks and markup, collapse whitespace and truncate.
        """

        for node in soup.find_all(_STRIPPED_TAGS):
            node.decompose()
        return cls._clean_text(soup.get_text(" "))[:max_chars]

    @classmethod
    def extract_pricing_mentions(cls, text: str, limit: int = MAX_EXTRACTED_ITEMS) -> tuple[str, ...]:
        mentions = [cls._clean_text(match.group(0)) for match in PRICE_MENTION_REGEX.finditer(text or "")]
        return cls._dedupe(mentions)[:limit]

    @staticmethod
    def _clean_text(value: str) -> str:
        return re.sub(r"\s+", " ", value or "").strip()

    @staticmethod
    def _dedupe(items: list[str]) -> tuple[str, ...]:
        seen: set[str] = set()
        output: list[str] = []
        for item in items:
            if not item or item in seen:
                continue
            seen.add(item)
            output.append(item)
        return tuple(output)
