"""
tests/test_competitor_detection.py

Competitor change detection: parsing, fetching, fingerprints, diff rules,
the watch engine and URL configuration. No network; pages are served from
a fake session.
"""

from __future__ import annotations

import json
from datetime import timedelta

import pytest
import requests

from app.scraping.config import CompetitorWatchSettings, load_monitored_competitors, resolve_default_urls
from app.scraping.differ import SnapshotDiffer
from app.scraping.engine import CompetitorWatchEngine
from app.scraping.fetcher import ContentFetcher
from app.scraping.fingerprint import Fnv1a64Fingerprint, RollingHashFingerprint, get_fingerprint
from app.scraping.parsing import HTMLParsingLayer
from app.scraping.storage import snapshot_doc_id
from app.scraping.types import ChangeType, CompetitorSnapshot, Severity
from tests.fakes import (
    FIXED_NOW,
    FakeClock,
    FakeResponse,
    FakeSession,
    InMemorySnapshotStorage,
    KeyedSnapshotStorage,
    html_page,
)

PRICING_URL = "https://acme.example/pricing"
HOME_URL = "https://acme.example/"


def _snapshot(**overrides) -> CompetitorSnapshot:
    values = {
        "url": PRICING_URL,
        "title": "Acme | Home",
        "content_hash": "0000abcd",
        "key_phrases": ("Consulting for growing teams",),
        "pricing_mentions": (),
        "last_checked": FIXED_NOW,
    }
    values.update(overrides)
    return CompetitorSnapshot(**values)


# ---------------------------------------------------------------------------
# HTML parsing
# ---------------------------------------------------------------------------


class TestHTMLParsing:
    HTML = (
        "<html><head><title>  Acme   Pricing </title><style>.hero{color:red}</style>"
        "<script>var secret = 1;</script></head><body>"
        "<h1>Simple pricing for teams</h1><h2>Short</h2><h2>Simple pricing for teams</h2>"
        "<h3>Enterprise-grade security</h3>"
        "<p>Starter $49/mo Starter plan. Growth $99/month Pro. Custom $1,299 per year.</p>"
        "</body></html>"
    )

    def test_title_is_whitespace_collapsed(self) -> None:
        assert HTMLParsingLayer.extract_title(HTMLParsingLayer.parse(self.HTML)) == "Acme Pricing"

    def test_missing_title_is_empty(self) -> None:
        assert HTMLParsingLayer.extract_title(HTMLParsingLayer.parse("<p>No head</p>")) == ""

    def test_key_phrases_are_long_unique_headings_in_order(self) -> None:
        soup = HTMLParsingLayer.parse(self.HTML)
        assert HTMLParsingLayer.extract_key_phrases(soup) == (
            "Simple pricing for teams",
            "Enterprise-grade security",
        )

    def test_text_drops_scripts_and_styles(self) -> None:
        text = HTMLParsingLayer.extract_text(HTMLParsingLayer.parse(self.HTML))
        assert "secret" not in text
        assert "color:red" not in text
        assert "Enterprise-grade security" in text
        assert "  " not in text

    def test_text_is_truncated(self) -> None:
        soup = HTMLParsingLayer.parse("<p>" + "word " * 100 + "</p>")
        assert len(HTMLParsingLayer.extract_text(soup, max_chars=20)) == 20

    def test_pricing_mentions(self) -> None:
        text = HTMLParsingLayer.extract_text(HTMLParsingLayer.parse(self.HTML))
        assert HTMLParsingLayer.extract_pricing_mentions(text) == (
            "$49/mo Starter",
            "$99/month Pro",
            "$1,299",
        )

    def test_pricing_mentions_are_deduplicated(self) -> None:
        text = "Only $10/mo Basic. Really, $10/mo Basic!"
        assert HTMLParsingLayer.extract_pricing_mentions(text) == ("$10/mo Basic",)

    def test_no_pricing_in_plain_text(self) -> None:
        assert HTMLParsingLayer.extract_pricing_mentions("Contact sales for a quote.") == ()


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class TestContentFetcher:
    def test_successful_fetch_extracts_page(self) -> None:
        page = html_page(title="Acme", headings=["Consulting for growing teams"], body="From $49/mo Starter")
        session = FakeSession(routes={PRICING_URL: FakeResponse(200, text=page)})
        result = ContentFetcher(session=session, user_agent="TestBot/1.0").fetch(PRICING_URL)

        assert result.ok
        assert result.title == "Acme"
        assert result.key_phrases == ("Consulting for growing teams",)
        assert "tracking" not in result.text
        assert session.calls[0]["headers"] == {"User-Agent": "TestBot/1.0"}
        assert session.calls[0]["timeout"] == 10.0

    def test_network_error_yields_status_zero(self) -> None:
        session = FakeSession(routes={PRICING_URL: requests.ConnectionError("refused")})
        result = ContentFetcher(session=session).fetch(PRICING_URL)
        assert result.status == 0
        assert not result.ok
        assert result.text == ""

    def test_non_2xx_keeps_status_and_no_content(self) -> None:
        session = FakeSession(routes={PRICING_URL: FakeResponse(404, text="<title>Not found</title>")})
        result = ContentFetcher(session=session).fetch(PRICING_URL)
        assert result.status == 404
        assert result.title == ""
        assert result.key_phrases == ()


# ---------------------------------------------------------------------------
# Fingerprints
# ---------------------------------------------------------------------------


class TestFingerprints:
    @pytest.mark.parametrize(
        "text, expected",
        [("", "00000000"), ("a", "00000061"), ("ab", "00000c21")],
    )
    def test_rolling_hash_values(self, text: str, expected: str) -> None:
        assert RollingHashFingerprint().hash(text) == expected

    def test_rolling_hash_is_fixed_width(self) -> None:
        digest = RollingHashFingerprint().hash("x" * 5_000)
        assert len(digest) == 8
        assert digest == RollingHashFingerprint().hash("x" * 5_000)

    @pytest.mark.parametrize(
        "text, expected",
        [("", "cbf29ce484222325"), ("a", "af63dc4c8601ec8c")],
    )
    def test_fnv1a64_values(self, text: str, expected: str) -> None:
        assert Fnv1a64Fingerprint().hash(text) == expected

    def test_lookup_by_name_is_case_insensitive(self) -> None:
        assert isinstance(get_fingerprint(" FNV1A64 "), Fnv1a64Fingerprint)

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown fingerprint"):
            get_fingerprint("sha1")


# ---------------------------------------------------------------------------
# Diff rules
# ---------------------------------------------------------------------------


class TestSnapshotDiffer:
    @pytest.fixture()
    def differ(self) -> SnapshotDiffer:
        return SnapshotDiffer(clock=lambda: FIXED_NOW)

    def test_first_observation_sets_baseline(self, differ: SnapshotDiffer) -> None:
        assert differ.diff(_snapshot(), None) == []

    def test_identical_snapshots_yield_no_changes(self, differ: SnapshotDiffer) -> None:
        assert differ.diff(_snapshot(), _snapshot(last_checked=FIXED_NOW - timedelta(hours=6))) == []

    def test_new_pricing_mention_is_high_severity(self, differ: SnapshotDiffer) -> None:
        changes = differ.diff(_snapshot(pricing_mentions=("$49/mo Starter",)), _snapshot())
        assert len(changes) == 1
        assert changes[0].change_type == ChangeType.PRICING
        assert changes[0].severity == Severity.HIGH
        assert "$49/mo Starter" in changes[0].description

    def test_removed_items_are_not_changes(self, differ: SnapshotDiffer) -> None:
        previous = _snapshot(pricing_mentions=("$49/mo Starter",), key_phrases=("Old heading here",))
        current = _snapshot(pricing_mentions=(), key_phrases=())
        assert differ.diff(current, previous) == []

    def test_rules_emit_in_fixed_order(self, differ: SnapshotDiffer) -> None:
        previous = _snapshot()
        current = _snapshot(
            title="Acme | New Home",
            content_hash="ffff0000",
            key_phrases=("Consulting for growing teams", "Now serving enterprises"),
            pricing_mentions=("$99/mo Pro",),
        )
        changes = differ.diff(current, previous)
        assert [(c.change_type, c.severity) for c in changes] == [
            (ChangeType.CONTENT, Severity.LOW),
            (ChangeType.MESSAGING, Severity.MEDIUM),
            (ChangeType.MESSAGING, Severity.MEDIUM),
            (ChangeType.PRICING, Severity.HIGH),
        ]
        assert "Acme | New Home" in changes[1].description
        assert "Now serving enterprises" in changes[2].description

    def test_change_serializes_with_camel_case_keys(self, differ: SnapshotDiffer) -> None:
        change = differ.diff(_snapshot(content_hash="1"), _snapshot(content_hash="2"))[0]
        assert change.to_dict() == {
            "competitor": PRICING_URL,
            "changeType": "content",
            "description": "Page content changed since the last check.",
            "severity": "low",
            "detectedAt": FIXED_NOW.isoformat(),
        }


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TestCompetitorWatchEngine:
    @pytest.fixture()
    def storage(self) -> InMemorySnapshotStorage:
        return InMemorySnapshotStorage()

    @pytest.fixture()
    def session(self) -> FakeSession:
        return FakeSession(
            routes={
                HOME_URL: FakeResponse(200, text=html_page(title="Acme", headings=["Consulting for growing teams"])),
                PRICING_URL: FakeResponse(200, text=html_page(title="Acme Pricing", body="Plans from $29/mo Basic")),
            }
        )

    @pytest.fixture()
    def engine(self, storage: InMemorySnapshotStorage, session: FakeSession, sleeps: list[float]) -> CompetitorWatchEngine:
        return CompetitorWatchEngine(
            storage=storage,
            fetcher=ContentFetcher(session=session),
            delay_seconds=0.5,
            sleep=sleeps.append,
            clock=FakeClock(FIXED_NOW),
        )

    def test_first_run_only_records_baseline(
        self, engine: CompetitorWatchEngine, storage: InMemorySnapshotStorage, sleeps: list[float]
    ) -> None:
        result = engine.run([HOME_URL, PRICING_URL])
        assert result.changes == []
        assert result.failed_urls == []
        assert set(storage.snapshots) == {HOME_URL, PRICING_URL}
        assert storage.snapshots[PRICING_URL].pricing_mentions == ("$29/mo Basic",)
        assert sleeps == [0.5]

    def test_second_run_detects_new_pricing(
        self, engine: CompetitorWatchEngine, session: FakeSession, storage: InMemorySnapshotStorage
    ) -> None:
        engine.run([PRICING_URL])
        session.routes[PRICING_URL] = FakeResponse(
            200,
            text=html_page(title="Acme Pricing", body="Plans from $29/mo Basic and $49/mo Starter"),
        )
        result = engine.run([PRICING_URL])

        kinds = [(change.change_type, change.severity) for change in result.changes]
        assert kinds == [(ChangeType.CONTENT, Severity.LOW), (ChangeType.PRICING, Severity.HIGH)]
        assert result.action_required
        assert storage.snapshots[PRICING_URL].pricing_mentions == ("$29/mo Basic", "$49/mo Starter")

    def test_unchanged_page_reports_nothing(self, engine: CompetitorWatchEngine) -> None:
        engine.run([HOME_URL])
        result = engine.run([HOME_URL])
        assert result.changes == []
        assert not result.action_required

    def test_failed_fetch_is_skipped_not_fatal(
        self, engine: CompetitorWatchEngine, session: FakeSession, storage: InMemorySnapshotStorage
    ) -> None:
        session.routes[HOME_URL] = FakeResponse(503)
        result = engine.run([HOME_URL, PRICING_URL])
        assert result.failed_urls == [HOME_URL]
        assert list(storage.snapshots) == [PRICING_URL]

    def test_storage_failure_marks_url_failed(
        self, engine: CompetitorWatchEngine, storage: InMemorySnapshotStorage
    ) -> None:
        storage.fail_reads_for.add(HOME_URL)
        result = engine.run([HOME_URL, PRICING_URL])
        assert result.failed_urls == [HOME_URL]
        assert PRICING_URL in storage.snapshots

    def test_blank_and_duplicate_urls_are_dropped(self, engine: CompetitorWatchEngine, sleeps: list[float]) -> None:
        result = engine.run([HOME_URL, " ", HOME_URL, ""])
        assert result.checked_urls == [HOME_URL]
        assert sleeps == []

    def test_excerpts_are_bounded(self, storage: InMemorySnapshotStorage) -> None:
        session = FakeSession(routes={HOME_URL: FakeResponse(200, text=html_page(title="A", body="x " * 2_000))})
        engine = CompetitorWatchEngine(
            storage=storage,
            fetcher=ContentFetcher(session=session),
            excerpt_chars=100,
            sleep=lambda _: None,
        )
        assert len(engine.run([HOME_URL]).excerpts[HOME_URL]) == 100

    def test_urls_sharing_a_snapshot_key_are_fetched_once(
        self, engine: CompetitorWatchEngine, session: FakeSession
    ) -> None:
        result = engine.run([PRICING_URL, "HTTPS://Acme.example/pricing/", "http://acme.example/pricing"])
        assert result.checked_urls == [PRICING_URL]
        assert [call["url"] for call in session.calls] == [PRICING_URL]

    def test_similar_paths_keep_separate_snapshots(self) -> None:
        dashed, nested = "https://acme.com/blog-pricing", "https://acme.com/blog/pricing"
        session = FakeSession(
            routes={
                dashed: FakeResponse(200, text=html_page(title="Blog", headings=["Pricing stories from teams"])),
                nested: FakeResponse(200, text=html_page(title="Plans", body="Plans from $29/mo Basic")),
            }
        )
        storage = KeyedSnapshotStorage()
        engine = CompetitorWatchEngine(
            storage=storage,
            fetcher=ContentFetcher(session=session),
            sleep=lambda _: None,
            clock=FakeClock(FIXED_NOW),
        )

        engine.run([dashed, nested])
        second = engine.run([dashed, nested])

        assert len(storage.rows) == 2
        assert second.changes == []


# ---------------------------------------------------------------------------
# Snapshot identity and URL configuration
# ---------------------------------------------------------------------------


class TestSnapshotIdentity:
    def test_scheme_case_and_trailing_slash_are_ignored(self) -> None:
        assert snapshot_doc_id("https://Acme.example/pricing/") == snapshot_doc_id("http://acme.example/pricing")

    def test_readable_prefix_and_url_digest(self) -> None:
        doc_id = snapshot_doc_id("https://acme.example/pricing?plan=pro")
        digest = Fnv1a64Fingerprint().hash("acme.example/pricing?plan=pro")
        assert doc_id == f"acme_example_pricing_plan_pro_{digest}"

    @pytest.mark.parametrize(
        "first, second",
        [
            ("https://acme.com/blog-pricing", "https://acme.com/blog/pricing"),
            ("https://acme.com/a_b", "https://acme.com/a.b"),
            ("https://acme.com/?q=1", "https://acme.com/?q=2"),
        ],
    )
    def test_distinct_urls_get_distinct_keys(self, first: str, second: str) -> None:
        assert snapshot_doc_id(first) != snapshot_doc_id(second)

    def test_long_urls_are_bounded(self) -> None:
        doc_id = snapshot_doc_id("https://acme.example/" + "a" * 2_000)
        assert len(doc_id) <= 512


class TestCompetitorConfig:
    def test_enabled_competitor_pages_then_env_urls(self, tmp_path) -> None:
        config_path = tmp_path / "competitors.json"
        config_path.write_text(
            json.dumps(
                {
                    "competitors": [
                        {
                            "name": "acme",
                            "base_url": "https://acme.example/",
                            "pages": {"home": "/", "pricing": "pricing"},
                        },
                        {"name": "dormant", "base_url": "https://dormant.example", "enabled": False},
                        {"name": "", "base_url": "https://nameless.example"},
                    ]
                }
            ),
            encoding="utf-8",
        )
        settings = CompetitorWatchSettings(
            config_path=str(config_path),
            extra_urls=("https://other.example/", "https://acme.example/pricing"),
        )

        assert resolve_default_urls(settings) == [
            "https://acme.example/",
            "https://acme.example/pricing",
            "https://other.example/",
        ]

    def test_competitor_without_pages_uses_base_url(self, tmp_path) -> None:
        config_path = tmp_path / "competitors.json"
        config_path.write_text(json.dumps({"competitors": [{"name": "b", "base_url": "https://b.example/"}]}))
        competitors = load_monitored_competitors(config_path=str(config_path))
        assert competitors[0].urls == ["https://b.example"]

    def test_missing_file_yields_no_competitors(self, tmp_path) -> None:
        assert load_monitored_competitors(config_path=str(tmp_path / "absent.json")) == []

    def test_non_list_competitors_is_rejected(self, tmp_path) -> None:
        config_path = tmp_path / "competitors.json"
        config_path.write_text(json.dumps({"competitors": {"name": "x"}}))
        with pytest.raises(ValueError):
            load_monitored_competitors(config_path=str(config_path))
