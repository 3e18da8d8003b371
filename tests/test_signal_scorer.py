# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for mediumdetect.signal_scorer — declarative Medium rule table."""

from __future__ import annotations

import pytest

from mediumdetect.head_parser import HeadDocument, parse_head
from mediumdetect.signal_scorer import (
    MAX_SCORE,
    MEDIUM_DETECTION_THRESHOLD,
    RULES,
    ScoreResult,
    ScoringRule,
    apply_rules,
    score_medium_signals,
)
from tests._helpers import MEDIUM_HEAD, PLAIN_HEAD

# ---------------------------------------------------------------------------
# Rule table shape
# ---------------------------------------------------------------------------


class TestRuleTable:
    def test_rule_names_unique(self):
        names = [r.name for r in RULES]
        assert len(names) == len(set(names))

    def test_weights_positive(self):
        assert all(r.weight > 0 for r in RULES)

    def test_each_rule_has_one_predicate(self):
        for rule in RULES:
            assert (rule.check_doc is None) != (rule.check_raw is None), rule.name

    def test_max_score(self):
        assert MAX_SCORE == 27

    def test_default_threshold(self):
        assert MEDIUM_DETECTION_THRESHOLD == 8


# ---------------------------------------------------------------------------
# One signal at a time (table-driven)
# ---------------------------------------------------------------------------

SINGLE_SIGNAL_CASES = [
    ('<meta name="twitter:app:name:iphone" content="Medium">', 2, 'twitter:app:name:iphone="Medium"'),
    ('<meta name="twitter:app:id:iphone" content="828256236">', 3, "twitter:app:id:iphone=828256236"),
    ('<meta property="al:ios:app_name" content="medium">', 2, 'al:ios:app_name="Medium"'),
    ('<meta property="al:ios:app_store_id" content="828256236">', 3, "al:ios:app_store_id=828256236"),
    ('<meta property="al:android:app_name" content="Medium">', 2, 'al:android:app_name="Medium"'),
    ('<meta property="al:android:package" content="com.medium.reader">', 3, "al:android:package=com.medium.reader"),
    (
        '<link rel="alternate" href="android-app://com.medium.reader/https/medium.com/p/1a2b3c">',
        3,
        "link[rel=alternate] android-app://com.medium.reader/https/medium.com/p/...",
    ),
    ('<link rel="author" href="https://medium.com/@alice">', 3, 'rel="author" -> https://medium.com/@...'),
    (
        '<script type="application/ld+json">{"author":{"url":"https://medium.com/@alice"}}</script>',
        2,
        "LD+JSON contains medium.com/@author",
    ),
    ('<link rel="search" title="Medium" href="/search.xml">', 1, 'link[rel="search"][title="Medium"]'),
    ('<link rel="search" title="Blog" href="/osd.xml">', 1, 'link[rel="search"][href="/osd.xml"]'),
    ('<meta property="og:site_name" content="MEDIUM">', 1, 'og:site_name="Medium"'),
    (
        '<meta name="image-host" content="miro.medium.com">',
        1,
        "Head contains miro/glyph/cdn-images-1.medium.com",
    ),
]


class TestSingleSignals:
    @pytest.mark.parametrize(
        "markup,weight,reason",
        SINGLE_SIGNAL_CASES,
        ids=[c[2][:40] for c in SINGLE_SIGNAL_CASES],
    )
    def test_signal(self, markup: str, weight: int, reason: str):
        result = score_medium_signals(markup)
        assert result == ScoreResult(score=weight, reasons=(reason,))

    def test_ios_app_store_id_plus_three(self):
        result = score_medium_signals('<meta property="al:ios:app_store_id" content="828256236">')
        assert result.score == 3
        assert any("al:ios:app_store_id" in r and "828256236" in r for r in result.reasons)


# ---------------------------------------------------------------------------
# Non-matches
# ---------------------------------------------------------------------------


class TestNoSignals:
    def test_plain_head_scores_zero(self):
        assert score_medium_signals(PLAIN_HEAD) == ScoreResult(score=0, reasons=())

    def test_empty_head(self):
        assert score_medium_signals("") == ScoreResult(score=0, reasons=())

    @pytest.mark.parametrize(
        "markup",
        [
            '<meta name="twitter:app:id:iphone" content="123">',
            '<meta property="twitter:app:id:iphone" content="828256236">',  # property, not name
            '<meta name="al:ios:app_store_id" content="828256236">',  # name, not property
            '<meta property="al:ios:app_name" content="Medium Rare">',
            '<link rel="author" href="http://medium.com/@alice">',
            '<link rel="author" href="https://example.com/?u=https://medium.com/@a">',
            '<link rel="alternate" href="android-app://com.other.reader/https/medium.com/p/1">',
            '<link rel="search" href="/blog/osd.xml">',
            '<script>{"url":"https://medium.com/@alice"}</script>',
            '<script type="application/ld+json">{"url":"https://medium.com/alice"}</script>',
            '<link rel="preconnect" href="https://xmiro.medium.com">',
            '<link rel="preconnect" href="https://miro.medium.com.evil.net">',
        ],
    )
    def test_near_misses(self, markup: str):
        assert score_medium_signals(markup).score == 0

    @pytest.mark.parametrize(
        "markup",
        [
            '<link rel="preconnect" href="https://miro.medium.com">',
            '<link rel="icon" href="https://cdn-images-1.medium.com/fit/c/152/152/1.png">',
            '<link rel="dns-prefetch" href="//glyph.medium.com">',
        ],
    )
    def test_asset_host_inside_url_not_counted(self, markup: str):
        # Only a bare host token after a quote, paren or whitespace scores
        assert score_medium_signals(markup) == ScoreResult(score=0, reasons=())

    @pytest.mark.parametrize(
        "markup",
        [
            "<style>a{background:url(miro.medium.com/1.png)}</style>",
            "<meta name='image-host' content='cdn-images-1.medium.com'>",
            '<meta name="hosts" content="example.org glyph.medium.com">',
        ],
    )
    def test_bare_asset_host_counted(self, markup: str):
        assert score_medium_signals(markup).reasons == ("Head contains miro/glyph/cdn-images-1.medium.com",)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class TestAggregation:
    def test_full_medium_head(self):
        result = score_medium_signals(MEDIUM_HEAD)
        assert result.score == MAX_SCORE
        assert result.reasons == tuple(r.reason for r in RULES)

    def test_duplicate_tags_count_once(self):
        markup = '<meta property="al:ios:app_store_id" content="828256236">' * 3
        assert score_medium_signals(markup).score == 3

    def test_reasons_follow_rule_order_not_document_order(self):
        markup = '<meta property="og:site_name" content="Medium"><meta name="twitter:app:name:iphone" content="Medium">'
        result = score_medium_signals(markup)
        assert result.reasons == ('twitter:app:name:iphone="Medium"', 'og:site_name="Medium"')

    def test_score_exactly_at_threshold(self):
        # 3 + 3 + 2 = 8
        markup = (
            '<meta property="al:ios:app_store_id" content="828256236">'
            '<meta property="al:android:package" content="com.medium.reader">'
            '<meta property="al:ios:app_name" content="Medium">'
        )
        assert score_medium_signals(markup).score == MEDIUM_DETECTION_THRESHOLD

    def test_deterministic(self):
        assert score_medium_signals(MEDIUM_HEAD) == score_medium_signals(MEDIUM_HEAD)


class TestApplyRules:
    def test_custom_rule_table(self):
        rules = (
            ScoringRule("always", 5, "always", check_doc=lambda d: True),
            ScoringRule("never", 7, "never", check_raw=lambda h: False),
            ScoringRule("raw_hit", 1, "raw hit", check_raw=lambda h: "x" in h),
        )
        result = apply_rules(HeadDocument(), "xyz", rules)
        assert result == ScoreResult(score=6, reasons=("always", "raw hit"))

    def test_reweighting_changes_total_only(self):
        doc = parse_head(MEDIUM_HEAD)
        doubled = tuple(
            ScoringRule(r.name, r.weight * 2, r.reason, check_doc=r.check_doc, check_raw=r.check_raw) for r in RULES
        )
        base = apply_rules(doc, MEDIUM_HEAD)
        heavy = apply_rules(doc, MEDIUM_HEAD, doubled)
        assert heavy.score == base.score * 2
        assert heavy.reasons == base.reasons
