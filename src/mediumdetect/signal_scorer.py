# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Weighted scoring of Medium signals found in <head> markup.

Declarative rule table, evaluated uniformly: every rule whose predicate
holds adds its weight and reports its reason.  Rule order only affects the
order of reasons, never the total.

Weights:
  3: mobile app ids / packages, Android deep link, author profile link
  2: app names, LD+JSON author reference
  1: OpenSearch title/href, og:site_name, static asset hosts
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .head_parser import HeadDocument, parse_head, pick_link_attr, pick_meta_name, pick_meta_property

MEDIUM_IOS_APP_ID = "828256236"
MEDIUM_ANDROID_PKG = "com.medium.reader"
MEDIUM_APP_NAME = "Medium"
MEDIUM_DETECTION_THRESHOLD = 8

# Bare host token only (after a quote, paren or whitespace): "https://miro.medium.com",
# "xmiro.medium.com" and "miro.medium.com.evil" do not count
_MEDIUM_HEAD_HOSTS_RE = re.compile(
    r"(?:^|[\s\"'(])(?:miro\.medium\.com|glyph\.medium\.com|cdn-images-1\.medium\.com)(?:[^\w.-]|$)",
    re.IGNORECASE,
)
_MEDIUM_ANDROID_APP_RE = re.compile(r"^android-app://com\.medium\.reader/https/medium\.com/p/", re.IGNORECASE)
_MEDIUM_AUTHOR_RE = re.compile(r"^https://medium\.com/@", re.IGNORECASE)
_LDJSON_AUTHOR_RE = re.compile(r"\"https://medium\.com/@[^\"]+\"", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ScoringRule:
    """One signal: a predicate over the parsed head (or its raw markup) plus weight and reason."""

    name: str
    weight: int
    reason: str
    check_doc: Callable[[HeadDocument], bool] | None = None
    check_raw: Callable[[str], bool] | None = None

    def matches(self, doc: HeadDocument, head_html: str) -> bool:
        if self.check_doc is not None and self.check_doc(doc):
            return True
        return self.check_raw is not None and self.check_raw(head_html)


@dataclass(frozen=True, slots=True)
class ScoreResult:
    score: int
    reasons: tuple[str, ...]


def _has_exact(values: Iterable[str], expected: str) -> bool:
    wanted = expected.lower()
    return any(v.lower() == wanted for v in values)


def _any_match(values: Iterable[str], pattern: re.Pattern[str]) -> bool:
    return any(pattern.search(v) for v in values)


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

RULES: tuple[ScoringRule, ...] = (
    # ---- mobile deep links & app ids ----
    ScoringRule(
        "twitter_app_name_iphone",
        2,
        'twitter:app:name:iphone="Medium"',
        check_doc=lambda d: _has_exact(pick_meta_name(d, "twitter:app:name:iphone"), MEDIUM_APP_NAME),
    ),
    ScoringRule(
        "twitter_app_id_iphone",
        3,
        f"twitter:app:id:iphone={MEDIUM_IOS_APP_ID}",
        check_doc=lambda d: _has_exact(pick_meta_name(d, "twitter:app:id:iphone"), MEDIUM_IOS_APP_ID),
    ),
    ScoringRule(
        "al_ios_app_name",
        2,
        'al:ios:app_name="Medium"',
        check_doc=lambda d: _has_exact(pick_meta_property(d, "al:ios:app_name"), MEDIUM_APP_NAME),
    ),
    ScoringRule(
        "al_ios_app_store_id",
        3,
        f"al:ios:app_store_id={MEDIUM_IOS_APP_ID}",
        check_doc=lambda d: _has_exact(pick_meta_property(d, "al:ios:app_store_id"), MEDIUM_IOS_APP_ID),
    ),
    ScoringRule(
        "al_android_app_name",
        2,
        'al:android:app_name="Medium"',
        check_doc=lambda d: _has_exact(pick_meta_property(d, "al:android:app_name"), MEDIUM_APP_NAME),
    ),
    ScoringRule(
        "al_android_package",
        3,
        f"al:android:package={MEDIUM_ANDROID_PKG}",
        check_doc=lambda d: _has_exact(pick_meta_property(d, "al:android:package"), MEDIUM_ANDROID_PKG),
    ),
    ScoringRule(
        "link_alternate_android_app",
        3,
        "link[rel=alternate] android-app://com.medium.reader/https/medium.com/p/...",
        check_doc=lambda d: _any_match(pick_link_attr(d, "alternate", "href"), _MEDIUM_ANDROID_APP_RE),
    ),
    # ---- author wired to a Medium profile ----
    ScoringRule(
        "link_author_medium_profile",
        3,
        'rel="author" -> https://medium.com/@...',
        check_doc=lambda d: _any_match(pick_link_attr(d, "author", "href"), _MEDIUM_AUTHOR_RE),
    ),
    ScoringRule(
        "ldjson_medium_author",
        2,
        "LD+JSON contains medium.com/@author",
        check_doc=lambda d: _any_match(d.scripts, _LDJSON_AUTHOR_RE),
    ),
    # ---- brand / OpenSearch ----
    ScoringRule(
        "opensearch_title",
        1,
        'link[rel="search"][title="Medium"]',
        check_doc=lambda d: _has_exact(pick_link_attr(d, "search", "title"), MEDIUM_APP_NAME),
    ),
    ScoringRule(
        "opensearch_href",
        1,
        'link[rel="search"][href="/osd.xml"]',
        check_doc=lambda d: "/osd.xml" in pick_link_attr(d, "search", "href"),
    ),
    ScoringRule(
        "og_site_name",
        1,
        'og:site_name="Medium"',
        check_doc=lambda d: _has_exact(pick_meta_property(d, "og:site_name"), MEDIUM_APP_NAME),
    ),
    # ---- static resource hints ----
    ScoringRule(
        "static_asset_hosts",
        1,
        "Head contains miro/glyph/cdn-images-1.medium.com",
        check_raw=lambda h: _MEDIUM_HEAD_HOSTS_RE.search(h) is not None,
    ),
)

MAX_SCORE = sum(rule.weight for rule in RULES)


def apply_rules(doc: HeadDocument, head_html: str, rules: Iterable[ScoringRule] = RULES) -> ScoreResult:
    """Sum weights of matching *rules* over an already parsed head."""
    score = 0
    reasons: list[str] = []
    for rule in rules:
        if rule.matches(doc, head_html):
            score += rule.weight
            reasons.append(rule.reason)
    return ScoreResult(score=score, reasons=tuple(reasons))


def score_medium_signals(head_html: str) -> ScoreResult:
    """Parse *head_html* and score it against the Medium rule table."""
    return apply_rules(parse_head(head_html), head_html)
