# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""MediumDetector — orchestrates domain check, cache, head probe and scoring.

Decision flow for ``is_medium_url``:
  1. unparseable URL            → False (no network)
  2. known / "medium" hostname  → True (no network, no cache)
  3. cached outcome for host    → cached verdict
  4. probe <head> → parse → score → ``score >= threshold``, cached either way

Failures never propagate: invalid input, probe errors and empty heads all
degrade to "not Medium" and are logged with the stage that gave up.  A head
that is present but only whitespace is not a failure: it is scored (to 0).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from urllib.parse import urlsplit

import httpx

from . import DetectionResult
from .cache import CacheEntry, DetectionCache
from .config import FREEDIUM_MIRROR_BASE, DetectorSettings
from .domains import is_direct_medium_domain
from .errors import EmptyHeadError, InvalidURLError, ProbeError
from .head_fetcher import FETCH_TIMEOUT_MS, HEAD_FETCH_MAX_BYTES, USER_AGENT, HeadFetchResult, fetch_head_html
from .logging_config import bound_context
from .signal_scorer import MEDIUM_DETECTION_THRESHOLD, score_medium_signals

logger = logging.getLogger(__name__)

# (url, timeout_ms) -> HeadFetchResult
HeadFetcher = Callable[[str, int], Awaitable[HeadFetchResult]]

REASON_INVALID_URL = "invalid URL"
REASON_FETCH_FAILED = "fetch failed or empty head"

_SCHEME_RE = re.compile(r"^https?://")


def hostname_of(url: str) -> str:
    """Lower-cased hostname of *url*.  Raises InvalidURLError when there is none."""
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError("empty URL", url=str(url))
    try:
        parts = urlsplit(url.strip())
        parts.port  # noqa: B018  # raises ValueError on a bad port
    except ValueError as e:
        raise InvalidURLError(f"unparseable URL: {e}", url=url) from e
    if not parts.scheme or not parts.hostname:
        raise InvalidURLError("URL has no scheme or hostname", url=url)
    return parts.hostname


def convert_to_freedium_url(url: str, mirror_base: str = FREEDIUM_MIRROR_BASE) -> str:
    """Mirror URL: ``<mirror_base>/<host-and-path>`` with the http(s) scheme stripped."""
    return f"{mirror_base.rstrip('/')}/{_SCHEME_RE.sub('', url, count=1)}"


class MediumDetector:
    """Medium-publication classifier with an injected per-hostname cache.

    Args:
        cache: shared DetectionCache (a private one is created when omitted).
        fetcher: async ``(url, timeout_ms) -> HeadFetchResult``; defaults to
            ``fetch_head_html`` over *client* when one is given.
        client: httpx client reused by the default fetcher.
        threshold: default decision threshold (inclusive).
        user_agent: User-Agent header sent by the default fetcher.
    """

    def __init__(
        self,
        *,
        cache: DetectionCache | None = None,
        fetcher: HeadFetcher | None = None,
        client: httpx.AsyncClient | None = None,
        threshold: int = MEDIUM_DETECTION_THRESHOLD,
        timeout_ms: int = FETCH_TIMEOUT_MS,
        max_bytes: int = HEAD_FETCH_MAX_BYTES,
        mirror_base: str = FREEDIUM_MIRROR_BASE,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._cache = cache if cache is not None else DetectionCache()
        self._client = client
        self._fetcher = fetcher if fetcher is not None else self._default_fetch
        self._threshold = threshold
        self._timeout_ms = timeout_ms
        self._max_bytes = max_bytes
        self._mirror_base = mirror_base
        self._user_agent = user_agent

    @classmethod
    def from_settings(
        cls,
        settings: DetectorSettings,
        *,
        cache: DetectionCache | None = None,
        fetcher: HeadFetcher | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> MediumDetector:
        if cache is None:
            cache = DetectionCache(max_entries=settings.cache_max_entries, ttl=settings.cache_ttl_seconds)
        return cls(
            cache=cache,
            fetcher=fetcher,
            client=client,
            threshold=settings.threshold,
            timeout_ms=settings.fetch_timeout_ms,
            max_bytes=settings.head_fetch_max_bytes,
            mirror_base=settings.mirror_base,
            user_agent=settings.user_agent,
        )

    @property
    def cache(self) -> DetectionCache:
        return self._cache

    @property
    def threshold(self) -> int:
        return self._threshold

    async def _default_fetch(self, url: str, timeout_ms: int) -> HeadFetchResult:
        return await fetch_head_html(
            url, timeout_ms, client=self._client, max_bytes=self._max_bytes, user_agent=self._user_agent
        )

    # -- Public API --

    async def is_medium_url(self, url: str) -> bool:
        """True if *url* is (very likely) served by Medium.  Never raises."""
        return (await self.explain(url)).is_medium_likely

    async def explain(self, url: str) -> DetectionResult:
        """Same decision as ``is_medium_url`` with score and reasons attached."""
        try:
            hostname = hostname_of(url)
        except InvalidURLError as e:
            logger.info("Rejected URL: %s", e, extra={"stage": "parse"})
            return DetectionResult(is_medium_likely=False, score=0, reasons=(REASON_INVALID_URL,))

        if is_direct_medium_domain(hostname):
            return DetectionResult(is_medium_likely=True, score=0, reasons=(f"known Medium domain ({hostname})",))

        return await self.detect_medium_publication_by_head(url)

    async def detect_medium_publication_by_head(self, url: str, *, threshold: int | None = None) -> DetectionResult:
        """Score the page's <head> against the Medium rule table (cached per hostname).

        A fresh cache entry is returned verbatim, whatever *threshold* is.
        Probe failures produce a cached negative with score 0.
        """
        try:
            hostname = hostname_of(url)
        except InvalidURLError as e:
            logger.info("Rejected URL: %s", e, extra={"stage": "parse"})
            return DetectionResult(is_medium_likely=False, score=0, reasons=(REASON_INVALID_URL,))

        cached = self._cache.get(hostname)
        if cached is not None:
            logger.debug("Cache hit: host=%s is_medium=%s", hostname, cached.is_medium)
            return DetectionResult(is_medium_likely=cached.is_medium, score=cached.score, reasons=cached.reasons)

        limit = self._threshold if threshold is None else threshold
        started = self._cache.now()

        with bound_context(hostname=hostname):
            try:
                head_html = await self._probe(url)
            except ProbeError as e:
                stage = "parse" if isinstance(e, EmptyHeadError) else "fetch"
                logger.warning(
                    "Head probe inconclusive, treating as non-Medium: %s",
                    e,
                    extra={"stage": stage, "status": e.status},
                )
                result = DetectionResult(is_medium_likely=False, score=0, reasons=(REASON_FETCH_FAILED,))
            else:
                scored = score_medium_signals(head_html)
                result = DetectionResult(
                    is_medium_likely=scored.score >= limit,
                    score=scored.score,
                    reasons=scored.reasons,
                )
                logger.info(
                    "Head scored: score=%d threshold=%d medium=%s",
                    result.score,
                    limit,
                    result.is_medium_likely,
                    extra={"stage": "score"},
                )

        self._cache.set(
            hostname,
            CacheEntry(
                timestamp=started,
                is_medium=result.is_medium_likely,
                score=result.score,
                reasons=result.reasons,
            ),
        )
        return result

    def convert_to_freedium_url(self, url: str) -> str:
        return convert_to_freedium_url(url, self._mirror_base)

    # -- Internals --

    async def _probe(self, url: str) -> str:
        """Fetch head markup or raise ProbeError / EmptyHeadError."""
        try:
            fetched = await self._fetcher(url, self._timeout_ms)
        except Exception as e:
            # Custom fetchers may raise; the default one never does
            logger.debug("Fetcher raised", exc_info=True)
            raise ProbeError(f"fetcher raised {type(e).__name__}: {e}") from e
        if not fetched.ok:
            raise ProbeError(fetched.error or f"HTTP {fetched.status}", status=fetched.status)
        if not fetched.head_html:
            raise EmptyHeadError("response carried no <head> markup", status=fetched.status)
        return fetched.head_html
