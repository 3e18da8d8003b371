# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import mediumdetect  # noqa: F401
except ImportError:
    raise ImportError("mediumdetect is not installed. Run: pip install -e '.[dev]'") from None

import pytest

from mediumdetect.head_fetcher import HeadFetchResult
from tests._helpers import PLAIN_HEAD, FakeClock, StubFetcher


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def medium_fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def plain_fetcher() -> StubFetcher:
    return StubFetcher(HeadFetchResult(ok=True, status=200, head_html=PLAIN_HEAD))


@pytest.fixture
def failing_fetcher() -> StubFetcher:
    return StubFetcher(HeadFetchResult(ok=False, status=0, head_html="", error="timeout after 3000ms"))
