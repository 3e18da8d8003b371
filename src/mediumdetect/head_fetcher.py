# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Bounded network probe of a page's <head> markup.

One GET per call, no retries.  Servers may ignore the Range header, so the
body is streamed and reading stops at ``</head>`` or at a hard cap.  Every
failure comes back as ``ok=False`` with an empty head; nothing is raised
to the caller.  A successful response without head tags is ``ok=True``
with an empty head.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

import httpx

from .errors import ProbeError

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_MS = 3000
HEAD_FETCH_MAX_BYTES = 16384
_READ_CAP_BYTES = 512 * 1024  # stop streaming even if </head> never shows up
USER_AGENT = "Mozilla/5.0 (compatible; mediumdetect/0.1; +https://freedium-mirror.cfd)"

_HEAD_RE = re.compile(r"<head(?:\s[^>]*)?>(.*?)</head\s*>", re.IGNORECASE | re.DOTALL)
_HEAD_END_RE = re.compile(rb"</head\s*>", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class HeadFetchResult:
    """Result of one head probe."""

    ok: bool
    status: int  # 0 = no response received
    head_html: str
    error: str | None = None


def text_between_head_tags(html: str) -> str:
    """Return the markup between the first <head ...> and the first </head>, or ""."""
    m = _HEAD_RE.search(html)
    return m.group(1) if m else ""


async def _read_head_bytes(response: httpx.Response, max_read: int) -> bytes:
    buf = bytearray()
    scan_from = 0
    async for chunk in response.aiter_bytes():
        buf.extend(chunk)
        if _HEAD_END_RE.search(buf, scan_from) or len(buf) >= max_read:
            break
        # A closing tag not yet complete can only start at the last "<"
        last_open = buf.rfind(b"<", scan_from)
        scan_from = last_open if last_open >= 0 else len(buf)
    return bytes(buf)


async def _get_head(
    client: httpx.AsyncClient, url: str, max_bytes: int, user_agent: str | None = None
) -> tuple[int, str]:
    headers = {
        "Range": f"bytes=0-{max_bytes}",
        "Accept": "text/html,application/xhtml+xml",
    }
    if user_agent:
        headers["User-Agent"] = user_agent
    async with client.stream("GET", url, headers=headers, follow_redirects=True) as response:
        status = response.status_code
        if not response.is_success:
            raise ProbeError(f"HTTP {status}", status=status)
        raw = await _read_head_bytes(response, _READ_CAP_BYTES)
        encoding = response.charset_encoding or "utf-8"
    try:
        text = raw.decode(encoding, errors="replace")
    except LookupError:
        text = raw.decode("utf-8", errors="replace")
    return status, text_between_head_tags(text)


async def fetch_head_html(
    url: str,
    timeout_ms: int = FETCH_TIMEOUT_MS,
    *,
    client: httpx.AsyncClient | None = None,
    max_bytes: int = HEAD_FETCH_MAX_BYTES,
    user_agent: str | None = None,
) -> HeadFetchResult:
    """Fetch *url* and return its <head> markup within *timeout_ms*.

    Args:
        url: absolute http(s) URL.
        timeout_ms: deadline for the whole request, body included.
        client: shared client to reuse (not closed here).  A private one is
            created per call when omitted.
        max_bytes: Range hint sent to the server.
        user_agent: User-Agent sent with the request, overriding the
            client's default.  ``USER_AGENT`` for a private client when omitted.

    Returns:
        HeadFetchResult — ``ok=False`` with empty ``head_html`` on any failure.
    """
    timeout = timeout_ms / 1000

    async def _probe() -> tuple[int, str]:
        if client is not None:
            return await _get_head(client, url, max_bytes, user_agent)
        async with httpx.AsyncClient(headers={"User-Agent": user_agent or USER_AGENT}, timeout=timeout) as own_client:
            return await _get_head(own_client, url, max_bytes)

    try:
        status, head = await asyncio.wait_for(_probe(), timeout=timeout)
    except ProbeError as e:
        logger.warning("Head probe rejected: url=%s status=%d", url, e.status)
        return HeadFetchResult(ok=False, status=e.status, head_html="", error=str(e))
    except TimeoutError:
        logger.warning("Head probe timed out after %dms: url=%s", timeout_ms, url)
        return HeadFetchResult(ok=False, status=0, head_html="", error=f"timeout after {timeout_ms}ms")
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("Head probe failed: url=%s error=%s", url, e)
        return HeadFetchResult(ok=False, status=0, head_html="", error=str(e) or type(e).__name__)
    return HeadFetchResult(ok=True, status=status, head_html=head)
