# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Known Medium-family domains — instant decision without network access."""

from __future__ import annotations

MEDIUM_DOMAINS: tuple[str, ...] = (
    "medium.com",
    "towardsdatascience.com",
    "betterprogramming.pub",
    "betterhumans.pub",
    "medium.freecodecamp.org",
    "uxdesign.cc",
    "levelup.gitconnected.com",
    "blog.medium.com",
    "entrepreneurshandbook.co",
    "python.plainenglish.io",
)

# Broad on purpose: any host mentioning "medium" (mediumrare.example.org too).
_MEDIUM_SUBSTRING = "medium"


def is_direct_medium_domain(hostname: str) -> bool:
    """True if *hostname* is a known Medium domain, a subdomain of one, or contains "medium"."""
    if not isinstance(hostname, str) or not hostname:
        return False
    host = hostname.strip().lower().rstrip(".")
    if not host:
        return False
    if _MEDIUM_SUBSTRING in host:
        return True
    return any(host == domain or host.endswith("." + domain) for domain in MEDIUM_DOMAINS)
