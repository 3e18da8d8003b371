# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""mediumdetect exception hierarchy.

All mediumdetect errors inherit from MediumDetectError.  The detection
pipeline raises these internally and folds them into negative results;
only ConfigError reaches callers.
"""

from __future__ import annotations


class MediumDetectError(Exception):
    """Base exception for all mediumdetect errors."""


class InvalidURLError(MediumDetectError):
    """URL could not be parsed or has no scheme/hostname."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class ProbeError(MediumDetectError):
    """Head probe failed: network error, timeout, or non-success status."""

    def __init__(self, message: str, *, status: int = 0) -> None:
        super().__init__(message)
        self.status = status


class EmptyHeadError(ProbeError):
    """Response arrived but carried no usable <head> markup."""


class ConfigError(MediumDetectError):
    """Settings failed validation."""
