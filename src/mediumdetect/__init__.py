# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""mediumdetect: decide whether a URL points to a Medium-hosted publication.

Detection stages:
- domains: allowlist + substring fast path (no network)
- head_fetcher / head_parser / signal_scorer: bounded <head> probe scored by weighted rules
- cache: per-hostname TTL cache of outcomes (positive and negative)

The orchestrator lives in ``mediumdetect.detector.MediumDetector``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DetectionResult:
    """Outcome of a single classification request."""

    is_medium_likely: bool
    score: int  # sum of matched rule weights, >= 0
    reasons: tuple[str, ...] = ()  # matched rule reasons, in rule order

    def to_dict(self) -> dict:
        return {
            "is_medium_likely": self.is_medium_likely,
            "score": self.score,
            "reasons": list(self.reasons),
        }
