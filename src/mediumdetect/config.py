# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Detector settings: validated defaults with MEDIUMDETECT_* environment overrides."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .cache import CACHE_MAX_ENTRIES, CACHE_TTL_SECONDS
from .errors import ConfigError
from .head_fetcher import FETCH_TIMEOUT_MS, HEAD_FETCH_MAX_BYTES, USER_AGENT
from .signal_scorer import MEDIUM_DETECTION_THRESHOLD

FREEDIUM_MIRROR_BASE = "https://freedium-mirror.cfd"

# env var -> settings field
_ENV_FIELDS: dict[str, str] = {
    "MEDIUMDETECT_THRESHOLD": "threshold",
    "MEDIUMDETECT_TIMEOUT_MS": "fetch_timeout_ms",
    "MEDIUMDETECT_MAX_BYTES": "head_fetch_max_bytes",
    "MEDIUMDETECT_CACHE_TTL": "cache_ttl_seconds",
    "MEDIUMDETECT_CACHE_MAX_ENTRIES": "cache_max_entries",
    "MEDIUMDETECT_MIRROR_BASE": "mirror_base",
    "MEDIUMDETECT_USER_AGENT": "user_agent",
}


class DetectorSettings(BaseModel):
    """Tunables for MediumDetector."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    threshold: int = Field(MEDIUM_DETECTION_THRESHOLD, ge=0, description="Minimum score for a Medium verdict")
    fetch_timeout_ms: int = Field(FETCH_TIMEOUT_MS, gt=0, description="Head probe deadline")
    head_fetch_max_bytes: int = Field(HEAD_FETCH_MAX_BYTES, gt=0, description="Range hint for the probe")
    cache_ttl_seconds: float = Field(CACHE_TTL_SECONDS, gt=0, description="Cache freshness window")
    cache_max_entries: int = Field(CACHE_MAX_ENTRIES, gt=0, description="LRU capacity (hostnames)")
    mirror_base: str = Field(FREEDIUM_MIRROR_BASE, description="Mirror service base URL")
    user_agent: str = Field(USER_AGENT, min_length=1)

    @field_validator("mirror_base")
    @classmethod
    def _check_mirror_base(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("mirror_base must be an http(s) URL")
        return v.rstrip("/")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> DetectorSettings:
        """Build settings from MEDIUMDETECT_* variables; *overrides* win over the environment.

        Blank variables are ignored.  Raises ConfigError on invalid values.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for var, field_name in _ENV_FIELDS.items():
            raw = env.get(var, "").strip()
            if raw:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid detector settings: {e}") from e
