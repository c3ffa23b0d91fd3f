from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = str(raw).strip().lower()
    if v in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


@dataclass(frozen=True)
class FeatureFlags:
    """Process-wide switches read from the environment.

    Per-control behavior belongs in EngineOptions; these only gate whole
    code paths for every control at once.
    """

    secondary_geocoder: bool
    negative_cache: bool

    @classmethod
    def from_env(cls) -> "FeatureFlags":
        return cls(
            secondary_geocoder=_env_bool("LSG_FEATURE_SECONDARY_GEOCODER", True),
            # Only sound while the primary service matches on exact prefixes.
            negative_cache=_env_bool("LSG_FEATURE_NEGATIVE_CACHE", True),
        )


@lru_cache(maxsize=1)
def get_flags() -> FeatureFlags:
    return FeatureFlags.from_env()


def reset_flags_cache() -> None:
    """Test helper to force env re-read."""

    get_flags.cache_clear()
