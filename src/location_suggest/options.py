from __future__ import annotations

import logging
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .states import expand_states, split_codes


logger = logging.getLogger("lsg.options")

BBox = Tuple[float, float, float, float]

WORLD_BOUNDS: BBox = (-90.0, -180.0, 90.0, 180.0)

MAX_SUGGESTIONS_LIMIT = 200

INCLUDE_TOKENS = frozenset(
    [
        "gnis",
        "huc",
        "huc-2",
        "huc-4",
        "huc-6",
        "huc-8",
        "huc-10",
        "huc-12",
        "postal",
        "state",
        "usgs",
        "usgs-sw",
        "usgs-gw",
        "usgs-sp",
        "usgs-at",
        "usgs-ot",
        "usgs-nws",
    ]
)


@dataclass(frozen=True)
class EngineOptions:
    bounds: Optional[BBox] = None
    states: Optional[str] = None
    include: str = "gnis postal state"
    max_suggestions: int = 50
    min_characters: int = 2
    debounce_ms: int = 250
    timeout_ms: int = 7000
    min_score: float = 80.0
    coordinate_decimals: int = 6
    secondary: bool = True
    on_select: Optional[Callable[[Any], None]] = None
    on_suggest: Optional[Callable[[Any], None]] = None

    @property
    def geo_bounds(self) -> BBox:
        return self.bounds or WORLD_BOUNDS

    @property
    def include_tokens(self) -> List[str]:
        return [t for t in re.split(r"[\s,]+", self.include.lower()) if t]


# camelCase spellings accepted from browser-side callers.
_ALIASES = {
    "maxsuggestions": "max_suggestions",
    "mincharacters": "min_characters",
    "debouncems": "debounce_ms",
    "timeoutms": "timeout_ms",
    "minscore": "min_score",
    "coordinatedecimals": "coordinate_decimals",
    "onselect": "on_select",
    "onsuggest": "on_suggest",
}

_OPTION_NAMES = {f.name for f in fields(EngineOptions)}


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    v = str(value).strip().lower()
    if v in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "f", "no", "n", "off"}:
        return False
    raise ValueError("must be a boolean")


def _as_number(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("must be a number")
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise ValueError("must be a number") from None
    if number != number or number in (float("inf"), float("-inf")):
        raise ValueError("must be a finite number")
    return number


def _in_range(lo: float, hi: float) -> Callable[[Any], float]:
    def check(value: Any) -> float:
        number = _as_number(value)
        if number < lo or number > hi:
            raise ValueError(f"must be between {lo:g} and {hi:g}")
        return number

    return check


def _as_int_min(lo: int) -> Callable[[Any], int]:
    def check(value: Any) -> int:
        number = _as_number(value)
        if number != int(number):
            raise ValueError("must be a whole number")
        if number < lo:
            raise ValueError(f"must be at least {lo}")
        return int(number)

    return check


def _as_max_suggestions(value: Any) -> int:
    number = _as_int_min(1)(value)
    if number > MAX_SUGGESTIONS_LIMIT:
        logger.warning(
            "Option 'max_suggestions' (%s) capped at %s", number, MAX_SUGGESTIONS_LIMIT
        )
        number = MAX_SUGGESTIONS_LIMIT
    return number


def _as_bounds(value: Any) -> Optional[BBox]:
    if value is None:
        return None
    if isinstance(value, str):
        value = [p for p in re.split(r"[\s,]+", value.strip()) if p]
    flat: List[Any] = []
    for item in value:
        if isinstance(item, (list, tuple)):
            flat.extend(item)
        else:
            flat.append(item)
    if len(flat) != 4:
        raise ValueError("must be [latMin, lonMin, latMax, lonMax]")
    lat_min, lat_max = (_in_range(-90, 90)(flat[0]), _in_range(-90, 90)(flat[2]))
    lon_min, lon_max = (_in_range(-180, 180)(flat[1]), _in_range(-180, 180)(flat[3]))
    if lat_min > lat_max or lon_min > lon_max:
        raise ValueError("minimum must not exceed maximum")
    return (lat_min, lon_min, lat_max, lon_max)


def _as_states(value: Any) -> Optional[str]:
    if value is None:
        return None
    expand_states(str(value))
    return " ".join(split_codes(str(value))) or None


def _as_include(value: Any) -> str:
    tokens = [t for t in re.split(r"[\s,]+", str(value).strip().lower()) if t]
    unknown = [t for t in tokens if t not in INCLUDE_TOKENS]
    if unknown:
        raise ValueError(f"unrecognized location type(s): {', '.join(unknown)}")
    return " ".join(tokens)


def _as_callback(value: Any) -> Optional[Callable[[Any], None]]:
    if value is None or callable(value):
        return value
    raise ValueError("must be callable or None")


_COERCERS: Dict[str, Callable[[Any], Any]] = {
    "bounds": _as_bounds,
    "states": _as_states,
    "include": _as_include,
    "max_suggestions": _as_max_suggestions,
    "min_characters": _as_int_min(1),
    "debounce_ms": _as_int_min(0),
    "timeout_ms": _as_int_min(1),
    "min_score": _in_range(0, 100),
    "coordinate_decimals": _as_int_min(0),
    "secondary": _as_bool,
    "on_select": _as_callback,
    "on_suggest": _as_callback,
}


def canonical_name(name: str) -> str:
    key = str(name).strip()
    if key in _OPTION_NAMES:
        return key
    lowered = key.lower()
    if lowered in _OPTION_NAMES:
        return lowered
    return _ALIASES.get(lowered.replace("_", ""), key)


def merge_options(
    current: Optional[EngineOptions], updates: Optional[Mapping[str, Any]]
) -> EngineOptions:
    """Merge option updates into `current`.

    Unrecognized names and invalid values are logged and skipped; the
    remaining updates still apply.
    """
    base = current or EngineOptions()
    if updates is None:
        return base
    if not isinstance(updates, Mapping):
        logger.warning("Options must be a mapping, got %s; options not changed", type(updates).__name__)
        return base
    changes: Dict[str, Any] = {}
    for raw_name, value in updates.items():
        name = canonical_name(raw_name)
        if name not in _OPTION_NAMES:
            logger.warning("Unrecognized option %r ignored", raw_name)
            continue
        try:
            changes[name] = _COERCERS[name](value)
        except ValueError as exc:
            logger.warning("Option %r (%r) %s; option ignored", raw_name, value, exc)
    return replace(base, **changes)
