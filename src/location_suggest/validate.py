"""The single gate every provider record passes before it can be surfaced.

Provider adapters hand in plain dicts keyed by Candidate field names; this
module applies the field rules (required, defaulted, validated) and returns a
frozen Candidate, or None when any rule rejects the record.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .normalize import QueryDescriptor


logger = logging.getLogger("lsg.validate")

BBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Candidate:
    type: str
    name: str
    label: str
    county: str
    state: str
    latitude: float
    longitude: float
    lat_min: float
    lon_min: float
    lat_max: float
    lon_max: float
    score: int
    source: str

    @property
    def identity(self) -> Tuple[str, str, str, str]:
        return (self.type, self.name, self.county, self.state)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CandidateRejected(ValueError):
    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class FieldRule(NamedTuple):
    name: str
    kind: str  # "str" or "float"
    default: Optional[Callable[[Dict[str, Any]], Any]] = None
    check: Optional[Callable[[Any, Dict[str, Any]], bool]] = None
    fmt: Optional[Callable[[Any, Dict[str, Any]], Any]] = None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def default_label(name: str, county: str, state: str) -> str:
    where = ", ".join(p for p in (county, state) if p)
    return f"{name} ({where})" if where else name


def _rules() -> List[FieldRule]:
    # Order matters: defaults for bounds and label read fields set earlier.
    def rounded(value, ctx):
        return round(value, ctx["decimals"])

    def offset(field, sign):
        return lambda ctx: ctx["out"][field] + sign * 10 ** -ctx["decimals"]

    return [
        FieldRule("type", "str"),
        FieldRule("name", "str"),
        FieldRule("source", "str"),
        FieldRule(
            "latitude",
            "float",
            check=lambda v, ctx: ctx["bounds"][0] <= v <= ctx["bounds"][2],
            fmt=rounded,
        ),
        FieldRule(
            "longitude",
            "float",
            check=lambda v, ctx: ctx["bounds"][1] <= v <= ctx["bounds"][3],
            fmt=rounded,
        ),
        FieldRule("lat_min", "float", default=offset("latitude", -1), fmt=rounded),
        FieldRule("lat_max", "float", default=offset("latitude", 1), fmt=rounded),
        FieldRule("lon_min", "float", default=offset("longitude", -1), fmt=rounded),
        FieldRule("lon_max", "float", default=offset("longitude", 1), fmt=rounded),
        FieldRule("county", "str", default=lambda ctx: ""),
        FieldRule(
            "state",
            "str",
            default=lambda ctx: "",
            check=lambda v, ctx: not v or ctx["query"].allows_state(v.upper()),
            fmt=lambda v, ctx: v.upper(),
        ),
        FieldRule(
            "score",
            "float",
            default=lambda ctx: 100.0,
            check=lambda v, ctx: v >= ctx["min_score"],
            fmt=lambda v, ctx: int(round(v)),
        ),
        FieldRule(
            "label",
            "str",
            default=lambda ctx: default_label(
                ctx["out"]["name"], ctx["out"]["county"], ctx["out"]["state"]
            ),
        ),
    ]


FIELD_RULES = _rules()


def _apply(rule: FieldRule, raw: Mapping[str, Any], ctx: Dict[str, Any]) -> Any:
    value = raw.get(rule.name)
    value = _as_text(value) if rule.kind == "str" else _as_float(value)
    if value in ("", None):
        if rule.default is None:
            raise CandidateRejected(rule.name, "required property missing or invalid")
        value = rule.default(ctx)
    if rule.check is not None and not rule.check(value, ctx):
        raise CandidateRejected(rule.name, f"value {value!r} failed validation")
    return rule.fmt(value, ctx) if rule.fmt else value


def validate(
    raw: Mapping[str, Any],
    query: QueryDescriptor,
    bounds: BBox,
    *,
    min_score: float = 80.0,
    decimals: int = 6,
) -> Optional[Candidate]:
    """Return a Candidate for `raw`, or None if any field rule rejects it."""
    if not isinstance(raw, Mapping):
        logger.warning("Candidate record is not an object: %r", raw)
        return None
    ctx: Dict[str, Any] = {
        "query": query,
        "bounds": bounds,
        "min_score": min_score,
        "decimals": decimals,
        "out": {},
    }
    try:
        for rule in FIELD_RULES:
            ctx["out"][rule.name] = _apply(rule, raw, ctx)
    except CandidateRejected as exc:
        if exc.reason.startswith("required"):
            logger.warning("Candidate dropped, %s (source=%s)", exc, raw.get("source"))
        else:
            logger.debug("Candidate dropped, %s (source=%s)", exc, raw.get("source"))
        return None
    return Candidate(**ctx["out"])


def validate_all(
    records: Iterable[Mapping[str, Any]],
    query: QueryDescriptor,
    bounds: BBox,
    *,
    min_score: float = 80.0,
    decimals: int = 6,
) -> List[Candidate]:
    out = []
    for raw in records:
        candidate = validate(raw, query, bounds, min_score=min_score, decimals=decimals)
        if candidate is not None:
            out.append(candidate)
    return out


def dedupe(candidates: Sequence[Candidate]) -> List[Candidate]:
    """Drop repeats of (type, name, county, state), keeping the first seen."""
    seen = set()
    out = []
    for candidate in candidates:
        if candidate.identity in seen:
            continue
        seen.add(candidate.identity)
        out.append(candidate)
    return out


def sort_for_display(candidates: Sequence[Candidate]) -> List[Candidate]:
    return sorted(candidates, key=lambda c: (c.type, c.state, c.county))
