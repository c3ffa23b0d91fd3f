from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Optional, Union

from .coordinates import Coordinate, parse
from .options import EngineOptions
from .states import ALL, expand_states, is_unrestricted


_WHITESPACE_RE = re.compile(r"\s+")
# Keep letters, digits, "*" (wildcard) and "-", "." (coordinates).
_DISALLOWED_RE = re.compile(r"[^A-Z0-9*\-.]")
_SAINT_RE = re.compile(r"^ST ")

StateFilter = Union[str, FrozenSet[str]]


@dataclass(frozen=True)
class QueryDescriptor:
    term: str
    state_filter: StateFilter
    coordinate: Optional[Coordinate]
    cache_key: str

    @property
    def states_key(self) -> str:
        return states_key(self.state_filter)

    def allows_state(self, code: str) -> bool:
        if self.state_filter == ALL:
            return True
        return code in self.state_filter


def states_key(state_filter: StateFilter) -> str:
    if state_filter == ALL:
        return ALL
    return ",".join(sorted(state_filter))


def make_cache_key(term: str, state_filter: StateFilter) -> str:
    return f"{term}|{states_key(state_filter)}"


def normalize_term(raw_text: Optional[str]) -> str:
    if raw_text is None:
        return ""
    cleaned = _DISALLOWED_RE.sub(" ", str(raw_text).upper())
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return _SAINT_RE.sub("SAINT ", cleaned)


def normalize(raw_text: Optional[str], options: Optional[EngineOptions] = None) -> QueryDescriptor:
    options = options or EngineOptions()
    term = normalize_term(raw_text)
    parts = term.split(" ") if term else []

    configured: StateFilter = ALL
    if not is_unrestricted(options.states):
        configured = expand_states(options.states)
    allowed = expand_states(options.states)

    state_filter = configured
    if len(parts) > 1 and parts[-1] in allowed:
        state_filter = frozenset([parts[-1]])
        term = " ".join(parts[:-1])

    coordinate = parse(parts, decimals=options.coordinate_decimals)
    return QueryDescriptor(
        term=term,
        state_filter=state_filter,
        coordinate=coordinate,
        cache_key=make_cache_key(term, state_filter),
    )
