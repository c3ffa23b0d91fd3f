from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Tuple

from .validate import Candidate


logger = logging.getLogger("lsg.cache")

SuggestionSet = Tuple[Candidate, ...]


class SuggestionCache:
    """Validated suggestion sets for one control, keyed by `term|states`.

    Entries live until clear(); a session's query space is small.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, SuggestionSet] = {}
        self._stats = {"hits": 0, "misses": 0}

    def get(self, key: str) -> Optional[SuggestionSet]:
        entry = self._entries.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return None
        self._stats["hits"] += 1
        return entry

    def set(self, key: str, suggestions: Sequence[Candidate]) -> None:
        self._entries[key] = tuple(suggestions)
        logger.debug("cache store %s (%d suggestions)", key, len(suggestions))

    def clear(self) -> None:
        self._entries.clear()
        self._stats["hits"] = 0
        self._stats["misses"] = 0

    def has_empty_prefix(self, term: str, states_key: str, min_characters: int) -> bool:
        """True if a strict prefix of `term` (at least `min_characters` long)
        is cached with no suggestions under the same state filter."""
        for n in range(len(term) - 1, max(min_characters, 1) - 1, -1):
            entry = self._entries.get(f"{term[:n]}|{states_key}")
            if entry is not None and not entry:
                return True
        return False

    def stats(self) -> dict:
        return dict(self._stats, entries=len(self._entries))

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
