from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..normalize import QueryDescriptor
from ..options import EngineOptions


logger = logging.getLogger("lsg.providers.fixture")

FIXTURE_DIR = Path(__file__).resolve().parents[3] / "tests" / "fixtures"


class FixtureProvider:
    """Fixture-backed deterministic provider.

    Serves recorded service payloads keyed by normalized term, and runs them
    through the same `parse` function as the live adapter. Unknown terms get
    `empty`.
    """

    def __init__(
        self,
        parse: Callable[[Any], List[Dict[str, Any]]],
        fixture_path: Optional[str | Path] = None,
        payloads: Optional[Dict[str, Any]] = None,
        empty: Any = None,
        name: str = "fixture",
    ) -> None:
        self.name = name
        self._parse = parse
        self._empty = [] if empty is None else empty
        if payloads is None:
            if fixture_path is None:
                raise ValueError("fixture_path or payloads is required")
            payloads = json.loads(Path(fixture_path).read_text(encoding="utf-8"))
            if not isinstance(payloads, dict):
                raise ValueError(f"{fixture_path} must be a JSON object")
        self._payloads = {str(k).upper(): v for k, v in payloads.items()}
        self.calls: List[str] = []

    async def suggest(self, query: QueryDescriptor, options: EngineOptions) -> List[Dict[str, Any]]:
        self.calls.append(query.term)
        payload = self._payloads.get(query.term, self._empty)
        logger.debug("%s fixture %s %r", self.name, "hit" if query.term in self._payloads else "miss", query.term)
        return self._parse(payload)

    async def aclose(self) -> None:
        return None
