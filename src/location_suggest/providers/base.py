from __future__ import annotations

from typing import Any, Dict, List, Protocol

from ..normalize import QueryDescriptor
from ..options import EngineOptions


class ProviderError(Exception):
    """A backend failed or answered with something unusable."""


class SuggestionProvider(Protocol):
    """Pluggable suggestion backend.

    `suggest` returns raw records keyed by Candidate field names; validation
    happens in the coordinator. It raises ProviderError on failure and returns
    an empty list when the backend simply has no suggestions.
    """

    name: str

    async def suggest(self, query: QueryDescriptor, options: EngineOptions) -> List[Dict[str, Any]]:
        ...

    async def aclose(self) -> None:
        ...
