"""Suggestion backends: the primary gazetteer, the secondary geocoder, fixtures.

Adapters are imported from their own modules; only the shared contract lives
here.
"""

from .base import ProviderError, SuggestionProvider

__all__ = ["ProviderError", "SuggestionProvider"]
