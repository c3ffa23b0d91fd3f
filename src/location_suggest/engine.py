from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from .cache import SuggestionCache
from .coordinator import CycleResult, RequestCoordinator
from .geojson import to_feature, to_featurecollection
from .options import EngineOptions, merge_options
from .providers.arcgis import ArcGISGeocoderProvider
from .providers.base import SuggestionProvider
from .providers.gazetteer import GazetteerProvider
from .validate import Candidate


logger = logging.getLogger("lsg.engine")

_EVENTS = {"select": "on_select", "suggest": "on_suggest"}


def _snapshot(candidates) -> str:
    return json.dumps(to_featurecollection(candidates), sort_keys=True)


def build_providers() -> Tuple[SuggestionProvider, Optional[SuggestionProvider]]:
    """Live primary and secondary providers, configured from the environment."""
    return GazetteerProvider(), ArcGISGeocoderProvider()


class ResolutionEngine:
    """Suggestion state for one search control.

    Owns the options, the cache, the current suggestions and the selection.
    When neither provider is given the live services are used; passing only
    `primary` runs without a secondary source.
    """

    def __init__(
        self,
        control_id: str,
        options: Union[EngineOptions, Mapping[str, Any], None] = None,
        primary: Optional[SuggestionProvider] = None,
        secondary: Optional[SuggestionProvider] = None,
    ) -> None:
        self.control_id = control_id
        if isinstance(options, EngineOptions):
            self.options = options
        else:
            self.options = merge_options(EngineOptions(), options)
        if primary is None and secondary is None:
            primary, secondary = build_providers()
        elif primary is None:
            primary = GazetteerProvider()
        self.primary = primary
        self.secondary = secondary
        self.cache = SuggestionCache()
        self._coordinator = RequestCoordinator(
            self.cache, primary, secondary, on_complete=self._on_cycle_complete
        )
        self._candidates: Tuple[Candidate, ...] = ()
        self._selected: Optional[Candidate] = None
        self._shown = _snapshot(())
        self._last_cycle: Optional[CycleResult] = None

    def __repr__(self) -> str:
        return f"ResolutionEngine({self.control_id!r})"

    @property
    def candidates(self) -> Tuple[Candidate, ...]:
        return self._candidates

    @property
    def selected(self) -> Optional[Candidate]:
        return self._selected

    @property
    def last_cycle(self) -> Optional[CycleResult]:
        return self._last_cycle

    @property
    def state(self):
        return self._coordinator.state

    async def resolve(self, raw_text: Optional[str]) -> None:
        """Run one resolution cycle for `raw_text`.

        Returns when the cycle finishes or is superseded by a newer call.
        """
        task = self._coordinator.start(raw_text, self.options)
        await asyncio.wait({task})
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Resolution cycle for %r failed", raw_text, exc_info=exc)

    def get_suggestions(self) -> dict:
        return to_featurecollection(self._candidates)

    def get_selected(self) -> Optional[dict]:
        return to_feature(self._selected)

    def select(self, candidate: Union[Candidate, int]) -> Optional[Candidate]:
        if isinstance(candidate, Candidate):
            self._selected = candidate
        elif isinstance(candidate, int) and not isinstance(candidate, bool):
            if not 0 <= candidate < len(self._candidates):
                logger.warning(
                    "%s: suggestion index %d out of range (%d suggestions)",
                    self.control_id,
                    candidate,
                    len(self._candidates),
                )
                return None
            self._selected = self._candidates[candidate]
        else:
            logger.warning("%s: cannot select %r", self.control_id, candidate)
            return None
        self._notify("on_select")
        return self._selected

    def invalidate(self) -> None:
        """Drop in-flight work, cached results and current suggestions."""
        self._coordinator.cancel()
        self.cache.clear()
        self._candidates = ()
        # _shown is kept: the next result is compared with what the UI still shows

    def set_options(self, updates: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> EngineOptions:
        options = merge_options(self.options, updates)
        if kwargs:
            options = merge_options(options, kwargs)
        self.options = options
        self.invalidate()
        self._selected = None
        return options

    def trigger(self, names: Union[str, Iterable[str]]) -> None:
        """Fire callbacks by event name ("select", "suggest")."""
        if isinstance(names, str):
            names = names.replace(",", " ").split()
        for name in names:
            key = str(name).strip().lower()
            attr = _EVENTS.get(key) or (key if key in _EVENTS.values() else None)
            if attr is None:
                logger.warning("%s: unknown event %r not triggered", self.control_id, name)
                continue
            self._notify(attr)

    def destroy(self) -> None:
        from . import registry

        self.invalidate()
        self._selected = None
        self._last_cycle = None
        registry._unregister(self.control_id, self)

    async def aclose(self) -> None:
        self.destroy()
        for provider in (self.primary, self.secondary):
            if provider is not None:
                await provider.aclose()

    def _on_cycle_complete(self, result: CycleResult) -> None:
        self._last_cycle = result
        self._candidates = result.candidates
        snapshot = _snapshot(self._candidates)
        if snapshot == self._shown:
            return
        self._shown = snapshot
        self._notify("on_suggest")

    def _notify(self, attr: str) -> None:
        callback = getattr(self.options, attr)
        if callback is None:
            return
        try:
            callback(self)
        except Exception:
            logger.exception("%s: %s callback failed", self.control_id, attr)
