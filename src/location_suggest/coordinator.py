from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .cache import SuggestionCache
from .feature_flags import get_flags
from .normalize import QueryDescriptor, normalize
from .options import EngineOptions
from .providers.base import ProviderError, SuggestionProvider
from .validate import Candidate, dedupe, sort_for_display, validate, validate_all


logger = logging.getLogger("lsg.coordinator")

COORDINATE_TYPE = "Latitude-Longitude Coordinate"


class CycleState(str, enum.Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    FETCHING_PRIMARY = "fetching_primary"
    FETCHING_SECONDARY = "fetching_secondary"


# CycleResult.outcome values
BELOW_MINIMUM = "below_minimum"
COORDINATE = "coordinate"
CACHE_HIT = "cache_hit"
NEGATIVE_CACHE = "negative_cache"
PRIMARY = "primary"
SECONDARY = "secondary"
EMPTY = "empty"
ERROR = "error"
TIMEOUT = "timeout"


@dataclass
class CycleResult:
    generation: int
    term: str
    states: str
    outcome: str
    candidates: Tuple[Candidate, ...] = ()
    cached: bool = False
    seconds: float = 0.0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "generation": self.generation,
            "term": self.term,
            "states": self.states,
            "outcome": self.outcome,
            "candidates_count": len(self.candidates),
            "cached": self.cached,
            "seconds": round(self.seconds, 4),
            "errors": list(self.errors),
        }


def format_coordinate(value: float, decimals: int) -> str:
    text = format(value, f".{decimals}f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class RequestCoordinator:
    """Runs resolution cycles for one engine.

    One asyncio.Task per cycle. Starting a cycle cancels the previous task and
    bumps `generation`; a cycle whose generation is no longer current never
    writes the cache or reports back.
    """

    def __init__(
        self,
        cache: SuggestionCache,
        primary: SuggestionProvider,
        secondary: Optional[SuggestionProvider] = None,
        on_complete: Optional[Callable[[CycleResult], None]] = None,
    ) -> None:
        self.cache = cache
        self.primary = primary
        self.secondary = secondary
        self.on_complete = on_complete
        self.state = CycleState.IDLE
        self.generation = 0
        self._task: Optional[asyncio.Task] = None

    def start(self, raw_text: Optional[str], options: EngineOptions) -> asyncio.Task:
        self.cancel()
        generation = self.generation
        self._task = asyncio.ensure_future(self._run(generation, raw_text, options))
        return self._task

    def cancel(self) -> None:
        """Abort the in-flight cycle, if any. Always invalidates it."""
        self.generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        self.state = CycleState.IDLE

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def secondary_enabled(self, options: EngineOptions) -> bool:
        return (
            self.secondary is not None
            and options.secondary
            and get_flags().secondary_geocoder
            and "gnis" in options.include_tokens
        )

    async def _run(self, generation: int, raw_text: Optional[str], options: EngineOptions) -> None:
        started = time.monotonic()
        self.state = CycleState.DEBOUNCING
        if options.debounce_ms > 0:
            await asyncio.sleep(options.debounce_ms / 1000.0)
        if not self.is_current(generation):
            return
        result = await self._resolve(generation, raw_text, options)
        if result is None or not self.is_current(generation):
            logger.debug("cycle %d superseded", generation)
            return
        result.seconds = time.monotonic() - started
        self.state = CycleState.IDLE
        logger.debug(
            "cycle %d %r -> %s (%d suggestions)",
            generation,
            result.term,
            result.outcome,
            len(result.candidates),
        )
        if self.on_complete is not None:
            self.on_complete(result)

    async def _resolve(
        self, generation: int, raw_text: Optional[str], options: EngineOptions
    ) -> Optional[CycleResult]:
        text = (raw_text or "").strip()
        if len(text) < options.min_characters:
            return CycleResult(generation, text, "", BELOW_MINIMUM)
        try:
            query = normalize(text, options)
        except ValueError as exc:
            logger.warning("Could not normalize %r: %s", text, exc)
            return CycleResult(generation, text, "", ERROR, errors=[str(exc)])

        def result(outcome, candidates=(), **kwargs) -> CycleResult:
            return CycleResult(
                generation, query.term, query.states_key, outcome, tuple(candidates), **kwargs
            )

        if query.coordinate is not None:
            candidate = self._coordinate_candidate(query, options)
            if candidate is not None:
                return result(COORDINATE, [candidate])
            logger.debug("coordinate %s rejected, searching as text", query.coordinate.as_tuple())

        if not query.term:
            return result(EMPTY)

        hit = self.cache.get(query.cache_key)
        if hit is not None:
            logger.debug("cache hit %s", query.cache_key)
            return result(CACHE_HIT, hit)

        if get_flags().negative_cache and self.cache.has_empty_prefix(
            query.term, query.states_key, options.min_characters
        ):
            logger.debug("empty prefix cached for %s, skipping fetch", query.cache_key)
            return result(NEGATIVE_CACHE)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + options.timeout_ms / 1000.0
        use_secondary = self.secondary_enabled(options)
        errors: List[str] = []

        self.state = CycleState.FETCHING_PRIMARY
        try:
            candidates = await self._fetch(self.primary, query, options, deadline)
        except asyncio.TimeoutError:
            logger.warning("Suggestion lookup for %r timed out after %d ms", query.term, options.timeout_ms)
            return result(TIMEOUT, errors=["timeout"])
        except Exception as exc:  # ProviderError or an adapter bug
            self._log_failure(self.primary, query, exc)
            errors.append(f"{self.primary.name}: {exc}")
            if not use_secondary:
                return result(ERROR, errors=errors)
        else:
            if not self.is_current(generation):
                return None
            if candidates:
                self.cache.set(query.cache_key, candidates)
                return result(PRIMARY, candidates, cached=True)
            if not use_secondary:
                self.cache.set(query.cache_key, ())
                return result(EMPTY, cached=True)

        if not self.is_current(generation):
            return None

        self.state = CycleState.FETCHING_SECONDARY
        try:
            candidates = await self._fetch(self.secondary, query, options, deadline)
        except asyncio.TimeoutError:
            logger.warning("Suggestion lookup for %r timed out after %d ms", query.term, options.timeout_ms)
            return result(TIMEOUT, errors=errors + ["timeout"])
        except Exception as exc:
            self._log_failure(self.secondary, query, exc)
            errors.append(f"{self.secondary.name}: {exc}")
            return result(ERROR, errors=errors)

        if not self.is_current(generation):
            return None
        candidates = sort_for_display(dedupe(candidates))
        self.cache.set(query.cache_key, candidates)
        return result(SECONDARY, candidates, cached=True, errors=errors)

    async def _fetch(
        self,
        provider: SuggestionProvider,
        query: QueryDescriptor,
        options: EngineOptions,
        deadline: float,
    ) -> List[Candidate]:
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise asyncio.TimeoutError()
        records = await asyncio.wait_for(provider.suggest(query, options), remaining)
        return validate_all(
            records,
            query,
            options.geo_bounds,
            min_score=options.min_score,
            decimals=options.coordinate_decimals,
        )

    def _coordinate_candidate(self, query: QueryDescriptor, options: EngineOptions) -> Optional[Candidate]:
        lat, lon = query.coordinate.as_tuple()
        decimals = options.coordinate_decimals
        label = f"Coordinate ({format_coordinate(lat, decimals)}, {format_coordinate(lon, decimals)})"
        raw = {
            "type": COORDINATE_TYPE,
            "name": label,
            "label": label,
            "latitude": lat,
            "longitude": lon,
            "source": "latlon",
        }
        return validate(raw, query, options.geo_bounds, min_score=options.min_score, decimals=decimals)

    @staticmethod
    def _log_failure(provider: SuggestionProvider, query: QueryDescriptor, exc: Exception) -> None:
        if isinstance(exc, ProviderError):
            logger.warning("%s lookup failed for %r: %s", provider.name, query.term, exc)
        else:
            logger.warning("%s lookup raised for %r", provider.name, query.term, exc_info=exc)
