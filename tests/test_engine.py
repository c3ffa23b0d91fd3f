import asyncio
import logging

from location_suggest.engine import ResolutionEngine


MINNEAPOLIS = {
    "type": "Populated Place",
    "name": "Minneapolis",
    "county": "Hennepin",
    "state": "MN",
    "latitude": 44.979965,
    "longitude": -93.263836,
    "source": "gnis",
}
MINNETONKA = dict(MINNEAPOLIS, name="Minnetonka", latitude=44.913297, longitude=-93.503290)


class _ProviderStub:
    def __init__(self, responses=None, delay=0.0):
        self.name = "stub"
        self.responses = responses or {}
        self.delay = delay
        self.calls = []
        self.closed = False

    async def suggest(self, query, options):
        self.calls.append(query.term)
        if self.delay:
            await asyncio.sleep(self.delay)
        return [dict(r) for r in self.responses.get(query.term, [])]

    async def aclose(self):
        self.closed = True


def _engine(primary=None, **options):
    options.setdefault("debounce_ms", 0)
    primary = primary or _ProviderStub({"MINN": [MINNEAPOLIS, MINNETONKA], "MINNEAPOLIS": [MINNEAPOLIS]})
    return ResolutionEngine("engine-test", options, primary=primary)


def test_suggestions_are_a_feature_collection():
    engine = _engine()
    asyncio.run(engine.resolve("minn"))
    fc = engine.get_suggestions()
    assert fc["type"] == "FeatureCollection"
    assert [f["properties"]["name"] for f in fc["features"]] == ["Minneapolis", "Minnetonka"]
    assert fc["features"][0]["geometry"] == {"type": "Point", "coordinates": [-93.263836, 44.979965]}


def test_select_by_index_fires_on_select():
    selected = []
    engine = _engine(on_select=lambda e: selected.append(e.selected.name))
    asyncio.run(engine.resolve("minn"))

    assert engine.select(1).name == "Minnetonka"
    assert selected == ["Minnetonka"]
    feature = engine.get_selected()
    assert feature["properties"]["name"] == "Minnetonka"
    assert feature["properties"]["bounds"] == [[44.913296, -93.503291], [44.913298, -93.503289]]


def test_select_candidate_object():
    engine = _engine()
    asyncio.run(engine.resolve("minn"))
    candidate = engine.candidates[0]
    assert engine.select(candidate) is candidate
    assert engine.selected is candidate


def test_bad_index_is_logged_and_ignored(caplog):
    caplog.set_level(logging.WARNING, logger="lsg.engine")
    selected = []
    engine = _engine(on_select=lambda e: selected.append(e))
    asyncio.run(engine.resolve("minn"))
    assert engine.select(5) is None
    assert engine.select(True) is None
    assert selected == []
    assert engine.get_selected() is None
    assert "out of range" in caplog.text


def test_on_suggest_only_when_content_changes():
    counts = []
    engine = _engine(on_suggest=lambda e: counts.append(len(e.candidates)))

    async def scenario():
        await engine.resolve("minn")
        await engine.resolve("minn")
        await engine.resolve("minneapolis")

    asyncio.run(scenario())
    assert counts == [2, 1]


def test_invalidate_cancels_inflight_and_clears():
    primary = _ProviderStub({"MINN": [MINNEAPOLIS]}, delay=0.05)
    engine = _engine(primary)

    async def scenario():
        await engine.resolve("minn")
        pending = asyncio.ensure_future(engine.resolve("minneapolis"))
        await asyncio.sleep(0.01)
        engine.invalidate()
        await pending

    asyncio.run(scenario())
    assert engine.candidates == ()
    assert len(engine.cache) == 0


def test_set_options_clears_cache_suggestions_and_selection():
    engine = _engine()
    asyncio.run(engine.resolve("minn"))
    engine.select(0)

    options = engine.set_options({"maxSuggestions": "10"}, states="mn")
    assert options.max_suggestions == 10
    assert options.states == "MN"
    assert engine.candidates == ()
    assert engine.selected is None
    assert len(engine.cache) == 0


def test_callback_errors_do_not_break_engine(caplog):
    def boom(engine):
        raise RuntimeError("listener failed")

    caplog.set_level(logging.ERROR, logger="lsg.engine")
    engine = _engine(on_suggest=boom, on_select=boom)
    asyncio.run(engine.resolve("minn"))
    assert len(engine.candidates) == 2
    assert engine.select(0) is not None
    assert "callback failed" in caplog.text


def test_trigger_fires_named_callbacks(caplog):
    fired = []
    engine = _engine(
        on_select=lambda e: fired.append("select"),
        on_suggest=lambda e: fired.append("suggest"),
    )
    engine.trigger("select suggest")
    engine.trigger(["on_suggest"])
    caplog.set_level(logging.WARNING, logger="lsg.engine")
    engine.trigger("explode")
    assert fired == ["select", "suggest", "suggest"]
    assert "unknown event" in caplog.text


def test_aclose_closes_providers():
    primary = _ProviderStub()
    engine = _engine(primary)
    asyncio.run(engine.aclose())
    assert primary.closed
