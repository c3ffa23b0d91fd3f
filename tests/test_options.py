import logging

from location_suggest.options import EngineOptions, merge_options


def test_defaults():
    o = EngineOptions()
    assert o.include_tokens == ["gnis", "postal", "state"]
    assert o.max_suggestions == 50
    assert o.min_characters == 2
    assert o.debounce_ms == 250
    assert o.timeout_ms == 7000
    assert o.geo_bounds == (-90.0, -180.0, 90.0, 180.0)


def test_string_values_are_coerced():
    o = merge_options(
        None,
        {
            "maxSuggestions": "20",
            "minCharacters": "3",
            "secondary": "f",
            "minScore": "90",
            "bounds": "44.0,-94.0,45.5,-92.5",
        },
    )
    assert o.max_suggestions == 20
    assert o.min_characters == 3
    assert o.secondary is False
    assert o.min_score == 90.0
    assert o.bounds == (44.0, -94.0, 45.5, -92.5)


def test_nested_bounds_accepted():
    o = merge_options(None, {"bounds": [[44.0, -94.0], [45.5, -92.5]]})
    assert o.bounds == (44.0, -94.0, 45.5, -92.5)


def test_unrecognized_and_invalid_options_warn_and_are_skipped(caplog):
    caplog.set_level(logging.WARNING, logger="lsg.options")
    o = merge_options(
        None,
        {
            "colour": "blue",
            "states": "TX ZZ",
            "include": "gnis volcanoes",
            "bounds": [50, 0, 40, 10],
            "timeout_ms": "soon",
            "min_characters": 4,
        },
    )
    assert o.states is None
    assert o.include == "gnis postal state"
    assert o.bounds is None
    assert o.timeout_ms == 7000
    # valid updates still apply
    assert o.min_characters == 4
    assert "Unrecognized option 'colour'" in caplog.text
    assert "'states'" in caplog.text
    assert "'include'" in caplog.text
    assert "'bounds'" in caplog.text


def test_max_suggestions_capped(caplog):
    caplog.set_level(logging.WARNING, logger="lsg.options")
    assert merge_options(None, {"max_suggestions": 500}).max_suggestions == 200
    assert "capped" in caplog.text


def test_states_shortcut_and_codes_normalized():
    assert merge_options(None, {"states": "usgs"}).states == "USGS"
    assert merge_options(None, {"states": "tx, ok"}).states == "TX OK"


def test_non_mapping_updates_ignored(caplog):
    caplog.set_level(logging.WARNING, logger="lsg.options")
    base = EngineOptions(min_characters=5)
    assert merge_options(base, ["states", "TX"]) is base
    assert "mapping" in caplog.text
