from location_suggest.normalize import normalize, normalize_term
from location_suggest.options import EngineOptions
from location_suggest.states import ALL


def test_normalize_term_cleans_and_expands_saint():
    assert normalize_term("  st. paul,   mn! ") == "ST. PAUL MN"
    assert normalize_term("St Louis") == "SAINT LOUIS"
    assert normalize_term("main st") == "MAIN ST"
    assert normalize_term("mill* creek") == "MILL* CREEK"
    assert normalize_term(None) == ""


def test_trailing_state_code_becomes_filter():
    q = normalize("austin tx", EngineOptions())
    assert q.term == "AUSTIN"
    assert q.state_filter == frozenset(["TX"])
    assert q.cache_key == "AUSTIN|TX"


def test_single_token_state_is_a_term():
    q = normalize("tx", EngineOptions())
    assert q.term == "TX"
    assert q.state_filter == ALL
    assert q.cache_key == "TX|ALL"


def test_state_outside_configured_set_stays_in_term():
    q = normalize("austin tx", EngineOptions(states="MN WI"))
    assert q.term == "AUSTIN TX"
    assert q.state_filter == frozenset(["MN", "WI"])
    assert q.cache_key == "AUSTIN TX|MN,WI"


def test_shortcut_states_expand():
    q = normalize("juneau", EngineOptions(states="48"))
    assert "AK" not in q.state_filter
    assert "TX" in q.state_filter
    assert not q.allows_state("HI")


def test_all_shortcut_is_unrestricted():
    q = normalize("juneau", EngineOptions(states="all"))
    assert q.state_filter == ALL
    assert q.allows_state("AK")


def test_coordinate_detected_on_normalized_tokens():
    q = normalize("44.96, -93.24", EngineOptions())
    assert q.coordinate is not None
    assert q.coordinate.as_tuple() == (44.96, -93.24)


def test_text_has_no_coordinate():
    assert normalize("minneapolis", EngineOptions()).coordinate is None
