import pytest

from featurelayer.symbology.renderers import parse_renderer
from featurelayer.symbology.resolver import resolve_symbol, unique_value_key


def _line(r, g, b):
    return {"type": "esriSLS", "style": "esriSLSSolid", "color": [r, g, b, 255], "width": 1}


RED = _line(255, 0, 0)
GREEN = _line(0, 255, 0)
BLUE = _line(0, 0, 255)
GREY = _line(128, 128, 128)


@pytest.fixture
def unique_value_renderer():
    return parse_renderer({
        "type": "uniqueValue",
        "field1": "type",
        "field2": "status",
        "fieldDelimiter": "_",
        "uniqueValueInfos": [
            {"value": "A_open", "symbol": RED},
            {"value": "A", "symbol": GREEN},
            {"value": "B_closed", "symbol": None},
        ],
        "defaultSymbol": GREY,
    })


@pytest.fixture
def class_breaks_renderer():
    return parse_renderer({
        "type": "classBreaks",
        "field": "depth",
        "classBreakInfos": [
            {"classMaxValue": 10, "symbol": RED},
            {"classMaxValue": 20, "symbol": GREEN},
        ],
        "defaultSymbol": GREY,
    })


def test_simple_renderer_ignores_attributes():
    renderer = parse_renderer({
        "type": "simple",
        "symbol": {"type": "esriSMS", "color": [255, 0, 0, 255], "size": 8},
    })

    assert resolve_symbol(renderer, {"anything": 1}) is renderer.symbol
    assert resolve_symbol(renderer, {}) is renderer.symbol
    assert resolve_symbol(renderer, None) is renderer.symbol


def test_simple_renderer_with_null_symbol_resolves_to_none():
    renderer = parse_renderer({"type": "simple", "symbol": None})

    assert resolve_symbol(renderer, {"a": 1}) is None


def test_unique_value_composite_key(unique_value_renderer):
    symbol = resolve_symbol(unique_value_renderer, {"type": "A", "status": "open"})

    assert symbol is unique_value_renderer.uniqueValueInfos[0].symbol


@pytest.mark.parametrize("attributes", [{"type": "A"}, {"type": "A", "status": None}, {"type": "A", "status": ""}])
def test_unique_value_uses_first_field_when_second_is_empty(unique_value_renderer, attributes):
    symbol = resolve_symbol(unique_value_renderer, attributes)

    assert symbol is unique_value_renderer.uniqueValueInfos[1].symbol


def test_unique_value_without_match_uses_default(unique_value_renderer):
    assert resolve_symbol(unique_value_renderer, {"type": "C", "status": "open"}) is unique_value_renderer.defaultSymbol


def test_unique_value_without_attributes_uses_default(unique_value_renderer):
    assert resolve_symbol(unique_value_renderer, None) is unique_value_renderer.defaultSymbol


def test_unique_value_missing_first_field_uses_default(unique_value_renderer):
    assert resolve_symbol(unique_value_renderer, {"status": "open"}) is unique_value_renderer.defaultSymbol


def test_unique_value_case_with_null_symbol_uses_default(unique_value_renderer):
    assert resolve_symbol(unique_value_renderer, {"type": "B", "status": "closed"}) is unique_value_renderer.defaultSymbol


def test_unique_value_first_match_wins():
    renderer = parse_renderer({
        "type": "uniqueValue",
        "field1": "kind",
        "uniqueValueInfos": [
            {"value": "x", "symbol": RED},
            {"value": "x", "symbol": BLUE},
        ],
        "defaultSymbol": None,
    })

    assert resolve_symbol(renderer, {"kind": "x"}) is renderer.uniqueValueInfos[0].symbol


def test_unique_value_three_fields():
    renderer = parse_renderer({
        "type": "uniqueValue",
        "field1": "a",
        "field2": "b",
        "field3": "c",
        "fieldDelimiter": ",",
        "uniqueValueInfos": [{"value": "1,2,3", "symbol": BLUE}],
        "defaultSymbol": None,
    })

    assert unique_value_key(renderer, {"a": 1, "b": 2, "c": 3}) == "1,2,3"
    assert resolve_symbol(renderer, {"a": 1, "b": 2, "c": 3}) is renderer.uniqueValueInfos[0].symbol
    assert unique_value_key(renderer, {"a": 1, "b": 2}) == "1,2"
    # field3 is only considered once field2 contributed
    assert unique_value_key(renderer, {"a": 1, "c": 3}) == "1"


def test_unique_value_ignores_second_field_without_delimiter():
    renderer = parse_renderer({
        "type": "uniqueValue",
        "field1": "a",
        "field2": "b",
        "uniqueValueInfos": [{"value": "1", "symbol": BLUE}],
    })

    assert unique_value_key(renderer, {"a": 1, "b": 2}) == "1"


def test_unique_value_matches_numeric_attributes():
    renderer = parse_renderer({
        "type": "uniqueValue",
        "field1": "class",
        "uniqueValueInfos": [{"value": 4, "symbol": RED}],
    })

    assert resolve_symbol(renderer, {"class": 4}) is renderer.uniqueValueInfos[0].symbol
    assert resolve_symbol(renderer, {"class": 4.0}) is renderer.uniqueValueInfos[0].symbol


def test_class_breaks_upper_bound_is_inclusive(class_breaks_renderer):
    first, second = class_breaks_renderer.classBreakInfos

    assert resolve_symbol(class_breaks_renderer, {"depth": 10}) is first.symbol
    assert resolve_symbol(class_breaks_renderer, {"depth": 10.5}) is second.symbol
    assert resolve_symbol(class_breaks_renderer, {"depth": 20}) is second.symbol
    assert resolve_symbol(class_breaks_renderer, {"depth": 20.0001}) is class_breaks_renderer.defaultSymbol


def test_class_breaks_below_first_break(class_breaks_renderer):
    assert resolve_symbol(class_breaks_renderer, {"depth": -100}) is class_breaks_renderer.classBreakInfos[0].symbol


def test_class_breaks_coerces_numeric_strings(class_breaks_renderer):
    assert resolve_symbol(class_breaks_renderer, {"depth": "15"}) is class_breaks_renderer.classBreakInfos[1].symbol


@pytest.mark.parametrize("attributes", [None, {}, {"depth": None}, {"depth": "deep"}, {"depth": True}, {"depth": float("nan")}])
def test_class_breaks_bad_values_use_default(class_breaks_renderer, attributes):
    assert resolve_symbol(class_breaks_renderer, attributes) is class_breaks_renderer.defaultSymbol


def test_class_breaks_scan_in_given_order():
    renderer = parse_renderer({
        "type": "classBreaks",
        "field": "v",
        "classBreakInfos": [
            {"classMaxValue": 20, "symbol": GREEN},
            {"classMaxValue": 10, "symbol": RED},
        ],
        "defaultSymbol": None,
    })

    assert resolve_symbol(renderer, {"v": 5}) is renderer.classBreakInfos[0].symbol


def test_class_breaks_ignore_min_value():
    renderer = parse_renderer({
        "type": "classBreaks",
        "field": "v",
        "classBreakInfos": [{"classMinValue": 100, "classMaxValue": 200, "symbol": GREEN}],
        "defaultSymbol": None,
    })

    assert resolve_symbol(renderer, {"v": 5}) is renderer.classBreakInfos[0].symbol


def test_unsupported_renderer_resolves_nothing():
    renderer = parse_renderer({"type": "heatmap"})

    assert resolve_symbol(renderer, {"a": 1}) is None
    assert not renderer.applies_style
