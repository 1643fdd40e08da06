import pytest
from pydantic import ValidationError

from featurelayer.features import FeatureRecord
from featurelayer.symbology.line_styles import DEFAULT_DASH_PATTERN, DASH_PATTERNS
from featurelayer.symbology.renderers import parse_renderer, parse_symbol
from featurelayer.symbology.resolver import resolve_symbol
from featurelayer.symbology.style import StyleDescriptor, build_style, style_features


def _feature(object_id, **attributes):
    return FeatureRecord(geometry=None, attributes={"OBJECTID": object_id, **attributes}, identifier=object_id)


def test_simple_marker_scenario():
    renderer = parse_renderer({
        "type": "simple",
        "symbol": {"type": "esriSMS", "color": [255, 0, 0, 255], "size": 8},
    })
    symbol = resolve_symbol(renderer, {"name": "anything"})

    style = build_style(symbol)

    assert symbol.color == [255, 0, 0, 255]
    assert style.point.pixel_size == pytest.approx(10.667, abs=1e-3)
    assert style.point.color.rgba == (1.0, 0.0, 0.0, 1.0)
    assert style.point.color.css == "rgba(255,0,0,1.0)"
    assert style.show_point


def test_marker_outline_is_converted_to_pixels():
    style = build_style(parse_symbol({
        "type": "esriSMS",
        "color": [0, 0, 255, 255],
        "size": 6,
        "outline": {"color": [0, 0, 0, 255], "width": 1.5},
    }))

    assert style.point.outline_color.rgba == (0.0, 0.0, 0.0, 1.0)
    assert style.point.outline_width == pytest.approx(2.0)


def test_marker_without_color_leaves_point_alone():
    style = build_style(parse_symbol({"type": "esriSMS", "size": 6}))

    assert style == StyleDescriptor()


def test_null_symbol_hides_everything():
    style = build_style(None)

    assert not style.show_point
    assert not style.show_polyline
    assert not style.show_polygon


def test_null_line_style_is_an_explicit_hide_signal():
    style = build_style(parse_symbol({
        "type": "esriSLS",
        "style": "esriSLSNull",
        "color": [10, 10, 10, 255],
        "width": 2,
    }))

    assert style.show_polyline is False
    assert style.polyline.color.rgba[0] == pytest.approx(10 / 255)


def test_line_defaults_to_white_and_applies_dash_pattern():
    style = build_style(parse_symbol({"type": "esriSLS", "style": "esriSLSDashDot", "width": 3}))

    assert style.show_polyline
    assert style.polyline.color.rgba == (1.0, 1.0, 1.0, 1.0)
    assert style.polyline.width == pytest.approx(4.0)
    assert style.polyline.dash_pattern == DASH_PATTERNS["esriSLSDashDot"]


@pytest.mark.parametrize(
    "line_style, expected",
    [("esriSLSSolid", None), ("esriSLSDash", DEFAULT_DASH_PATTERN), (None, None), ("esriSLSUnknown", None)],
)
def test_line_dash_patterns(line_style, expected):
    style = build_style(parse_symbol({"type": "esriSLS", "style": line_style, "color": [0, 0, 0, 255]}))

    assert style.polyline.dash_pattern == expected


def test_fill_with_transparent_interior_stays_pickable():
    style = build_style(parse_symbol({"type": "esriSFS", "style": "esriSFSSolid", "color": [0, 128, 0, 0]}))

    assert style.polygon.fill_color.rgba[3] == pytest.approx(1 / 255)
    assert style.show_polygon
    assert style.polyline is None


def test_fill_defaults_to_near_transparent_white():
    style = build_style(parse_symbol({"type": "esriSFS", "style": "esriSFSSolid"}))

    assert style.polygon.fill_color.rgba == pytest.approx((1.0, 1.0, 1.0, 1 / 255))


def test_fill_outline_builds_polyline():
    style = build_style(parse_symbol({
        "type": "esriSFS",
        "style": "esriSFSSolid",
        "color": [200, 200, 0, 128],
        "outline": {"type": "esriSLS", "style": "esriSLSShortDash", "color": [50, 50, 50, 255], "width": 0.75},
    }))

    assert style.polygon.outline_width == pytest.approx(1.0)
    assert style.polygon.outline_color.css == "rgba(50,50,50,1.0)"
    assert style.polyline.dash_pattern == DASH_PATTERNS["esriSLSShortDash"]
    assert style.show_polyline
    assert style.show_polygon


def test_fill_outline_defaults_to_black():
    style = build_style(parse_symbol({
        "type": "esriSFS",
        "color": [200, 200, 0, 128],
        "outline": {"type": "esriSLS", "style": "esriSLSSolid", "width": 1},
    }))

    assert style.polygon.outline_color.rgba == (0.0, 0.0, 0.0, 1.0)


def test_null_fill_with_null_outline_hides_polygon():
    style = build_style(parse_symbol({
        "type": "esriSFS",
        "style": "esriSFSNull",
        "color": [0, 0, 0, 0],
        "outline": {"type": "esriSLS", "style": "esriSLSNull", "color": [0, 0, 0, 255], "width": 1},
    }))

    assert style.show_polygon is False
    assert style.show_polyline is False


def test_null_fill_with_visible_outline_keeps_polygon():
    style = build_style(parse_symbol({
        "type": "esriSFS",
        "style": "esriSFSNull",
        "outline": {"type": "esriSLS", "style": "esriSLSSolid", "color": [0, 0, 0, 255], "width": 1},
    }))

    assert style.show_polygon
    assert style.show_polyline


def test_picture_marker_becomes_billboard():
    style = build_style(parse_symbol({
        "type": "esriPMS",
        "contentType": "image/png",
        "imageData": "AAAA",
        "width": 9,
        "height": 15,
        "angle": 45,
        "xoffset": 3,
        "yoffset": 0,
    }))

    assert style.show_point is False
    assert style.billboard.image == "data:image/png;base64,AAAA"
    assert style.billboard.width == pytest.approx(12.0)
    assert style.billboard.height == pytest.approx(20.0)
    assert style.billboard.rotation == 45
    assert style.billboard.pixel_offset == pytest.approx((4.0, 0.0))


def test_picture_marker_without_offsets():
    style = build_style(parse_symbol({"type": "esriPMS", "url": "https://example.com/p.png", "width": 3, "height": 3}))

    assert style.billboard.pixel_offset is None


def test_unsupported_symbol_builds_no_style():
    assert build_style(parse_symbol({"type": "esriTS"})) is None


def test_style_features_pairs_each_feature():
    renderer = parse_renderer({
        "type": "uniqueValue",
        "field1": "kind",
        "uniqueValueInfos": [
            {"value": "road", "symbol": {"type": "esriSLS", "style": "esriSLSSolid", "color": [1, 2, 3, 255], "width": 1}},
        ],
        "defaultSymbol": None,
    })
    features = [_feature(1, kind="road"), _feature(2, kind="track"), _feature(3, kind="road")]

    styled = style_features(renderer, features)

    assert [feature.identifier for feature, _ in styled] == [1, 2, 3]
    assert styled[0][1].show_polyline
    assert styled[1][1] == StyleDescriptor.hidden()
    assert styled[2][1] is styled[0][1]


def test_style_features_with_unsupported_renderer_leaves_features_unstyled():
    styled = style_features(parse_renderer({"type": "heatmap"}), [_feature(1), _feature(2)])

    assert [style for _, style in styled] == [None, None]


def test_shared_descriptors_are_frozen():
    renderer = parse_renderer({
        "type": "simple",
        "symbol": {"type": "esriSMS", "color": [255, 0, 0, 255], "size": 8},
    })
    styled = style_features(renderer, [_feature(1), _feature(2)])
    shared = styled[0][1]

    with pytest.raises(ValidationError):
        shared.show_point = False
    with pytest.raises(ValidationError):
        shared.point.pixel_size = 1.0

    assert styled[1][1].show_point
    assert styled[1][1].point.pixel_size == pytest.approx(8 * 4 / 3)
