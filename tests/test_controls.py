import pytest

from image_crop_tool.controls import (
    aspect_key, build_output_spec, custom_ratio, normalize_ratio, parse_aspect,
    parse_dimension, parse_hex_color, parse_target_resolution, preset_ratios,
)
from image_crop_tool.models import OutputMode, Size


def test_normalize_ratio():
    assert normalize_ratio(21, 9) == (7, 3)
    assert aspect_key(32, 18) == "16:9"


def test_presets():
    ratios = preset_ratios()
    assert set(ratios) == {"1:1", "16:9", "9:16", "4:3", "3:4"}
    assert ratios["9:16"] == pytest.approx(0.5625)


def test_free_aspect():
    assert parse_aspect("free") is None


@pytest.mark.parametrize("selection, expected", [
    ("1:1", 1.0),
    ("16:9", 16 / 9),
    ("3:4", 0.75),
    ("1.5", 1.5),
    ("bogus", 1.0),
    ("0:5", 1.0),
])
def test_parse_aspect(selection, expected):
    assert parse_aspect(selection) == pytest.approx(expected)


@pytest.mark.parametrize("width, height, expected", [
    ("4", "3", 4 / 3),
    ("2.5", "1", 2.5),
    ("0", "3", 1.0),
    ("-2", "1", 1.0),
    ("abc", "3", 1.0),
    ("", "", 1.0),
    ("nan", "1", 1.0),
])
def test_custom_aspect(width, height, expected):
    assert parse_aspect("custom", width, height) == pytest.approx(expected)
    assert custom_ratio(width, height) == pytest.approx(expected)


@pytest.mark.parametrize("text, expected", [
    ("#abc", "#abc"),
    ("#A1B2C3", "#A1B2C3"),
    (" #000000 ", "#000000"),
    ("abc", "#ffffff"),
    ("#abcd", "#ffffff"),
    ("#ggg", "#ffffff"),
    ("", "#ffffff"),
])
def test_parse_hex_color(text, expected):
    assert parse_hex_color(text) == expected


@pytest.mark.parametrize("text, expected", [
    ("1920", 1920),
    ("720px", 720),
    (" 42", 42),
    ("abc", 1080),
    ("0", 1080),
    ("", 1080),
    (640, 640),
])
def test_parse_dimension(text, expected):
    assert parse_dimension(text, 1080) == expected


def test_parse_target_resolution():
    assert parse_target_resolution("abc", "720") == Size(1080, 720)
    assert parse_target_resolution("1920px", "0") == Size(1920, 1080)


def test_build_resolution_spec():
    spec = build_output_spec("resolution", "800", "600", True, "#000", 90)
    assert spec.mode is OutputMode.RESOLUTION
    assert spec.target_size == Size(800, 600)
    assert spec.extend_canvas
    assert spec.background_color == "#000"
    assert spec.rotation_degrees == 90


def test_build_aspect_spec_ignores_target():
    spec = build_output_spec("aspect", "800", "600", False, "red", 720)
    assert spec.mode is OutputMode.ASPECT
    assert spec.target_size is None
    assert spec.background_color == "#ffffff"
    assert spec.rotation_degrees == 360


def test_build_spec_rejects_unknown_mode():
    with pytest.raises(ValueError):
        build_output_spec("stretch")
