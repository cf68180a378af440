import pytest

from bannerstamp.colors import normalize_color_value, parse_color
from bannerstamp.params import decompose_request_params, parse_bool, reconstruct_image_url


def test_defaults() -> None:
    request = decompose_request_params({})
    assert request.title == "Sample Title"
    assert request.theme_id == "default"
    assert (request.canvas_width, request.canvas_height) == (1080, 1350)
    assert request.website == ""
    assert request.line_color == "#FF8C00"
    assert len(request.highlight_colors) == 11
    assert request.border.enabled
    assert (request.border.color, request.border.width_px, request.border.inset_px) == ("#FFD700", 2, 10)
    assert request.badge is None and request.logo is None


def test_color_names_and_hex() -> None:
    request = decompose_request_params({"hl": "gold, electric-blue ,ff00ff", "wc": "cyan", "bc": "red"})
    assert request.highlight_colors == ("#FFD700", "#1E90FF", "#FF00FF")
    assert request.website_color_override == "#00FFFF"
    assert request.border.color == "#FF0000"
    assert normalize_color_value("Lime_Green") == "#00FF4C"
    assert normalize_color_value("", "#123456") == "#123456"


def test_highlight_palette_is_capped() -> None:
    request = decompose_request_params({"hl": ",".join(["red"] * 20)})
    assert len(request.highlight_colors) == 11


@pytest.mark.parametrize("value", ["false", "0", "no"])
def test_frame_can_be_disabled(value: str) -> None:
    assert not decompose_request_params({"sb": value}).border.enabled


def test_explicit_border_parameters() -> None:
    request = decompose_request_params({"borderEnabled": "true", "borderWidth": "12"})
    assert request.border.enabled
    assert (request.border.color, request.border.width_px, request.border.inset_px) == ("#000000", 12, 0)


def test_sizes_are_clamped() -> None:
    request = decompose_request_params({"w": "99999", "h": "abc", "titleFontSize": "2"})
    assert request.canvas_width == 4096
    assert request.canvas_height == 1350
    assert request.title_font_size == 8


def test_badge_logo_and_keywords() -> None:
    request = decompose_request_params(
        {
            "topText": "live now",
            "topTextPosition": "LEFT",
            "logoUrl": "logo.png",
            "logoPosition": "top-right",
            "keywords": "rocket, launch",
            "titleAlign": "sideways",
            "tbg": "red,gold",
        }
    )
    assert request.badge is not None and request.badge.text == "LIVE NOW"
    assert request.badge.position == "left"
    assert request.logo is not None and request.logo.position == "top-right"
    assert request.custom_keywords == frozenset({"ROCKET", "LAUNCH"})
    assert request.title_align == "center"
    assert request.title_background is not None
    assert request.title_background.colors == ("#FF0000", "#FFD700")


def test_badge_defaults_to_left() -> None:
    request = decompose_request_params({"topText": "live"})
    assert request.badge is not None
    assert (request.badge.position, request.badge.text, request.badge.font_size) == ("left", "LIVE", 28)


def test_list_values_use_first_item() -> None:
    request = decompose_request_params({"title": ["First", "Second"], "design": ["tech"]})
    assert request.title == "First"
    assert request.theme_id == "tech"


def test_invalid_format_rejected() -> None:
    with pytest.raises(ValueError):
        decompose_request_params({"format": "gif"})


def test_parse_bool() -> None:
    assert parse_bool("YES", False)
    assert not parse_bool("off", True)
    assert parse_bool("maybe", True)


def test_parse_color_forms() -> None:
    assert parse_color("rgba(0,0,0,0.5)") == (0, 0, 0, 128)
    assert parse_color("#FF0000") == (255, 0, 0, 255)
    assert parse_color("transparent") == (0, 0, 0, 0)
    assert parse_color("not-a-color", default=(1, 2, 3, 4)) == (1, 2, 3, 4)


def test_reconstruct_plain_image_url() -> None:
    url, extra = reconstruct_image_url("/api/overlay?title=Hi&image=https%3A%2F%2Fcdn.example.com%2Fa.jpg")
    assert url == "https://cdn.example.com/a.jpg"
    assert extra == {}


def test_reconstruct_image_url_with_split_query() -> None:
    raw = "/api/overlay?image=https://cdn.example.com/a.jpg?size=large&token=abc&title=Hello%20World&design=tech"
    url, extra = reconstruct_image_url(raw)
    # the first image query part is captured with the image value and re-appended from the split
    assert url == "https://cdn.example.com/a.jpg?size=large&size=large&token=abc"
    assert extra == {"title": "Hello World", "design": "tech"}

    request = decompose_request_params({"title": "Hello World", "token": "abc"}, raw_url=raw)
    assert request.image_url == url
    assert request.theme_id == "tech"


def test_reconstruct_without_image() -> None:
    assert reconstruct_image_url("/api/overlay?title=x") == (None, {})
