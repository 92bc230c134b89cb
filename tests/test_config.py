"""Tests for configuration normalization."""

import logging

import pytest

from gh_snake_overlay.config import (
    Computed,
    ConfigError,
    DisplayConfigError,
    Fixed,
    normalize_config,
    resolve_table,
    validate_image_config,
)
from gh_snake_overlay.constants import DEFAULT_SNAKE_BODY_CONTENT, DEFAULT_SNAKE_HEAD_CONTENT
from gh_snake_overlay.palettes import resolve_palette


def test_defaults():
    """An empty configuration should use the light palette and default geometry."""
    config = normalize_config()

    assert config.cell_size == 16
    assert config.dot_size == 12
    assert config.frame_duration_ms == 100
    assert config.colors == resolve_palette("github-light")
    assert config.dark_colors is None
    assert config.snake_colors == Fixed(("#a855f7",))
    assert config.show_progress_bar is True
    assert config.displays == ()


def test_dot_larger_than_cell_is_rejected():
    """The dot must fit inside its cell."""
    with pytest.raises(ConfigError, match="cannot exceed"):
        normalize_config({"cellSizePx": 10, "dotSizePx": 12})


@pytest.mark.parametrize(
    "raw",
    [
        {"palette": "neon"},
        {"colorShiftMode": "sometimes"},
        {"progressBarMode": "random"},
        {"animationFrameDurationMs": 0},
        {"colorByLevel": []},
        {"snakeSegmentColors": 5},
    ],
)
def test_invalid_global_options_raise(raw):
    """Malformed global options should fail the whole configuration."""
    with pytest.raises(ConfigError):
        normalize_config(raw)


def test_progress_mode_alias():
    """The action's "contribution" progress mode should mean weighted."""
    assert normalize_config({"progressBarMode": "contribution"}).progress_bar_mode == "weighted"


def test_dark_colors_use_dark_palette():
    """Dark color options should start from the dark palette."""
    config = normalize_config({"darkColorEmpty": "#000000", "darkPalette": "github-dark"})

    assert config.dark_colors is not None
    assert config.dark_colors.empty == "#000000"
    assert config.dark_colors.levels == resolve_palette("github-dark").levels


def test_broken_display_is_dropped_alone(caplog):
    """A failing display should be reported while the others survive."""
    raw = {
        "counterConfig": {
            "displays": [
                {"position": "sideways"},
                {"position": "top-right", "fontSize": 14},
            ]
        }
    }

    with caplog.at_level(logging.ERROR):
        config = normalize_config(raw)

    assert len(config.displays) == 1
    assert config.displays[0].index == 1
    assert config.displays[0].position == "fixed-right"
    assert config.displays[0].font_size == 14
    assert len(config.display_errors) == 1
    assert config.display_errors[0].display_index == 0
    assert "Skipping invalid counter display" in caplog.text


def test_use_custom_snake_computes_content():
    """useCustomSnake should give the head and body their default content."""
    config = normalize_config({"useCustomSnake": True})

    assert isinstance(config.snake_content, Computed)
    assert resolve_table(config.snake_content, 3, "") == (
        DEFAULT_SNAKE_HEAD_CONTENT,
        DEFAULT_SNAKE_BODY_CONTENT,
        DEFAULT_SNAKE_BODY_CONTENT,
    )


def test_resolve_table_repeats_last_entry():
    """A short fixed list should repeat its last value; an empty one uses the default."""
    assert resolve_table(Fixed(("a", "b")), 4, "z") == ("a", "b", "b", "b")
    assert resolve_table(Fixed(()), 2, "z") == ("z", "z")
    assert resolve_table(Fixed(("a",)), 0, "z") == ()


def test_resolve_table_calls_function_per_index():
    """A computed source should receive the index and the total."""
    assert resolve_table(Computed(lambda i, n: f"{i}/{n}"), 2, "") == ("0/2", "1/2")


class TestImageConfig:
    """Tests for per-image validation."""

    def test_url_and_folder_are_exclusive(self):
        """An image cannot name both a single file and a folder."""
        with pytest.raises(DisplayConfigError, match="cannot have both"):
            validate_image_config({"url": "a.png", "urlFolder": "frames"})

    def test_folder_needs_frame_count(self):
        """A frame folder is useless without a frame count."""
        with pytest.raises(DisplayConfigError, match="requires \"framesPerLevel\""):
            validate_image_config({"urlFolder": "frames"})

    def test_frame_list_must_match_levels(self):
        """A per-level frame list must have one entry per contribution level."""
        with pytest.raises(DisplayConfigError, match="3 entries"):
            validate_image_config(
                {"urlFolder": "frames", "framesPerLevel": [1, 2, 3], "animationMode": "level-bucketed"}
            )

    def test_two_wildcards_are_rejected(self):
        """Frame patterns may hold at most one wildcard."""
        with pytest.raises(DisplayConfigError, match="more than one"):
            validate_image_config(
                {
                    "urlFolder": "frames",
                    "framesPerLevel": 2,
                    "animationMode": "level-bucketed",
                    "framePattern": "*-Lx-*.png",
                }
            )

    def test_mode_is_inferred(self):
        """Image mode should follow from url, folder and frame count."""
        assert validate_image_config({"url": "a.png"}).mode == "single"
        assert validate_image_config({"url": "a.png", "framesPerLevel": 4}).mode == "sprite-sheet"
        assert validate_image_config({"urlFolder": "f", "framesPerLevel": 4}).mode == "multi-file"

    def test_sprite_options_are_read_from_nested_block(self):
        """Options nested under "sprite" should apply, with animation aliases."""
        image = validate_image_config(
            {"url": "a.png", "sprite": {"frames": 6, "mode": "loop", "fps": 12, "layout": "vertical"}}
        )

        assert image.frames_in(0) == 6
        assert image.animation_mode == "independent-loop"
        assert image.layout == "vertical"
        assert image.loop_frame_ms == pytest.approx(1000 / 12)

    def test_loop_duration_is_split_across_frames(self):
        """loopDurationMs should be spread evenly over the frames."""
        image = validate_image_config({"url": "a.png", "framesPerLevel": 4, "loopDurationMs": 800})

        assert image.loop_frame_ms == pytest.approx(200)

    def test_size_defaults_to_font_size(self):
        """Without explicit size the image should match the text height."""
        image = validate_image_config({"url": "a.png"}, font_size=14)

        assert (image.width, image.height) == (14, 14)

    def test_error_names_display_and_image(self):
        """Image errors should say which display and image failed."""
        with pytest.raises(DisplayConfigError) as exc_info:
            validate_image_config({}, display_index=2, image_index=1)

        assert str(exc_info.value).startswith("Counter display 2: image 1:")
        assert exc_info.value.display_index == 2
