"""Configuration normalization and validation.

Raw configuration arrives as a nested mapping using the camelCase option
names of the GitHub Action this compiler serves. :func:`normalize_config`
is the only place that reads that mapping; every later stage consumes the
frozen dataclasses defined here.
"""

import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .assets.frame_urls import FramePatternError, validate_frame_pattern
from .constants import (
    DEFAULT_CELL_SIZE,
    DEFAULT_CONTRIBUTION_LEVELS,
    DEFAULT_COUNTER_COLOR,
    DEFAULT_DOT_BORDER_RADIUS,
    DEFAULT_DOT_SIZE,
    DEFAULT_FRAME_DURATION_MS,
    DEFAULT_FRAME_PATTERN,
    DEFAULT_LEVEL_FRAME_PATTERN,
    DEFAULT_SNAKE_BODY_CONTENT,
    DEFAULT_SNAKE_HEAD_CONTENT,
    DEFAULT_SNAKE_LENGTH,
)
from .palettes import DEFAULT_PALETTE_NAME, ColorScheme, resolve_palette
from .timeline.counter_sampler import normalize_position

T = TypeVar("T")


class ConfigError(ValueError):
    """Raised for contradictory, incomplete or malformed configuration."""


class DisplayConfigError(ConfigError):
    """A configuration problem confined to one counter display."""

    def __init__(self, display_index: int, message: str):
        super().__init__(f"Counter display {display_index}: {message}")
        self.display_index = display_index
        self.reason = message


@dataclass(frozen=True)
class Fixed(Generic[T]):
    values: tuple[T, ...]


@dataclass(frozen=True)
class Computed(Generic[T]):
    fn: Callable[[int, int], T]


ValueSource = Fixed[T] | Computed[T]


def resolve_table(source: ValueSource[T], total: int, default: T) -> tuple[T, ...]:
    """
    Flatten a fixed list or a per-index callback into ``total`` entries.

    A fixed list shorter than ``total`` repeats its last entry; an empty one
    yields ``default`` everywhere.
    """
    if total <= 0:
        return ()
    if isinstance(source, Computed):
        return tuple(source.fn(index, total) for index in range(total))
    values = source.values
    if not values:
        return (default,) * total
    return tuple(values[min(index, len(values) - 1)] for index in range(total))


ANIMATION_MODES = ("synced-to-steps", "independent-loop", "level-bucketed")
IMAGE_MODES = ("single", "sprite-sheet", "multi-file")
SPRITE_LAYOUTS = ("horizontal", "vertical", "auto")
COLOR_SHIFT_MODES = ("none", "every-step", "on-eat")
PROGRESS_BAR_MODES = ("weighted", "uniform")
SNAKE_CONTENT_TYPES = ("emoji", "text", "image")

_ANIMATION_MODE_ALIASES = {
    "sync": "synced-to-steps",
    "loop": "independent-loop",
    "contribution-level": "level-bucketed",
}
_PROGRESS_BAR_MODE_ALIASES = {"contribution": "weighted"}


@dataclass(frozen=True)
class ImageConfig:
    mode: str
    url: str | None
    url_folder: str | None
    frame_pattern: str
    frames_per_level: tuple[float, ...]
    contribution_levels: int
    animation_mode: str
    animation_speed: float
    dynamic_speed: bool
    loop_frame_ms: float
    sprite_per_level: bool
    width: float
    height: float
    frame_width: float | None
    frame_height: float | None
    layout: str
    anchor_x: float
    anchor_y: float
    text_anchor_y: float
    spacing: float

    @property
    def level_count(self) -> int:
        return len(self.frames_per_level)

    def frames_in(self, level: int) -> int:
        if not 0 <= level < len(self.frames_per_level):
            return 0
        frames = self.frames_per_level[level]
        if not math.isfinite(frames) or frames <= 0:
            return 0
        return int(frames)


@dataclass(frozen=True)
class CounterDisplay:
    index: int
    position: str
    prefix: str
    suffix: str
    show_count: bool
    show_percentage: bool
    font_size: float
    font_family: str
    color: str
    font_weight: str
    font_style: str
    images: tuple[ImageConfig, ...]


@dataclass(frozen=True)
class OverlayConfig:
    cell_size: float = DEFAULT_CELL_SIZE
    dot_size: float = DEFAULT_DOT_SIZE
    dot_border_radius: float = DEFAULT_DOT_BORDER_RADIUS
    colors: ColorScheme = field(default_factory=lambda: resolve_palette(DEFAULT_PALETTE_NAME))
    dark_colors: ColorScheme | None = None
    frame_duration_ms: float = DEFAULT_FRAME_DURATION_MS
    snake_length: int = DEFAULT_SNAKE_LENGTH
    snake_colors: ValueSource[str] = Fixed(())
    color_shift_mode: str = "none"
    snake_content: ValueSource[str] | None = None
    snake_content_type: str = "emoji"
    show_progress_bar: bool = True
    progress_bar_mode: str = "weighted"
    displays: tuple[CounterDisplay, ...] = ()
    display_errors: tuple[DisplayConfigError, ...] = ()


def normalize_config(
    raw: Mapping[str, Any] | None = None,
    *,
    logger: logging.Logger | None = None,
) -> OverlayConfig:
    """
    Validate raw options and resolve them into an :class:`OverlayConfig`.

    Errors in global options raise :class:`ConfigError`. A broken counter
    display is dropped on its own: its :class:`DisplayConfigError` is logged
    and recorded in ``display_errors`` while the other displays survive.
    """
    log = logger or logging.getLogger(__name__)
    options = dict(raw or {})

    cell_size = _positive_number(options, "cellSizePx", DEFAULT_CELL_SIZE)
    dot_size = _positive_number(options, "dotSizePx", DEFAULT_DOT_SIZE)
    if dot_size > cell_size:
        raise ConfigError(f"dotSizePx ({dot_size}) cannot exceed cellSizePx ({cell_size})")
    border_radius = _non_negative_number(options, "dotBorderRadiusPx", DEFAULT_DOT_BORDER_RADIUS)

    colors = _color_scheme(options, prefix="")
    dark_colors = None
    if "darkColorByLevel" in options or "darkPalette" in options:
        dark_colors = _color_scheme(options, prefix="dark")

    frame_duration = _positive_number(options, "animationFrameDurationMs", DEFAULT_FRAME_DURATION_MS)
    snake_length = int(_positive_number(options, "snakeLength", DEFAULT_SNAKE_LENGTH))

    color_shift_mode = _choice(options, "colorShiftMode", "none", COLOR_SHIFT_MODES)
    content_type = _choice(options, "snakeContentType", "emoji", SNAKE_CONTENT_TYPES)
    progress_mode = _choice(
        options,
        "progressBarMode",
        "weighted",
        PROGRESS_BAR_MODES,
        aliases=_PROGRESS_BAR_MODE_ALIASES,
    )

    snake_colors = _value_source(options.get("snakeSegmentColors"), "snakeSegmentColors")
    if snake_colors is None:
        snake_colors = Fixed((colors.snake,))
    snake_content = _value_source(options.get("snakeContent"), "snakeContent")
    if snake_content is None and options.get("useCustomSnake"):
        snake_content = Computed(_default_snake_content)

    displays: list[CounterDisplay] = []
    errors: list[DisplayConfigError] = []
    counter_config = options.get("counterConfig") or {}
    if not isinstance(counter_config, Mapping):
        raise ConfigError("counterConfig must be an object")
    raw_displays = counter_config.get("displays") or []
    if not isinstance(raw_displays, Sequence) or isinstance(raw_displays, str):
        raise ConfigError("counterConfig.displays must be a list")

    for index, raw_display in enumerate(raw_displays):
        try:
            displays.append(_normalize_display(index, raw_display, dot_size))
        except DisplayConfigError as exc:
            log.error("Skipping invalid counter display: %s", exc)
            errors.append(exc)

    return OverlayConfig(
        cell_size=cell_size,
        dot_size=dot_size,
        dot_border_radius=border_radius,
        colors=colors,
        dark_colors=dark_colors,
        frame_duration_ms=frame_duration,
        snake_length=snake_length,
        snake_colors=snake_colors,
        color_shift_mode=color_shift_mode,
        snake_content=snake_content,
        snake_content_type=content_type,
        show_progress_bar=bool(options.get("showProgressBar", True)),
        progress_bar_mode=progress_mode,
        displays=tuple(displays),
        display_errors=tuple(errors),
    )


def _default_snake_content(index: int, total: int) -> str:
    return DEFAULT_SNAKE_HEAD_CONTENT if index == 0 else DEFAULT_SNAKE_BODY_CONTENT


def _normalize_display(index: int, raw: Any, dot_size: float) -> CounterDisplay:
    if not isinstance(raw, Mapping):
        raise DisplayConfigError(index, "display must be an object")

    try:
        position = normalize_position(str(raw.get("position", "fixed-left")))
    except ValueError as exc:
        raise DisplayConfigError(index, str(exc)) from exc

    font_size = _display_number(index, raw, "fontSizePx", dot_size, alias="fontSize")
    raw_images = raw.get("images") or []
    if not isinstance(raw_images, Sequence) or isinstance(raw_images, str):
        raise DisplayConfigError(index, "images must be a list")

    images = tuple(
        _normalize_image(index, image_index, raw_image, font_size)
        for image_index, raw_image in enumerate(raw_images)
    )

    return CounterDisplay(
        index=index,
        position=position,
        prefix=str(raw.get("prefix", "")),
        suffix=str(raw.get("suffix", "")),
        show_count=bool(raw.get("showCount", True)),
        show_percentage=bool(raw.get("showPercentage", False)),
        font_size=font_size,
        font_family=str(raw.get("fontFamily", "monospace")),
        color=str(raw.get("color", DEFAULT_COUNTER_COLOR)),
        font_weight=str(raw.get("fontWeight", "normal")),
        font_style=str(raw.get("fontStyle", "normal")),
        images=images,
    )


def _normalize_image(
    display_index: int,
    image_index: int,
    raw: Any,
    font_size: float,
) -> ImageConfig:
    def fail(message: str) -> DisplayConfigError:
        return DisplayConfigError(display_index, f"image {image_index}: {message}")

    if not isinstance(raw, Mapping):
        raise fail("image must be an object")

    # The action nests sprite options under "sprite"; flat keys win.
    sprite = raw.get("sprite") or {}
    if not isinstance(sprite, Mapping):
        raise fail("sprite must be an object")
    options = {**sprite, **raw}

    url = options.get("url") or None
    url_folder = options.get("urlFolder") or None
    if url and url_folder:
        raise fail('cannot have both "url" and "urlFolder"')
    if not url and not url_folder:
        raise fail('needs either "url" or "urlFolder"')

    raw_frames = options.get("framesPerLevel", options.get("frames"))
    if url_folder and raw_frames is None:
        raise fail('"urlFolder" requires "framesPerLevel"')

    animation_mode = _animation_mode(raw, sprite)
    if animation_mode not in ANIMATION_MODES:
        raise fail(f"unsupported animationMode '{animation_mode}'")

    levels = options.get("contributionLevels", DEFAULT_CONTRIBUTION_LEVELS)
    if isinstance(levels, bool) or not isinstance(levels, int) or levels < 1:
        raise fail("contributionLevels must be a positive integer")

    if animation_mode == "level-bucketed" and not url_folder:
        raise fail('level-bucketed animation requires "urlFolder"')
    frames_per_level = _frames_table(raw_frames, animation_mode, levels, fail)

    explicit_mode = raw.get("mode")
    if explicit_mode in IMAGE_MODES:
        mode = str(explicit_mode)
    else:
        mode = resolve_image_mode(url=url, url_folder=url_folder, frames=max(frames_per_level))
    if mode == "multi-file" and not url_folder:
        raise fail('multi-file mode requires "urlFolder"')
    if mode in ("single", "sprite-sheet") and not url:
        raise fail(f'{mode} mode requires "url"')

    default_pattern = DEFAULT_LEVEL_FRAME_PATTERN if animation_mode == "level-bucketed" else DEFAULT_FRAME_PATTERN
    frame_pattern = str(options.get("framePattern") or default_pattern)
    try:
        validate_frame_pattern(frame_pattern)
    except FramePatternError as exc:
        raise fail(str(exc)) from exc

    layout = str(options.get("layout", "horizontal"))
    if layout not in SPRITE_LAYOUTS:
        raise fail(f"unsupported layout '{layout}'")

    width = _image_number(options, "width", font_size, fail)
    height = _image_number(options, "height", font_size, fail)
    speed = _image_number(options, "animationSpeed", 1.0, fail)

    return ImageConfig(
        mode=mode,
        url=url,
        url_folder=url_folder,
        frame_pattern=frame_pattern,
        frames_per_level=frames_per_level,
        contribution_levels=levels,
        animation_mode=animation_mode,
        animation_speed=speed,
        dynamic_speed=bool(options.get("dynamicSpeed", False)),
        loop_frame_ms=_loop_frame_ms(options, max(frames_per_level), fail),
        sprite_per_level=bool(options.get("useSpriteSheetPerLevel", False)),
        width=width,
        height=height,
        frame_width=_optional_image_number(options, "frameWidth", fail),
        frame_height=_optional_image_number(options, "frameHeight", fail),
        layout=layout,
        anchor_x=_image_float(options, "anchorX", 0.0, fail),
        anchor_y=_image_float(options, "anchorY", 0.5, fail),
        text_anchor_y=_image_float(options, "textAnchorY", 0.5, fail),
        spacing=_image_float(options, "spacing", 0.0, fail),
    )


def _animation_mode(raw: Mapping[str, Any], sprite: Mapping[str, Any]) -> str:
    # "mode" names the image mode at the top level but the animation mode
    # inside "sprite"; only the latter's values are animation modes.
    value = raw.get("animationMode") or sprite.get("animationMode")
    if value is None:
        for candidate in (sprite.get("mode"), raw.get("mode")):
            if candidate is not None and candidate not in IMAGE_MODES:
                value = candidate
                break
    text = str(value or "synced-to-steps")
    return _ANIMATION_MODE_ALIASES.get(text, text)


def resolve_image_mode(*, url: str | None, url_folder: str | None, frames: float) -> str:
    """Infer the image mode when the configuration does not name one."""
    if url_folder:
        return "multi-file"
    if url and frames > 1:
        return "sprite-sheet"
    return "single"


def _frames_table(
    raw: Any,
    animation_mode: str,
    levels: int,
    fail: Callable[[str], DisplayConfigError],
) -> tuple[float, ...]:
    if raw is None:
        raw = 1
    if isinstance(raw, bool):
        raise fail("framesPerLevel must be a number or a list of numbers")
    if isinstance(raw, (int, float)):
        count = levels if animation_mode == "level-bucketed" else 1
        return (float(raw),) * count
    if isinstance(raw, Sequence) and not isinstance(raw, str):
        if animation_mode != "level-bucketed":
            raise fail("a framesPerLevel list requires animationMode 'level-bucketed'")
        if len(raw) != levels:
            raise fail(
                f"framesPerLevel has {len(raw)} entries but contributionLevels is {levels}"
            )
        if not all(isinstance(item, (int, float)) and not isinstance(item, bool) for item in raw):
            raise fail("framesPerLevel entries must be numbers")
        return tuple(float(item) for item in raw)
    raise fail("framesPerLevel must be a number or a list of numbers")


def _loop_frame_ms(
    options: Mapping[str, Any],
    frames: float,
    fail: Callable[[str], DisplayConfigError],
) -> float:
    if "loopDurationMs" in options or "duration" in options:
        duration = _image_number(options, "loopDurationMs", 1.0, fail, alias="duration")
        return duration / frames if frames > 0 else duration
    if "loopFps" in options or "fps" in options:
        fps = _image_number(options, "loopFps", 1.0, fail, alias="fps")
        return 1000.0 / fps
    return float(DEFAULT_FRAME_DURATION_MS)


def _image_number(
    options: Mapping[str, Any],
    key: str,
    default: float,
    fail: Callable[[str], DisplayConfigError],
    alias: str | None = None,
) -> float:
    value = options.get(key, options.get(alias, default) if alias else default)
    if not _is_number(value) or value <= 0:
        raise fail(f"{key} must be a positive number")
    return float(value)


def _image_float(
    options: Mapping[str, Any],
    key: str,
    default: float,
    fail: Callable[[str], DisplayConfigError],
) -> float:
    value = options.get(key, default)
    if not _is_number(value):
        raise fail(f"{key} must be a number")
    return float(value)


def _optional_image_number(
    options: Mapping[str, Any],
    key: str,
    fail: Callable[[str], DisplayConfigError],
) -> float | None:
    if options.get(key) is None:
        return None
    value = options[key]
    if not _is_number(value) or value <= 0:
        raise fail(f"{key} must be a positive number")
    return float(value)


def _display_number(
    index: int,
    raw: Mapping[str, Any],
    key: str,
    default: float,
    alias: str | None = None,
) -> float:
    value = raw.get(key, raw.get(alias, default) if alias else default)
    if not _is_number(value) or value <= 0:
        raise DisplayConfigError(index, f"{key} must be a positive number")
    return float(value)


def _color_scheme(options: Mapping[str, Any], prefix: str) -> ColorScheme:
    def key(name: str) -> str:
        return f"{prefix}{name[0].upper()}{name[1:]}" if prefix else name

    palette_name = options.get(key("palette"), "github-dark" if prefix else DEFAULT_PALETTE_NAME)
    try:
        base = resolve_palette(str(palette_name))
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    levels = options.get(key("colorByLevel"), options.get(key("colorDots")))
    if levels is None:
        level_colors = base.levels
    elif isinstance(levels, Sequence) and not isinstance(levels, str) and levels:
        level_colors = tuple(str(color) for color in levels)
    else:
        raise ConfigError(f"{key('colorByLevel')} must be a non-empty list of colors")

    return ColorScheme(
        levels=level_colors,
        empty=str(options.get(key("colorEmpty"), base.empty)),
        border=str(options.get(key("colorDotBorder"), base.border)),
        snake=str(options.get(key("colorSnake"), base.snake)),
    )


def _value_source(raw: Any, name: str) -> ValueSource[str] | None:
    if raw is None:
        return None
    if callable(raw):
        return Computed(raw)
    if isinstance(raw, str):
        return Fixed((raw,))
    if isinstance(raw, Sequence):
        return Fixed(tuple(str(item) for item in raw))
    raise ConfigError(f"{name} must be a list or a callable")


def _choice(
    options: Mapping[str, Any],
    key: str,
    default: str,
    choices: tuple[str, ...],
    aliases: Mapping[str, str] | None = None,
) -> str:
    value = str(options.get(key, default))
    value = (aliases or {}).get(value, value)
    if value not in choices:
        raise ConfigError(f"Unsupported {key}: {value}. Choose from: {', '.join(choices)}")
    return value


def _positive_number(options: Mapping[str, Any], key: str, default: float) -> float:
    value = options.get(key, default)
    if not _is_number(value) or value <= 0:
        raise ConfigError(f"{key} must be a positive number (got {value!r})")
    return value


def _non_negative_number(options: Mapping[str, Any], key: str, default: float) -> float:
    value = options.get(key, default)
    if not _is_number(value) or value < 0:
        raise ConfigError(f"{key} must be a non-negative number (got {value!r})")
    return value


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_image_config(
    raw: Mapping[str, Any],
    *,
    font_size: float = DEFAULT_DOT_SIZE,
    display_index: int = 0,
    image_index: int = 0,
) -> ImageConfig:
    """Validate one image entry on its own, as a display would."""
    return _normalize_image(display_index, image_index, raw, font_size)
