"""Counter displays: per-state text and images toggled by one opacity window per display."""

import logging
import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ..assets.catalog import ImageSource
from ..assets.resolver import decode_data_uri
from ..assets.sprite_sheet import build_sprite_geometry
from ..config import CounterDisplay, ImageConfig, OverlayConfig
from ..constants import (
    MONOSPACE_CHAR_WIDTH_RATIO,
    PROPORTIONAL_CHAR_WIDTH_RATIO,
    STEP_EPSILON,
)
from ..contributions import Grid, PathStep
from ..timeline.counter_sampler import CounterState, sample_counter_states
from ..timeline.sprite_scheduler import SpriteFrameScheduler, get_contribution_level
from ._css_keyframes import AnimationProgram, Keyframe, css_rule
from ._css_shared import _to_compact_name, _tl_num
from ._svg_markup import create_container, create_element

_PLACEHOLDER_RE = re.compile(r"\{img:(\d+)\}")


@dataclass(frozen=True)
class ImageDefinitions:
    """Markup for ``<defs>`` plus the definition id of every (level, frame)."""

    markup: tuple[str, ...]
    frame_ids: dict[tuple[int, int], str]


@dataclass(frozen=True)
class CounterRender:
    styles: list[str]
    definitions: list[str]
    fragments: list[str]


def counter_text(display: CounterDisplay, state: CounterState) -> str:
    if display.show_count and display.show_percentage:
        value = f"{state.count} ({state.percentage}%)"
    elif display.show_percentage:
        value = f"{state.percentage}%"
    elif display.show_count:
        value = str(state.count)
    else:
        value = ""
    return f"{display.prefix}{value}{display.suffix}"


def split_placeholders(text: str) -> list[str | int]:
    """Split ``text`` into literal runs and ``{img:N}`` image indices."""
    parts: list[str | int] = []
    position = 0
    for match in _PLACEHOLDER_RE.finditer(text):
        if match.start() > position:
            parts.append(text[position : match.start()])
        parts.append(int(match.group(1)))
        position = match.end()
    if position < len(text):
        parts.append(text[position:])
    return parts


def estimate_text_width(text: str, font_size: float, font_family: str) -> float:
    ratio = MONOSPACE_CHAR_WIDTH_RATIO if "mono" in font_family.lower() else PROPORTIONAL_CHAR_WIDTH_RATIO
    return len(text) * font_size * ratio


def window_keyframes(step_count: int, epsilon: float = STEP_EPSILON) -> list[Keyframe]:
    """Visible on the first ``1 / step_count`` of the loop, hidden elsewhere."""
    if step_count <= 1:
        return [Keyframe(0.0, "opacity:1"), Keyframe(1.0, "opacity:1")]
    window = 1 / step_count
    return [
        Keyframe(0.0, "opacity:1"),
        Keyframe(max(0.0, window - epsilon), "opacity:1"),
        Keyframe(window, "opacity:0"),
        Keyframe(1.0, "opacity:0"),
    ]


def state_delay_ms(time: float, duration_ms: float) -> float:
    """Negative delay that slides the display window onto a state starting at ``time``."""
    return -((1 - time) % 1) * duration_ms


def build_image_definitions(
    id_prefix: str,
    image: ImageConfig,
    sources: Sequence[ImageSource],
    assets: Mapping[str, str],
) -> ImageDefinitions:
    """
    Emit one reusable definition per displayable frame.

    Plain sources become ``<image>`` elements. A sprite sheet is embedded
    once and every frame becomes a ``<symbol>`` whose viewBox crops that
    frame out of the sheet.
    """
    markup: list[str] = []
    frame_ids: dict[tuple[int, int], str] = {}
    for source in sources:
        href = assets.get(source.reference, source.reference)
        if not source.sheet:
            def_id = f"{id_prefix}l{source.level}f{source.first_frame}"
            markup.append(
                create_element(
                    "image",
                    {"id": def_id, "href": href, "width": image.width, "height": image.height},
                )
            )
            frame_ids[(source.level, source.first_frame)] = def_id
            continue

        geometry = build_sprite_geometry(
            source.frame_count,
            layout=image.layout,
            frame_width=image.frame_width,
            frame_height=image.frame_height,
            fallback_size=(image.width, image.height),
            sheet_data=decode_data_uri(href),
        )
        sheet_id = f"{id_prefix}l{source.level}s"
        if geometry.layout == "vertical":
            sheet_size = (geometry.frame_width, geometry.frame_height * geometry.frames)
        else:
            sheet_size = (geometry.frame_width * geometry.frames, geometry.frame_height)
        markup.append(
            create_element(
                "image",
                {"id": sheet_id, "href": href, "width": sheet_size[0], "height": sheet_size[1]},
            )
        )
        for frame in range(geometry.frames):
            def_id = f"{id_prefix}l{source.level}f{frame}"
            view_box = " ".join(_tl_num(value) for value in geometry.view_box(frame))
            markup.append(
                create_container(
                    "symbol",
                    {"id": def_id, "viewBox": view_box, "width": image.width, "height": image.height},
                    [create_element("use", {"href": f"#{sheet_id}"})],
                )
            )
            frame_ids[(source.level, frame)] = def_id
    return ImageDefinitions(markup=tuple(markup), frame_ids=frame_ids)


class ImageFramePicker:
    """Pick the (level, frame) an image shows at each counter state."""

    def __init__(self, image: ImageConfig, max_count: int, logger: logging.Logger | None = None):
        self.image = image
        self.max_count = max_count
        self._scheduler = None
        self._slot = None
        if image.animation_mode == "level-bucketed":
            self._scheduler = SpriteFrameScheduler(image.frames_per_level, image.loop_frame_ms, logger)
            self._slot = self._scheduler.create()

    def pick(self, state: CounterState, t_abs_ms: float) -> tuple[int, int]:
        image = self.image
        if self._scheduler is not None and self._slot is not None:
            target = get_contribution_level(
                state.step_contribution, self.max_count, image.contribution_levels
            )
            choice = self._scheduler.step(self._slot, t_abs_ms, target)
            return choice.level, choice.frame

        frames = image.frames_in(0)
        if image.mode == "single" or frames <= 1:
            return 0, 0
        if image.animation_mode == "independent-loop":
            return 0, int(t_abs_ms // image.loop_frame_ms) % frames
        speed = image.animation_speed
        if image.dynamic_speed:
            level = get_contribution_level(
                state.step_contribution, self.max_count, image.contribution_levels
            )
            if level == 0:
                return 0, 0
            speed = 2 ** (level - 1)
        return 0, math.floor(state.index * speed) % frames

    def close(self) -> None:
        if self._scheduler is not None and self._slot is not None:
            self._scheduler.dispose(self._slot)


def render_counter_display(
    display: CounterDisplay,
    states: Sequence[CounterState],
    *,
    text_y: float,
    duration_ms: float,
    max_count: int,
    definitions: Mapping[int, ImageDefinitions],
    logger: logging.Logger | None = None,
) -> tuple[list[str], list[str]]:
    """Styles and per-state ``<g>`` fragments for one display."""
    log = logger or logging.getLogger(__name__)
    prefix = f"k{display.index}"
    text_class = f"{prefix}t"
    styles = [
        css_rule(
            f".{text_class}",
            {
                "font-size": f"{_tl_num(display.font_size)}px",
                "font-family": display.font_family,
                "font-weight": display.font_weight,
                "font-style": display.font_style,
                "fill": display.color,
                "dominant-baseline": "middle",
            },
        )
    ]
    pickers = {index: ImageFramePicker(image, max_count, log) for index, image in enumerate(display.images)}
    program = AnimationProgram(f"{prefix}w", tuple(window_keyframes(len(states))))
    styles.append(program.render())
    styles.append(css_rule(f".k.{prefix}", {"animation-name": program.name}))

    anchor = "end" if display.position == "fixed-right" else "start"
    fragments = []

    for state in states:
        class_name = f"{prefix}_{_to_compact_name(state.index)}"
        delay = state_delay_ms(state.time, duration_ms)
        if delay:
            styles.append(css_rule(f".k.{class_name}", {"animation-delay": f"{_tl_num(delay)}ms"}))

        parts = split_placeholders(counter_text(display, state))
        widths = [_part_width(part, display) for part in parts]
        x = state.x - sum(widths) if anchor == "end" else state.x
        children = []
        for part, width in zip(parts, widths):
            if isinstance(part, str):
                children.append(
                    create_element("text", {"class": text_class, "x": x, "y": text_y}, part)
                )
            elif part in pickers:
                use = _image_use(
                    display,
                    part,
                    pickers[part].pick(state, state.time * duration_ms),
                    definitions.get(part),
                    x=x,
                    text_y=text_y,
                    logger=log,
                )
                if use is not None:
                    children.append(use)
            x += width
        fragments.append(create_container("g", {"class": f"k {prefix} {class_name}"}, children))

    for picker in pickers.values():
        picker.close()
    return styles, fragments


def _part_width(part: str | int, display: CounterDisplay) -> float:
    if isinstance(part, str):
        return estimate_text_width(part, display.font_size, display.font_family)
    if 0 <= part < len(display.images):
        image = display.images[part]
        return image.width + image.spacing
    return 0.0


def _image_use(
    display: CounterDisplay,
    image_index: int,
    choice: tuple[int, int],
    definitions: ImageDefinitions | None,
    *,
    x: float,
    text_y: float,
    logger: logging.Logger,
) -> str | None:
    if definitions is None:
        return None
    level, frame = choice
    def_id = definitions.frame_ids.get((level, frame))
    if def_id is None:
        logger.warning(
            "Counter display %d image %d has no frame %d at level %d; using frame 0",
            display.index,
            image_index,
            frame,
            level,
        )
        def_id = definitions.frame_ids.get((level, 0))
    if def_id is None:
        return None

    image = display.images[image_index]
    image_x = x - image.width * image.anchor_x
    image_y = text_y + (image.text_anchor_y - 0.5) * display.font_size - image.height * image.anchor_y
    return create_element(
        "use",
        {"href": f"#{def_id}", "x": image_x, "y": image_y, "width": image.width, "height": image.height},
    )


def render_counters(
    config: OverlayConfig,
    grid: Grid,
    steps: Sequence[PathStep],
    *,
    bar_y: float,
    duration_ms: float,
    sources: Mapping[tuple[int, int], Sequence[ImageSource]],
    assets: Mapping[str, str],
    logger: logging.Logger | None = None,
) -> CounterRender:
    """Render every configured counter display."""
    if not config.displays or not steps:
        return CounterRender(styles=[], definitions=[], fragments=[])

    width = grid.width * config.cell_size
    max_count = grid.max_count()
    styles = [css_rule(".k", {"animation": f"none {_tl_num(duration_ms)}ms linear infinite", "opacity": "0"})]
    definitions_markup: list[str] = []
    fragments: list[str] = []

    for display in config.displays:
        definitions = {}
        for image_index, image in enumerate(display.images):
            built = build_image_definitions(
                f"i{display.index}x{image_index}",
                image,
                sources.get((display.index, image_index), ()),
                assets,
            )
            definitions[image_index] = built
            definitions_markup.extend(built.markup)

        states = sample_counter_states(
            steps,
            grid,
            width=width,
            position=display.position,
            font_size=display.font_size,
        )
        if display.position == "follow":
            text_y = bar_y + config.dot_size / 2
        else:
            text_y = bar_y - display.font_size * 0.5
        display_styles, display_fragments = render_counter_display(
            display,
            states,
            text_y=text_y,
            duration_ms=duration_ms,
            max_count=max_count,
            definitions=definitions,
            logger=logger,
        )
        styles.extend(display_styles)
        fragments.extend(display_fragments)

    return CounterRender(styles=styles, definitions=definitions_markup, fragments=fragments)
