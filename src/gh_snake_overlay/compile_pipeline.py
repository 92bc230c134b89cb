"""Shared compile orchestration used by the CLI and library callers."""

import asyncio
import hashlib
import json
import logging
import random
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from .assets.catalog import FolderLister, ImageSource, collect_asset_references, plan_config_sources
from .assets.resolver import AssetResolver, HttpAssetResolver, resolve_references
from .config import OverlayConfig, normalize_config, resolve_table
from .constants import DEFAULT_ASSET_TIMEOUT
from .contributions import Grid, PathStep, build_path_steps, grid_from_contribution_data
from .output import resolve_output_provider
from .output._css_counter import render_counters
from .output._css_grid import plan_grid_cells, render_grid
from .output._css_keyframes import css_rule, minify_css
from .output._css_progress import plan_progress_for_path, render_progress
from .output._css_snake import plan_snake, render_snake, segment_length
from .output.base import CompiledOverlay, OutputProvider
from .palettes import ColorScheme
from .timeline.cell_states import build_cell_states, consumption_step_indices


def load_overlay_input(
    payload: Mapping[str, Any],
    config_override: Mapping[str, Any] | None = None,
    *,
    logger: logging.Logger | None = None,
) -> tuple[Grid, list[PathStep], OverlayConfig]:
    """
    Turn a raw input document into the grid, path steps and normalized config.

    ``config_override`` keys replace those of ``payload["config"]``.
    """
    raw_config = {**(payload.get("config") or {}), **(config_override or {})}
    config = normalize_config(raw_config, logger=logger)
    grid = grid_from_contribution_data(payload.get("contributions") or {"weeks": []})
    steps = build_path_steps(grid, payload.get("path") or [], config.snake_length)
    return grid, steps, config


def derive_asset_seed(payload: Mapping[str, Any]) -> int:
    """Create a stable wildcard-selection seed from the compile inputs."""
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")
    digest = hashlib.sha256(encoded).digest()
    return int.from_bytes(digest[:8], "big")


def overlay_duration_ms(steps: Sequence[PathStep], config: OverlayConfig) -> int:
    return int(round(len(steps) * config.frame_duration_ms))


def color_variables(colors: ColorScheme) -> dict[str, str]:
    variables = {"--ce": colors.empty, "--cb": colors.border, "--cs": colors.snake}
    for level, color in enumerate(colors.levels):
        variables[f"--c{level}"] = color
    return variables


def build_root_styles(config: OverlayConfig) -> list[str]:
    styles = [css_rule(":root", color_variables(config.colors))]
    if config.dark_colors is not None:
        dark = css_rule(":root", color_variables(config.dark_colors))
        styles.append(f"@media (prefers-color-scheme: dark){{{dark}}}")
    return styles


def collect_overlay_references(
    config: OverlayConfig,
    steps: Sequence[PathStep],
    sources: Mapping[tuple[int, int], list[ImageSource]],
) -> list[str]:
    """Every external reference the compile may embed, in first-seen order."""
    references = collect_asset_references(dict(sources))
    if config.snake_content is not None and config.snake_content_type == "image":
        contents = resolve_table(config.snake_content, segment_length(steps), "")
        references.extend(content for content in contents if content)
    return list(dict.fromkeys(references))


def compile_overlay(
    grid: Grid,
    steps: Sequence[PathStep],
    config: OverlayConfig,
    *,
    assets: Mapping[str, str] | None = None,
    sources: Mapping[tuple[int, int], list[ImageSource]] | None = None,
    logger: logging.Logger | None = None,
) -> CompiledOverlay:
    """
    Compile the grid, snake, progress bar and counters into one stylesheet.

    This is synchronous and pure: ``assets`` maps references to already
    resolved values (see :func:`compile_overlay_async`), and references
    missing from it are embedded as-is.
    """
    log = logger or logging.getLogger(__name__)
    assets = assets or {}
    if sources is None:
        sources = plan_config_sources(config)
    duration = overlay_duration_ms(steps, config)
    if not steps:
        log.warning("Path is empty; emitting a static grid only")

    styles = build_root_styles(config)
    fragments: list[str] = []

    grid_plan = plan_grid_cells(build_cell_states(grid, steps))
    grid_styles, grid_fragments = render_grid(grid_plan, config, duration)
    styles.extend(grid_styles)
    fragments.extend(grid_fragments)

    bar_y = (grid.height + 2) * config.cell_size
    if steps and config.show_progress_bar:
        progress_plan = plan_progress_for_path(grid, steps, config.progress_bar_mode)
        progress_styles, progress_fragments = render_progress(
            progress_plan,
            y=bar_y,
            width=grid.width * config.cell_size,
            height=config.dot_size,
            duration_ms=duration,
        )
        styles.extend(progress_styles)
        fragments.extend(progress_fragments)

    eat_indices = consumption_step_indices(grid, steps) if config.color_shift_mode == "on-eat" else []
    snake_plan = plan_snake(steps, config, duration, eat_indices=eat_indices)
    snake_styles, snake_fragments = render_snake(snake_plan, config, duration, assets)
    styles.extend(snake_styles)
    fragments.extend(snake_fragments)

    counters = render_counters(
        config,
        grid,
        steps,
        bar_y=bar_y,
        duration_ms=duration,
        sources=sources,
        assets=assets,
        logger=log,
    )
    styles.extend(counters.styles)
    fragments.extend(counters.fragments)

    stylesheet = minify_css("".join(styles))
    log.debug(
        "Compiled %d steps into %d fragments and %d stylesheet characters",
        len(steps),
        len(fragments),
        len(stylesheet),
    )
    return CompiledOverlay(
        styles=stylesheet,
        definitions=tuple(counters.definitions),
        fragments=tuple(fragments),
        duration_ms=duration,
        display_errors=config.display_errors,
    )


async def compile_overlay_async(
    grid: Grid,
    steps: Sequence[PathStep],
    config: OverlayConfig,
    *,
    resolver: AssetResolver | None = None,
    list_folder: FolderLister | None = None,
    rng: random.Random | None = None,
    timeout: float = DEFAULT_ASSET_TIMEOUT,
    base_dir: str | Path | None = None,
    logger: logging.Logger | None = None,
) -> CompiledOverlay:
    """Resolve every referenced asset concurrently, then compile."""
    sources = plan_config_sources(config, list_folder, rng)
    references = collect_overlay_references(config, steps, sources)
    assets: dict[str, str] = {}
    if references:
        if resolver is None:
            async with HttpAssetResolver(timeout=timeout, base_dir=base_dir, logger=logger) as owned:
                assets = await resolve_references(references, owned)
        else:
            assets = await resolve_references(references, resolver)
    return compile_overlay(grid, steps, config, assets=assets, sources=sources, logger=logger)


def compile_overlay_with_assets(
    grid: Grid,
    steps: Sequence[PathStep],
    config: OverlayConfig,
    **kwargs: Any,
) -> CompiledOverlay:
    """Blocking wrapper around :func:`compile_overlay_async`."""
    return asyncio.run(compile_overlay_async(grid, steps, config, **kwargs))


def encode_overlay(
    overlay: CompiledOverlay,
    output_path: str,
    *,
    provider: OutputProvider | None = None,
) -> bytes:
    """Encode a compiled overlay for the given output path."""
    target_provider = provider or resolve_output_provider(output_path)
    return target_provider.encode(overlay)
