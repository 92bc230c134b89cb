"""Which files each counter image needs, per level and frame."""

import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..config import ImageConfig, OverlayConfig
from .frame_urls import generate_frame_urls, generate_level_frame_url

FolderLister = Callable[[str], Sequence[str]]


@dataclass(frozen=True)
class ImageSource:
    """One file backing a counter image.

    A sheet source holds ``frame_count`` frames of ``level`` side by side;
    a plain source is the single frame ``first_frame``.
    """

    level: int
    first_frame: int
    frame_count: int
    reference: str
    sheet: bool


def plan_image_sources(
    image: ImageConfig,
    list_folder: FolderLister | None = None,
    rng: random.Random | None = None,
) -> list[ImageSource]:
    if image.mode == "single" and image.url:
        return [ImageSource(level=0, first_frame=0, frame_count=1, reference=image.url, sheet=False)]

    if image.mode == "sprite-sheet" and image.url:
        frames = max(1, image.frames_in(0))
        return [ImageSource(level=0, first_frame=0, frame_count=frames, reference=image.url, sheet=True)]

    folder = image.url_folder or ""
    if image.animation_mode != "level-bucketed":
        urls = generate_frame_urls(folder, image.frame_pattern, image.frames_in(0))
        return [
            ImageSource(level=0, first_frame=index, frame_count=1, reference=url, sheet=False)
            for index, url in enumerate(urls)
        ]

    candidates = list_folder(folder) if list_folder is not None else None
    sources = []
    for level in range(image.level_count):
        frames = image.frames_in(level)
        if image.sprite_per_level:
            url = generate_level_frame_url(folder, image.frame_pattern, level, 0, candidates, rng)
            sources.append(
                ImageSource(level=level, first_frame=0, frame_count=max(1, frames), reference=url, sheet=True)
            )
            continue
        for frame in range(frames):
            url = generate_level_frame_url(folder, image.frame_pattern, level, frame, candidates, rng)
            sources.append(
                ImageSource(level=level, first_frame=frame, frame_count=1, reference=url, sheet=False)
            )
    return sources


def plan_config_sources(
    config: OverlayConfig,
    list_folder: FolderLister | None = None,
    rng: random.Random | None = None,
) -> dict[tuple[int, int], list[ImageSource]]:
    """Image sources keyed by ``(display index, image index)``."""
    return {
        (display.index, image_index): plan_image_sources(image, list_folder, rng)
        for display in config.displays
        for image_index, image in enumerate(display.images)
    }


def collect_asset_references(sources: dict[tuple[int, int], list[ImageSource]]) -> list[str]:
    references = (source.reference for items in sources.values() for source in items)
    return list(dict.fromkeys(references))
