"""Frame file naming helpers for multi-file and per-level sprites."""

import fnmatch
import random
from collections.abc import Sequence

from ..constants import DEFAULT_FRAME_PATTERN

WILDCARD = "*"


class FramePatternError(ValueError):
    """Raised when a frame naming pattern cannot be expanded."""


def generate_frame_urls(
    folder: str,
    pattern: str | None = None,
    count: int = 0,
) -> list[str]:
    """
    Build one URL per frame by substituting ``{n}`` in ``pattern``.

    >>> generate_frame_urls("images/character", None, 2)
    ['images/character/frame-0.png', 'images/character/frame-1.png']
    """
    base = folder.rstrip("/")
    template = pattern or DEFAULT_FRAME_PATTERN
    return [f"{base}/{template.replace('{n}', str(i))}" for i in range(max(0, count))]


def count_wildcards(pattern: str) -> int:
    return pattern.count(WILDCARD)


def validate_frame_pattern(pattern: str) -> None:
    if count_wildcards(pattern) > 1:
        raise FramePatternError(
            f"Frame pattern '{pattern}' has more than one '{WILDCARD}' wildcard"
        )


def generate_level_frame_url(
    folder: str,
    pattern: str,
    level: int,
    frame: int,
    candidates: Sequence[str] | None = None,
    rng: random.Random | None = None,
) -> str:
    """
    Expand a per-level frame pattern into a URL.

    ``Lx`` becomes ``L{level}`` and ``{n}`` the frame index. A single ``*``
    matches any run of characters: when ``candidates`` (file names inside
    ``folder``) are given, one matching name is picked with ``rng``;
    otherwise the wildcard is left in place.

    Raises:
        FramePatternError: If the pattern holds more than one wildcard
    """
    validate_frame_pattern(pattern)
    base = folder.rstrip("/")
    filename = pattern.replace("Lx", f"L{level}").replace("{n}", str(frame))

    if WILDCARD in filename and candidates:
        matches = sorted(name for name in candidates if fnmatch.fnmatchcase(name, filename))
        if matches:
            chooser = rng or random.Random()
            filename = chooser.choice(matches)

    return f"{base}/{filename}"
