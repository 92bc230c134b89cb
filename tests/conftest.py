"""Shared fixtures for sampling compiled stylesheets at a point in time."""

import re

import pytest

_KEYFRAMES_RE = re.compile(r"@keyframes ([\w-]+)\{((?:[^{}]*\{[^{}]*\})*)\}")
_BLOCK_RE = re.compile(r"([^{}]+)\{([^{}]*)\}")


def _parse_programs(css: str) -> dict[str, list[tuple[float, str]]]:
    programs = {}
    for match in _KEYFRAMES_RE.finditer(css):
        frames = []
        for selectors, style in _BLOCK_RE.findall(match.group(2)):
            for selector in selectors.split(","):
                frames.append((float(selector.rstrip("%")) / 100, style))
        programs[match.group(1)] = sorted(frames, key=lambda frame: frame[0])
    return programs


def _declarations_for(css: str, classes: set[str]) -> dict[str, str]:
    declarations: dict[str, str] = {}
    for selector, body in _BLOCK_RE.findall(_KEYFRAMES_RE.sub("", css)):
        required = {part for part in selector.split(".") if part}
        if not required <= classes:
            continue
        for declaration in filter(None, body.split(";")):
            prop, _, value = declaration.partition(":")
            declarations[prop] = value
    return declarations


def _ms(value: str) -> float:
    return float(value.removesuffix("ms"))


def sample_style(css: str, element_classes: str, t_ms: float) -> str | None:
    """
    The keyframe style an element shows ``t_ms`` into the loop.

    Resolves ``animation`` shorthand, ``animation-name`` and
    ``animation-delay`` from the matching class rules, then reads the program
    at progress ``(t - delay) / duration mod 1``. The epsilon-wide switches
    between keyframes are treated as steps. Returns None when the element is
    not animated.
    """
    declarations = _declarations_for(css, set(element_classes.split()))
    name, duration_ms, delay_ms = "none", 0.0, 0.0
    if "animation" in declarations:
        parts = declarations["animation"].split()
        name, duration_ms = parts[0], _ms(parts[1])
    name = declarations.get("animation-name", name)
    delay_ms = _ms(declarations.get("animation-delay", "0ms"))
    if name == "none" or duration_ms <= 0:
        return None

    progress = ((t_ms - delay_ms) / duration_ms) % 1
    frames = _parse_programs(css)[name]
    current = frames[0][1]
    for t, style in frames:
        if t > progress:
            break
        current = style
    return current


@pytest.fixture
def playback():
    return sample_style
