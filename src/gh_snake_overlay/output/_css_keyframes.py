"""Keyframe merging and stylesheet text helpers."""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from ._css_shared import _tl_finite, _tl_pct


@dataclass(frozen=True)
class Keyframe:
    t: float
    style: str


@dataclass(frozen=True)
class AnimationProgram:
    """A named keyframe program shared by every element that references it."""

    name: str
    keyframes: tuple[Keyframe, ...]

    def render(self) -> str:
        return create_keyframe_animation(self.name, self.keyframes)


_CSS_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_CSS_SPACE_RE = re.compile(r"\s+")
_CSS_PUNCT_RE = re.compile(r"\s*([{}:;,])\s*")


def merge_keyframes(keyframes: Iterable[Keyframe]) -> list[tuple[str, list[float]]]:
    """
    Group keyframes that share an identical style.

    Args:
        keyframes: Unordered (t, style) pairs

    Returns:
        (style, times) groups ordered by each group's earliest time; ties keep
        the order in which styles were first seen
    """
    groups: dict[str, list[float]] = {}
    for keyframe in keyframes:
        t = min(1.0, max(0.0, _tl_finite(keyframe.t)))
        groups.setdefault(keyframe.style, []).append(t)

    ordered = sorted(groups.items(), key=lambda item: min(item[1]))
    return [(style, sorted(times)) for style, times in ordered]


def keyframe_rules(keyframes: Iterable[Keyframe]) -> str:
    rules = []
    for style, times in merge_keyframes(keyframes):
        selectors = list(dict.fromkeys(_tl_pct(t) for t in times))
        rules.append(f"{','.join(selectors)}{{{style}}}")
    return "".join(rules)


def create_keyframe_animation(name: str, keyframes: Iterable[Keyframe]) -> str:
    return f"@keyframes {name}{{{keyframe_rules(keyframes)}}}"


def css_rule(selector: str, declarations: Mapping[str, object]) -> str:
    body = ";".join(f"{prop}:{value}" for prop, value in declarations.items())
    return f"{selector}{{{body}}}"


def minify_css(css: str) -> str:
    text = _CSS_COMMENT_RE.sub("", css)
    text = _CSS_SPACE_RE.sub(" ", text)
    text = _CSS_PUNCT_RE.sub(r"\1", text)
    return text.replace(";}", "}").strip()
