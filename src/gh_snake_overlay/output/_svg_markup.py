"""Markup fragment builders."""

from collections.abc import Mapping
from xml.sax.saxutils import escape, quoteattr

from ._css_shared import _tl_num


def _tl_attr_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _tl_num(value)
    return str(value)


def create_element(tag: str, attrs: Mapping[str, object], content: str | None = None) -> str:
    """Render one element; ``content`` is escaped text, children go through ``create_container``."""
    rendered = "".join(
        f" {name}={quoteattr(_tl_attr_value(value))}"
        for name, value in attrs.items()
        if value is not None
    )
    if content is None:
        return f"<{tag}{rendered}/>"
    return f"<{tag}{rendered}>{escape(content)}</{tag}>"


def create_container(tag: str, attrs: Mapping[str, object], children: list[str]) -> str:
    rendered = "".join(
        f" {name}={quoteattr(_tl_attr_value(value))}"
        for name, value in attrs.items()
        if value is not None
    )
    return f"<{tag}{rendered}>{''.join(children)}</{tag}>"
