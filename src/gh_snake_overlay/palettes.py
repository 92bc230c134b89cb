"""Built-in color palettes."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ColorScheme:
    """Fill colors for the grid, indexed by contribution level."""

    levels: tuple[str, ...]
    empty: str
    border: str
    snake: str


_PALETTES: dict[str, ColorScheme] = {
    "github-light": ColorScheme(
        levels=("#ebedf0", "#9be9a8", "#40c463", "#30a14e", "#216e39"),
        empty="#ebedf0",
        border="#1b1f230a",
        snake="#a855f7",
    ),
    "github-dark": ColorScheme(
        levels=("#161b22", "#01311f", "#034525", "#0f6d31", "#00c647"),
        empty="#161b22",
        border="#1b1f230a",
        snake="#a855f7",
    ),
}

DEFAULT_PALETTE_NAME = "github-light"


def resolve_palette(name: str) -> ColorScheme:
    palette = _PALETTES.get(name.lower())
    if palette is not None:
        return palette
    supported = ", ".join(supported_palette_names())
    raise ValueError(f"Unsupported palette: {name}. Supported palettes: {supported}")


def supported_palette_names() -> tuple[str, ...]:
    return tuple(_PALETTES.keys())
