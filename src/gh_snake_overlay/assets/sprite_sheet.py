"""Sprite sheet geometry: frame size, layout and per-frame crop boxes."""

from dataclasses import dataclass
from io import BytesIO

from PIL import Image, UnidentifiedImageError


@dataclass(frozen=True)
class SpriteSheetGeometry:
    layout: str
    frame_width: float
    frame_height: float
    frames: int

    def view_box(self, frame: int) -> tuple[float, float, float, float]:
        """Crop rectangle ``(x, y, w, h)`` of ``frame`` inside the sheet."""
        if self.layout == "vertical":
            return (0.0, frame * self.frame_height, self.frame_width, self.frame_height)
        return (frame * self.frame_width, 0.0, self.frame_width, self.frame_height)


def detect_sprite_layout(
    width: float,
    height: float,
    frame_width: float,
    frame_height: float,
    frames: int,
) -> str:
    if width == frame_width * frames and height == frame_height:
        return "horizontal"
    if width == frame_width and height == frame_height * frames:
        return "vertical"
    return "horizontal" if height <= 0 or width / height > 1 else "vertical"


def read_image_size(data: bytes) -> tuple[int, int] | None:
    try:
        with Image.open(BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError):
        return None


def build_sprite_geometry(
    frames: int,
    *,
    layout: str = "horizontal",
    frame_width: float | None = None,
    frame_height: float | None = None,
    fallback_size: tuple[float, float] = (0.0, 0.0),
    sheet_data: bytes | None = None,
) -> SpriteSheetGeometry:
    """
    Work out how frames are laid out in a sprite sheet.

    Explicit frame sizes win. Otherwise the sheet is measured with Pillow
    (when its bytes are available) and split evenly along ``layout``; with
    ``layout="auto"`` the split direction is detected from the sheet size.
    Without either, ``fallback_size`` (the display size) is assumed.
    """
    frames = max(1, frames)
    sheet_size = read_image_size(sheet_data) if sheet_data else None

    if layout == "auto":
        if sheet_size and frame_width and frame_height:
            layout = detect_sprite_layout(*sheet_size, frame_width, frame_height, frames)
        elif sheet_size:
            layout = "horizontal" if sheet_size[0] >= sheet_size[1] else "vertical"
        else:
            layout = "horizontal"

    if frame_width is None or frame_height is None:
        if sheet_size is not None:
            sheet_w, sheet_h = sheet_size
            derived_w = sheet_w / frames if layout == "horizontal" else sheet_w
            derived_h = sheet_h if layout == "horizontal" else sheet_h / frames
        else:
            derived_w, derived_h = fallback_size
        frame_width = frame_width if frame_width is not None else derived_w
        frame_height = frame_height if frame_height is not None else derived_h

    return SpriteSheetGeometry(
        layout=layout,
        frame_width=float(frame_width),
        frame_height=float(frame_height),
        frames=frames,
    )
