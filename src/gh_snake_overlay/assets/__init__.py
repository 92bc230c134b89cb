"""Image references: frame naming, sprite sheets and async resolution."""

from .frame_urls import FramePatternError, generate_frame_urls, generate_level_frame_url
from .resolver import AssetResolver, HttpAssetResolver, resolve_references
from .sprite_sheet import SpriteSheetGeometry, build_sprite_geometry

__all__ = [
    "AssetResolver",
    "FramePatternError",
    "HttpAssetResolver",
    "SpriteSheetGeometry",
    "build_sprite_geometry",
    "generate_frame_urls",
    "generate_level_frame_url",
    "resolve_references",
]
