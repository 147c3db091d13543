# Spritediff v1.0.0
"""
Core package for the Spritediff engine.
Contains the sprite document model and the comparison logic.
"""
from core.doc_diff import (
    compare_docs,
    DocDiff,
    DIMENSIONS
)
from core.document import (
    AniDir,
    Cel,
    ColorSpace,
    ColorSpaceType,
    Document,
    Layer,
    LayerFlags,
    LayerType,
    Palette,
    PixelFormat,
    Rect,
    Size,
    Sprite,
    Tag,
    Tileset
)
from core.image import is_same_image

__all__ = [
    "compare_docs",
    "DocDiff",
    "DIMENSIONS",
    "AniDir",
    "Cel",
    "ColorSpace",
    "ColorSpaceType",
    "Document",
    "Layer",
    "LayerFlags",
    "LayerType",
    "Palette",
    "PixelFormat",
    "Rect",
    "Size",
    "Sprite",
    "Tag",
    "Tileset",
    "is_same_image"
]
