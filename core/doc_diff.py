"""
Spritediff Document Comparison Engine

Decides whether two sprite documents differ and along which
structural dimensions: canvas, frames, tags, palettes, tilesets,
layers, cels, images, color profile and grid.

Documents are aligned by position (frame index, tag index, layer
index in the flattened tree); nothing is matched by identity.
"""
import logging
from dataclasses import dataclass, fields
from typing import Optional

from core.document import DEFAULT_COLOR_TOLERANCE, Cel, Document, Layer, Sprite, image_bounds
from core.image import is_same_image

logger = logging.getLogger(__name__)


@dataclass
class DocDiff:
    """Which dimensions differ between two documents."""
    anything: bool = False
    canvas: bool = False
    total_frames: bool = False
    frame_duration: bool = False
    tags: bool = False
    palettes: bool = False
    tilesets: bool = False
    layers: bool = False
    cels: bool = False
    images: bool = False
    color_profiles: bool = False
    grid_bounds: bool = False

    def mark(self, dimension: str):
        """Flag a dimension as different. Flags are never cleared."""
        if dimension == "anything" or dimension not in DIMENSIONS:
            raise ValueError(f"Unknown diff dimension: {dimension}")
        if getattr(self, dimension):
            return
        self.anything = True
        setattr(self, dimension, True)
        logger.debug("Documents differ in %s", dimension)

    @property
    def changed_dimensions(self) -> list[str]:
        return [name for name in DIMENSIONS if getattr(self, name)]

    def __bool__(self) -> bool:
        return self.anything

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DIMENSIONS = tuple(f.name for f in fields(DocDiff) if f.name != "anything")


def _compare_canvas(a: Sprite, b: Sprite, diff: DocDiff):
    if (a.width != b.width or
            a.height != b.height or
            a.pixel_format != b.pixel_format):
        diff.mark("canvas")


def _compare_frames(a: Sprite, b: Sprite, diff: DocDiff):
    if a.total_frames != b.total_frames:
        diff.mark("total_frames")
        return

    for frame in range(a.total_frames):
        if a.frame_duration(frame) != b.frame_duration(frame):
            diff.mark("frame_duration")
            break


def _compare_tags(a: Sprite, b: Sprite, diff: DocDiff):
    if len(a.tags) != len(b.tags):
        diff.mark("tags")
        return

    for a_tag, b_tag in zip(a.tags, b.tags):
        if (a_tag.from_frame != b_tag.from_frame or
                a_tag.to_frame != b_tag.to_frame or
                a_tag.name != b_tag.name or
                a_tag.color != b_tag.color or
                a_tag.ani_dir != b_tag.ani_dir or
                a_tag.repeat != b_tag.repeat):
            diff.mark("tags")
            break


def _compare_palettes(a: Sprite, b: Sprite, diff: DocDiff):
    # Palette contents are only inspected when the number of palettes
    # changed. Equal-length lists with different colors are not flagged.
    if len(a.palettes) == len(b.palettes):
        return

    for a_pal, b_pal in zip(a.palettes, b.palettes):
        if a_pal.count_diff(b_pal):
            diff.mark("palettes")
            break


def _tileset_pairs_differ(a: Sprite, b: Sprite) -> bool:
    """True as soon as any tileset pair or any tile pair differs."""
    for a_tileset, b_tileset in zip(a.tilesets, b.tilesets):
        if (a_tileset.tile_size != b_tileset.tile_size or
                len(a_tileset) != len(b_tileset)):
            return True

        for index in range(len(a_tileset)):
            if not is_same_image(a_tileset.get(index), b_tileset.get(index)):
                logger.debug(f"Tile {index} differs")
                return True

    return False


def _compare_tilesets(a: Sprite, b: Sprite, diff: DocDiff):
    a_count = len(a.tilesets) if a.has_tilesets else 0
    b_count = len(b.tilesets) if b.has_tilesets else 0
    if a_count != b_count:
        diff.mark("tilesets")
    elif a_count and _tileset_pairs_differ(a, b):
        diff.mark("tilesets")


def _layers_differ(a_layer: Layer, b_layer: Layer) -> bool:
    if (a_layer.type != b_layer.type or
            a_layer.name != b_layer.name or
            a_layer.persistent_flags != b_layer.persistent_flags):
        return True

    # Types are equal from here on
    if a_layer.is_image and a_layer.opacity != b_layer.opacity:
        return True
    if a_layer.is_tilemap and a_layer.tileset_index != b_layer.tileset_index:
        return True
    return False


def _compare_cel_pair(a_cel: Optional[Cel], b_cel: Optional[Cel], diff: DocDiff):
    if (a_cel is None) != (b_cel is None):
        diff.mark("cels")
        return
    if a_cel is None:
        return

    # NOTE: flags cels when any of these fields are *equal*. This mirrors
    # the established engine output; it makes `cels` set for every frame
    # where both layers have a cel.
    if (a_cel.frame == b_cel.frame or
            a_cel.bounds == b_cel.bounds or
            a_cel.opacity == b_cel.opacity):
        diff.mark("cels")

    a_image, b_image = a_cel.image, b_cel.image
    if a_image is not None and b_image is not None:
        if (image_bounds(a_image) != image_bounds(b_image) or
                not is_same_image(a_image, b_image)):
            diff.mark("images")
    elif (a_image is None) != (b_image is None):
        diff.mark("images")


def _compare_layers(a: Sprite, b: Sprite, diff: DocDiff):
    a_layers = a.all_layers()
    b_layers = b.all_layers()
    if len(a_layers) != len(b_layers):
        diff.mark("layers")
        return

    # Cels are only walked once the frame counts are known to differ
    frames = min(a.total_frames, b.total_frames)

    for a_layer, b_layer in zip(a_layers, b_layers):
        if _layers_differ(a_layer, b_layer):
            diff.mark("layers")
            break

        if diff.total_frames:
            for frame in range(frames):
                _compare_cel_pair(a_layer.cel(frame), b_layer.cel(frame), diff)


def compare_docs(
    a: Document,
    b: Document,
    color_tolerance: float = DEFAULT_COLOR_TOLERANCE
) -> DocDiff:
    """
    Main entry point for comparing two documents.

    Every dimension is checked in a fixed order. A dimension stops at
    its first confirmed difference, but the remaining dimensions are
    always evaluated. Filenames are not compared.

    Args:
        a: The previous document snapshot
        b: The current document snapshot
        color_tolerance: Allowed numeric drift between color profiles

    Returns:
        DocDiff with the flags of every differing dimension set
    """
    if a is None or b is None:
        raise ValueError("compare_docs() needs two documents")

    a_sprite, b_sprite = a.sprite, b.sprite
    diff = DocDiff()

    _compare_canvas(a_sprite, b_sprite, diff)
    _compare_frames(a_sprite, b_sprite, diff)
    _compare_tags(a_sprite, b_sprite, diff)
    _compare_palettes(a_sprite, b_sprite, diff)
    _compare_tilesets(a_sprite, b_sprite, diff)
    _compare_layers(a_sprite, b_sprite, diff)

    if not a_sprite.color_space.nearly_equal(b_sprite.color_space, color_tolerance):
        diff.mark("color_profiles")

    if a_sprite.grid_bounds != b_sprite.grid_bounds:
        diff.mark("grid_bounds")

    if diff:
        logger.info(f"Documents differ: {', '.join(diff.changed_dimensions)}")
    else:
        logger.debug("Documents are identical")

    return diff
