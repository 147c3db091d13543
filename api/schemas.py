"""
Pydantic schemas for the Spritediff API.

A DocumentSnapshot is the JSON description of an in-memory document:
images travel as base64-encoded PNG data.
"""
import base64
import binascii
import io
from typing import Optional

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field, model_validator

from core import (
    AniDir, Cel, ColorSpace, ColorSpaceType, Document, DocDiff, Layer,
    LayerFlags, LayerType, Palette, PixelFormat, Rect, Size, Sprite, Tag, Tileset
)


class SnapshotDecodeError(ValueError):
    """A snapshot is well-formed JSON but cannot become a document."""


def decode_png(data: str) -> Image.Image:
    """Decode a base64 PNG string into a loaded Pillow image."""
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SnapshotDecodeError(f"Invalid base64 image data: {e}") from e

    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise SnapshotDecodeError(f"Invalid image data: {e}") from e
    return img


def encode_png(image: Image.Image) -> str:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


# ============================================================
# SNAPSHOT SCHEMAS
# ============================================================

class RectSchema(BaseModel):
    x: int = 0
    y: int = 0
    width: int
    height: int


class TagSchema(BaseModel):
    name: str
    from_frame: int
    to_frame: int
    color: int = 0x000000FF
    ani_dir: AniDir = AniDir.FORWARD
    repeat: int = 0


class PaletteSchema(BaseModel):
    frame: int = 0
    colors: list[tuple[int, int, int, int]] = Field(default_factory=list)


class TilesetSchema(BaseModel):
    name: str = ""
    tile_width: int
    tile_height: int
    tiles: list[str] = Field(default_factory=list)


class CelSchema(BaseModel):
    frame: int
    x: int = 0
    y: int = 0
    opacity: int = Field(default=255, ge=0, le=255)
    image: Optional[str] = None


class LayerSchema(BaseModel):
    type: LayerType = LayerType.IMAGE
    name: str
    flags: int = Field(default=int(LayerFlags.VISIBLE | LayerFlags.EDITABLE), ge=0)

    # image and tilemap layers
    opacity: int = Field(default=255, ge=0, le=255)
    cels: list[CelSchema] = Field(default_factory=list)

    # tilemap layers
    tileset_index: int = 0

    # group layers
    layers: list["LayerSchema"] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_cel_frames(self) -> "LayerSchema":
        frames = [c.frame for c in self.cels]
        duplicates = sorted({f for f in frames if frames.count(f) > 1})
        if duplicates:
            raise ValueError(f"Layer '{self.name}' has more than one cel at frame(s) {duplicates}")
        return self

    def to_layer(self) -> Layer:
        flags = LayerFlags(self.flags)
        if self.type == LayerType.GROUP:
            return Layer.group(
                self.name,
                [child.to_layer() for child in self.layers],
                flags=flags
            )

        cels = [
            Cel(
                frame=c.frame,
                x=c.x,
                y=c.y,
                opacity=c.opacity,
                image=decode_png(c.image) if c.image is not None else None
            )
            for c in self.cels
        ]
        if self.type == LayerType.TILEMAP:
            return Layer.tilemap(self.name, self.tileset_index, self.opacity, cels, flags=flags)
        return Layer.image(self.name, self.opacity, cels, flags=flags)


LayerSchema.model_rebuild()


class ColorSpaceSchema(BaseModel):
    type: ColorSpaceType = ColorSpaceType.SRGB
    name: str = "sRGB"
    gamma: Optional[float] = None
    icc_data: Optional[str] = None  # base64

    def to_color_space(self) -> ColorSpace:
        icc = b""
        if self.icc_data:
            try:
                icc = base64.b64decode(self.icc_data, validate=True)
            except (binascii.Error, ValueError) as e:
                raise SnapshotDecodeError(f"Invalid ICC profile data: {e}") from e
        return ColorSpace(type=self.type, name=self.name, gamma=self.gamma, icc_data=icc)


class DocumentSnapshot(BaseModel):
    filename: Optional[str] = None
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    pixel_format: PixelFormat = PixelFormat.RGB
    frame_durations: list[int] = Field(default_factory=lambda: [100], min_length=1)
    tags: list[TagSchema] = Field(default_factory=list)
    palettes: list[PaletteSchema] = Field(default_factory=list)
    tilesets: Optional[list[TilesetSchema]] = None
    layers: list[LayerSchema] = Field(default_factory=list)
    color_space: ColorSpaceSchema = Field(default_factory=ColorSpaceSchema)
    grid_bounds: RectSchema = Field(default_factory=lambda: RectSchema(width=16, height=16))

    def to_document(self) -> Document:
        """Build the in-memory document. Raises SnapshotDecodeError."""
        tilesets = None
        if self.tilesets is not None:
            tilesets = [
                Tileset(
                    tile_size=Size(t.tile_width, t.tile_height),
                    tiles=[decode_png(tile) for tile in t.tiles],
                    name=t.name
                )
                for t in self.tilesets
            ]

        sprite = Sprite(
            width=self.width,
            height=self.height,
            pixel_format=self.pixel_format,
            frame_durations=list(self.frame_durations),
            tags=[Tag(**t.model_dump()) for t in self.tags],
            palettes=[Palette(frame=p.frame, colors=list(p.colors)) for p in self.palettes],
            tilesets=tilesets,
            root=Layer.group("root", [layer.to_layer() for layer in self.layers]),
            color_space=self.color_space.to_color_space(),
            grid_bounds=Rect(**self.grid_bounds.model_dump())
        )
        return Document(sprite=sprite, filename=self.filename)


# ============================================================
# COMPARISON SCHEMAS
# ============================================================

class ComparisonRequest(BaseModel):
    before: DocumentSnapshot
    after: DocumentSnapshot


class DocDiffResponse(BaseModel):
    is_identical: bool
    changed_dimensions: list[str]
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

    @classmethod
    def from_diff(cls, diff: DocDiff) -> "DocDiffResponse":
        return cls(
            is_identical=not diff.anything,
            changed_dimensions=diff.changed_dimensions,
            **diff.to_dict()
        )


class HealthResponse(BaseModel):
    status: str
    app: str
    version: str
