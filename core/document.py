"""
Sprite document model for the Spritediff engine.

Read-only view of a layered, animated, tile-based sprite: canvas spec,
frames, tags, palettes, tilesets, the layer tree with its cels, the
color profile and the grid. The comparator only reads these objects.
"""
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Optional

from PIL import Image


class PixelFormat(str, Enum):
    RGB = "rgb"
    GRAYSCALE = "grayscale"
    INDEXED = "indexed"


class AniDir(str, Enum):
    FORWARD = "forward"
    REVERSE = "reverse"
    PING_PONG = "ping_pong"
    PING_PONG_REVERSE = "ping_pong_reverse"


class LayerType(str, Enum):
    IMAGE = "image"
    GROUP = "group"
    TILEMAP = "tilemap"


class LayerFlags(IntFlag):
    NONE = 0
    VISIBLE = 1
    EDITABLE = 2
    LOCK_MOVE = 4
    BACKGROUND = 8
    CONTINUOUS = 16
    COLLAPSED = 32
    REFERENCE = 64

    # Bits above this mask are editor state and never saved
    PERSISTENT_MASK = 0xFFFF
    WAS_VISIBLE = 0x10000


class ColorSpaceType(str, Enum):
    NONE = "none"
    SRGB = "srgb"
    RGB = "rgb"
    ICC = "icc"


DEFAULT_COLOR_TOLERANCE = 0.001


@dataclass(frozen=True)
class Size:
    width: int
    height: int


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)


def image_bounds(image: Image.Image) -> Rect:
    """Bounds of an image placed at the origin."""
    width, height = image.size
    return Rect(0, 0, width, height)


@dataclass
class Tag:
    """A named range of frames with playback metadata."""
    name: str
    from_frame: int
    to_frame: int
    color: int = 0x000000FF
    ani_dir: AniDir = AniDir.FORWARD
    repeat: int = 0


@dataclass
class Palette:
    """Palette that applies from `frame` onwards."""
    frame: int = 0
    colors: list[tuple[int, int, int, int]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.colors)

    def count_diff(self, other: "Palette") -> int:
        """
        Count the entries that differ between two palettes.

        Entries that only exist in the longer palette count as different.
        """
        shared = min(len(self.colors), len(other.colors))
        diff = sum(
            1 for i in range(shared)
            if tuple(self.colors[i]) != tuple(other.colors[i])
        )
        return diff + abs(len(self.colors) - len(other.colors))


@dataclass
class Tileset:
    """Ordered collection of tile images sharing one tile size."""
    tile_size: Size
    tiles: list[Image.Image] = field(default_factory=list)
    name: str = ""

    def __len__(self) -> int:
        return len(self.tiles)

    def get(self, index: int) -> Image.Image:
        return self.tiles[index]


@dataclass
class Cel:
    """Content of one layer at one frame."""
    frame: int
    x: int = 0
    y: int = 0
    opacity: int = 255
    image: Optional[Image.Image] = None

    @property
    def bounds(self) -> Rect:
        if self.image is None:
            return Rect(self.x, self.y, 0, 0)
        width, height = self.image.size
        return Rect(self.x, self.y, width, height)


@dataclass
class ImagePayload:
    opacity: int = 255
    cels: dict[int, Cel] = field(default_factory=dict)


@dataclass
class TilemapPayload:
    tileset_index: int = 0
    opacity: int = 255
    cels: dict[int, Cel] = field(default_factory=dict)


@dataclass
class GroupPayload:
    layers: list["Layer"] = field(default_factory=list)


def _cels_by_frame(layer_name: str, cels: Optional[list[Cel]]) -> dict[int, Cel]:
    by_frame = {}
    for cel in cels or []:
        if cel.frame in by_frame:
            raise ValueError(f"Layer '{layer_name}' has more than one cel at frame {cel.frame}")
        by_frame[cel.frame] = cel
    return by_frame


PAYLOAD_TYPES = {
    LayerType.IMAGE: ImagePayload,
    LayerType.TILEMAP: TilemapPayload,
    LayerType.GROUP: GroupPayload,
}


@dataclass
class Layer:
    """
    A node of the layer tree.

    `type` selects the payload: image layers carry an ImagePayload,
    tilemap layers a TilemapPayload and groups a GroupPayload.
    """
    type: LayerType
    name: str
    flags: LayerFlags = LayerFlags.VISIBLE | LayerFlags.EDITABLE
    payload: Optional[ImagePayload | TilemapPayload | GroupPayload] = None

    def __post_init__(self):
        payload_type = PAYLOAD_TYPES[self.type]
        if self.payload is None:
            self.payload = payload_type()
        elif type(self.payload) is not payload_type:
            raise ValueError(
                f"{self.type.value} layer '{self.name}' needs a {payload_type.__name__}, "
                f"got {type(self.payload).__name__}"
            )

    @classmethod
    def image(cls, name: str, opacity: int = 255, cels: Optional[list[Cel]] = None,
              flags: LayerFlags = LayerFlags.VISIBLE | LayerFlags.EDITABLE) -> "Layer":
        payload = ImagePayload(opacity=opacity, cels=_cels_by_frame(name, cels))
        return cls(LayerType.IMAGE, name, flags, payload)

    @classmethod
    def tilemap(cls, name: str, tileset_index: int, opacity: int = 255,
                cels: Optional[list[Cel]] = None,
                flags: LayerFlags = LayerFlags.VISIBLE | LayerFlags.EDITABLE) -> "Layer":
        payload = TilemapPayload(
            tileset_index=tileset_index,
            opacity=opacity,
            cels=_cels_by_frame(name, cels)
        )
        return cls(LayerType.TILEMAP, name, flags, payload)

    @classmethod
    def group(cls, name: str, layers: Optional[list["Layer"]] = None,
              flags: LayerFlags = LayerFlags.VISIBLE | LayerFlags.EDITABLE) -> "Layer":
        return cls(LayerType.GROUP, name, flags, GroupPayload(layers=list(layers or [])))

    @property
    def is_image(self) -> bool:
        # Tilemaps are image layers too
        return self.type in (LayerType.IMAGE, LayerType.TILEMAP)

    @property
    def is_tilemap(self) -> bool:
        return self.type == LayerType.TILEMAP

    @property
    def is_group(self) -> bool:
        return self.type == LayerType.GROUP

    @property
    def persistent_flags(self) -> int:
        return int(self.flags) & int(LayerFlags.PERSISTENT_MASK)

    @property
    def opacity(self) -> int:
        if not self.is_image:
            raise AttributeError(f"{self.type.value} layer '{self.name}' has no opacity")
        return self.payload.opacity

    @property
    def tileset_index(self) -> int:
        if not self.is_tilemap:
            raise AttributeError(f"{self.type.value} layer '{self.name}' has no tileset")
        return self.payload.tileset_index

    @property
    def layers(self) -> list["Layer"]:
        if not self.is_group:
            return []
        return self.payload.layers

    def cel(self, frame: int) -> Optional[Cel]:
        if self.is_group:
            return None
        return self.payload.cels.get(frame)

    def all_layers(self) -> list["Layer"]:
        """Flatten the subtree; children are listed before their group."""
        result = []
        for child in self.layers:
            if child.is_group:
                result.extend(child.all_layers())
            result.append(child)
        return result


@dataclass
class ColorSpace:
    """Color profile attached to a sprite."""
    type: ColorSpaceType = ColorSpaceType.SRGB
    name: str = "sRGB"
    gamma: Optional[float] = None
    icc_data: bytes = b""

    def nearly_equal(self, other: "ColorSpace", tolerance: float = DEFAULT_COLOR_TOLERANCE) -> bool:
        """
        Compare two profiles allowing small numeric encoding differences.

        Names are informative only and are not compared.
        """
        if self.type != other.type:
            return False
        if self.type == ColorSpaceType.NONE:
            return True
        if self.type == ColorSpaceType.ICC:
            return self.icc_data == other.icc_data
        if (self.gamma is None) != (other.gamma is None):
            return False
        if self.gamma is None:
            return True
        return abs(self.gamma - other.gamma) <= tolerance


@dataclass
class Sprite:
    """Canvas and animation content of a document."""
    width: int
    height: int
    pixel_format: PixelFormat = PixelFormat.RGB
    frame_durations: list[int] = field(default_factory=lambda: [100])
    tags: list[Tag] = field(default_factory=list)
    palettes: list[Palette] = field(default_factory=list)
    tilesets: Optional[list[Tileset]] = None
    root: Layer = field(default_factory=lambda: Layer.group("root"))
    color_space: ColorSpace = field(default_factory=ColorSpace)
    grid_bounds: Rect = field(default_factory=lambda: Rect(0, 0, 16, 16))

    @property
    def total_frames(self) -> int:
        return len(self.frame_durations)

    def frame_duration(self, frame: int) -> int:
        return self.frame_durations[frame]

    @property
    def has_tilesets(self) -> bool:
        return self.tilesets is not None

    def all_layers(self) -> list[Layer]:
        return self.root.all_layers()

    def all_layers_count(self) -> int:
        return len(self.all_layers())


@dataclass
class Document:
    """A sprite plus the document metadata around it."""
    sprite: Sprite
    filename: Optional[str] = None
