"""Immutable document models produced by the resolver."""

from datetime import timedelta
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from pyxeldoc.kernel.version import SchemaVersion

ElementId = Union[int, str]


class Color(BaseModel):
    """An RGBA colour."""
    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)
    a: int = Field(ge=0, le=255)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def from_hex(cls, text: str) -> "Color":
        """Parse PyxelEdit's ``AARRGGBB`` notation (alpha first)."""
        if len(text) != 8:
            raise ValueError(f"Color must be 8 hex digits (AARRGGBB), got {text!r}")
        try:
            raw = bytes.fromhex(text)
        except ValueError:
            raise ValueError(f"Color is not valid hex: {text!r}")
        return cls(r=raw[1], g=raw[2], b=raw[3], a=raw[0])

    def to_hex(self) -> str:
        return f"{self.a:02x}{self.r:02x}{self.g:02x}{self.b:02x}"

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)


class Palette(BaseModel):
    """A document palette. Empty slots are kept as None to preserve indexes."""
    colors: Tuple[Optional[Color], ...] = ()
    width: Optional[int] = None  # palette grid size in the editor UI
    height: Optional[int] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def num_colors(self) -> int:
        return sum(1 for c in self.colors if c is not None)


class BlendMode(str, Enum):
    """Layer blend modes understood by schema 0.4.8."""
    NORMAL = "normal"
    MULTIPLY = "multiply"
    ADD = "add"
    DIFFERENCE = "difference"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    HARDLIGHT = "hardlight"
    INVERT = "invert"
    OVERLAY = "overlay"
    SCREEN = "screen"
    SUBTRACT = "subtract"


class TileRef(BaseModel):
    """A reference from one canvas grid cell to a tile in a tileset."""
    cell: int  # row-major index into the canvas tile grid
    x: int
    y: int
    tileset: ElementId
    index: int
    rot: float = 0.0  # degrees clockwise
    flip_x: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")


class RasterAsset(BaseModel):
    """Decoded pixels of one archive image entry.

    ``pixels`` is a read-only ``(height, width, 4)`` uint8 array in RGBA order.
    """
    entry: str
    width: int
    height: int
    mode: str = "RGBA"
    pixels: np.ndarray = Field(repr=False)

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    def _key(self) -> Tuple[str, int, int, str]:
        return (self.entry, self.width, self.height, self.mode)

    def __eq__(self, other: object) -> bool:
        # Pixel arrays compare elementwise, so compare them as a whole
        if not isinstance(other, RasterAsset):
            return NotImplemented
        return self._key() == other._key() and np.array_equal(self.pixels, other.pixels)

    def __hash__(self) -> int:
        return hash(self._key())


class Layer(BaseModel):
    """One canvas layer. ``position`` 0 is the back-most layer."""
    id: ElementId
    name: str
    position: int
    opacity: float
    visible: bool
    muted: bool = False
    soloed: bool = False
    blend_mode: BlendMode = BlendMode.NORMAL
    image: Optional[str] = None
    tiles: Tuple[TileRef, ...] = ()
    raster: Optional[RasterAsset] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    def tile_at(self, x: int, y: int) -> Optional[TileRef]:
        """Get the tile ref placed at grid coordinate (x, y), if any."""
        for ref in self.tiles:
            if ref.x == x and ref.y == y:
                return ref
        return None


class Tileset(BaseModel):
    """A tile atlas stored as a single archive image."""
    id: ElementId
    tile_width: int
    tile_height: int
    tile_count: int
    image: str
    tiles_wide: Optional[int] = None  # atlas width in tiles as shown in the editor
    fixed_width: bool = False
    raster: Optional[RasterAsset] = None

    model_config = ConfigDict(frozen=True, extra="forbid")


class Animation(BaseModel):
    """A tile animation starting at ``base_tile`` on the canvas grid."""
    name: str
    base_tile: int
    length: int
    frame_duration: timedelta
    frame_duration_multipliers: Tuple[float, ...]

    model_config = ConfigDict(frozen=True, extra="forbid")

    def frame_durations(self) -> List[timedelta]:
        """Effective duration of each frame."""
        return [self.frame_duration * m for m in self.frame_duration_multipliers]


class Document(BaseModel):
    """A fully resolved .pyxel document."""
    version: SchemaVersion
    name: Optional[str] = None
    canvas_width: int
    canvas_height: int
    tile_width: int
    tile_height: int
    indexed_color: bool = False
    layers: Tuple[Layer, ...]
    tilesets: Tuple[Tileset, ...]
    palette: Optional[Palette] = None
    animations: Tuple[Animation, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def grid_columns(self) -> int:
        return self.canvas_width // self.tile_width

    @property
    def grid_rows(self) -> int:
        return self.canvas_height // self.tile_height

    @property
    def is_materialized(self) -> bool:
        """True if every image-referencing element carries decoded pixels."""
        elements = [*self.layers, *self.tilesets]
        return all(e.raster is not None for e in elements if e.image is not None)

    def get_layer(self, layer_id: ElementId) -> Optional[Layer]:
        """Get layer by ID. With duplicate IDs the later declaration wins."""
        for layer in reversed(self.layers):
            if layer.id == layer_id:
                return layer
        return None

    def get_tileset(self, tileset_id: ElementId) -> Optional[Tileset]:
        """Get tileset by ID. With duplicate IDs the later declaration wins."""
        for tileset in reversed(self.tilesets):
            if tileset.id == tileset_id:
                return tileset
        return None

    def get_layer_by_name(self, name: str) -> Optional[Layer]:
        for layer in reversed(self.layers):
            if layer.name == name:
                return layer
        return None

    def image_entries(self) -> List[str]:
        """Archive entry names referenced by layers and tilesets, in document order."""
        entries = [layer.image for layer in self.layers if layer.image is not None]
        entries.extend(tileset.image for tileset in self.tilesets)
        return entries
