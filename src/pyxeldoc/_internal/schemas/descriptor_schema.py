"""Parser for the docData.json descriptor entry.

Decoding happens in two passes: the bytes are decoded into a generic JSON
value, then pydantic models check its shape. Only the top level is checked
by ``parse_descriptor``. Per-record shapes and the optional top-level
fields are checked by ``parse_*_record`` and ``parse_document_fields``
once the schema version has been accepted, since an unsupported version
may legitimately use different record shapes.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from pyxeldoc.codes import ErrorCode
from pyxeldoc.errors import DescriptorError

ElementId = Union[StrictInt, StrictStr]

_CELL_KEY_RE = re.compile(r"0|[1-9][0-9]*")


class RawPalette(BaseModel):
    """Palette record; colours are decoded later by the resolver."""
    colors: List[Any]
    width: Optional[StrictInt] = None
    height: Optional[StrictInt] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class RawDescriptor(BaseModel):
    """Top level of the descriptor, shape-checked but not interpreted.

    Optional fields are held as-is and checked by ``parse_document_fields``
    after the version gate.
    """
    version: StrictStr
    canvas_width: StrictInt = Field(alias="canvasWidth")
    canvas_height: StrictInt = Field(alias="canvasHeight")
    tile_width: StrictInt = Field(alias="tileWidth")
    tile_height: StrictInt = Field(alias="tileHeight")
    layers: List[Dict[str, Any]]
    tilesets: List[Dict[str, Any]]
    name: Any = None
    indexed_color: Any = Field(default=False, alias="indexedColor")
    palette: Any = None
    animations: Any = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class RawDocumentFields(BaseModel):
    """Optional top-level fields of a version-validated descriptor."""
    name: Optional[StrictStr] = None
    indexed_color: StrictBool = Field(default=False, alias="indexedColor")
    palette: Optional[RawPalette] = None
    animations: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @field_validator("palette", mode="before")
    @classmethod
    def wrap_palette_list(cls, v: Any) -> Any:
        """A bare list is shorthand for ``{"colors": [...]}``."""
        if isinstance(v, list):
            return {"colors": v}
        return v


class RawTileRef(BaseModel):
    tileset: ElementId
    index: StrictInt
    rot: StrictInt = 0  # quarter turns clockwise
    flip_x: StrictBool = Field(default=False, alias="flipX")

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @field_validator("rot")
    @classmethod
    def validate_rot(cls, v: int) -> int:
        if not 0 <= v <= 3:
            raise ValueError(f"rot must be 0..3 quarter turns, got {v}")
        return v


class RawLayer(BaseModel):
    id: ElementId
    name: StrictStr
    opacity: float
    visible: StrictBool
    blend_mode: StrictStr = Field(alias="blendMode")
    image: Optional[StrictStr] = None
    muted: StrictBool = False
    soloed: StrictBool = False
    # cell index (row-major over the canvas tile grid) -> tile ref
    tile_refs: Dict[NonNegativeInt, RawTileRef] = Field(default_factory=dict, alias="tileRefs")

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @field_validator("tile_refs", mode="before")
    @classmethod
    def validate_cell_keys(cls, v: Any) -> Any:
        """Cell keys must be canonical decimal strings so no two keys name the same cell."""
        if not isinstance(v, dict):
            return v
        for key in v:
            if isinstance(key, str) and not _CELL_KEY_RE.fullmatch(key):
                raise ValueError(f"tile ref key {key!r} is not a canonical cell index")
        return v

    @field_validator("opacity", mode="before")
    @classmethod
    def validate_opacity_kind(cls, v: Any) -> float:
        """Accept JSON numbers only; range is checked by the resolver."""
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"opacity must be a number, got {type(v).__name__}")
        return float(v)


class RawTileset(BaseModel):
    id: ElementId
    tile_width: StrictInt = Field(alias="tileWidth")
    tile_height: StrictInt = Field(alias="tileHeight")
    tile_count: StrictInt = Field(alias="tileCount")
    image: StrictStr
    tiles_wide: Optional[StrictInt] = Field(default=None, alias="tilesWide")
    fixed_width: StrictBool = Field(default=False, alias="fixedWidth")

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class RawAnimation(BaseModel):
    name: StrictStr
    base_tile: StrictInt = Field(alias="baseTile")
    length: StrictInt
    frame_duration: StrictInt = Field(alias="frameDuration")  # milliseconds
    # integer percentages, 100 == base duration
    frame_duration_multipliers: Optional[List[StrictInt]] = Field(
        default=None, alias="frameDurationMultipliers"
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


def _format_loc(prefix: str, loc: Tuple[Any, ...]) -> str:
    path = prefix
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


def _shape_error(e: ValidationError, prefix: str = "") -> DescriptorError:
    first = e.errors()[0]
    field = _format_loc(prefix, tuple(first.get("loc", ())))
    return DescriptorError(
        ErrorCode.SCHEMA_SHAPE,
        f"Descriptor field {field or '<root>'!r}: {first.get('msg', 'invalid value')}",
        field=field or None,
        error_count=e.error_count(),
    )


def parse_descriptor(data: bytes) -> RawDescriptor:
    """
    Decode descriptor bytes into a shape-checked RawDescriptor.

    Raises:
        DescriptorError: MALFORMED if the bytes are not UTF-8 JSON,
            SCHEMA_SHAPE if required top-level fields are absent or of the
            wrong kind. Unknown fields are ignored.
    """
    try:
        obj = json.loads(data.decode("utf-8-sig"))
    except (ValueError, RecursionError) as e:
        # ValueError covers UnicodeDecodeError, JSONDecodeError and the
        # integer digit limit; RecursionError covers pathological nesting
        raise DescriptorError(
            ErrorCode.MALFORMED,
            f"Descriptor is not well-formed JSON: {e}",
        ) from e

    if not isinstance(obj, dict):
        raise DescriptorError(
            ErrorCode.SCHEMA_SHAPE,
            f"Descriptor must be a JSON object, got {type(obj).__name__}",
        )

    try:
        return RawDescriptor.model_validate(obj)
    except ValidationError as e:
        raise _shape_error(e) from e


def parse_layer_record(obj: Dict[str, Any], position: int) -> RawLayer:
    try:
        return RawLayer.model_validate(obj)
    except ValidationError as e:
        raise _shape_error(e, f"layers[{position}]") from e


def parse_tileset_record(obj: Dict[str, Any], position: int) -> RawTileset:
    try:
        return RawTileset.model_validate(obj)
    except ValidationError as e:
        raise _shape_error(e, f"tilesets[{position}]") from e


def parse_animation_record(obj: Dict[str, Any], position: int) -> RawAnimation:
    try:
        return RawAnimation.model_validate(obj)
    except ValidationError as e:
        raise _shape_error(e, f"animations[{position}]") from e


def parse_document_fields(raw: RawDescriptor) -> RawDocumentFields:
    """Shape-check the optional top-level fields of a version-validated descriptor."""
    present = raw.model_dump(
        by_alias=True,
        exclude_unset=True,
        include={"name", "indexed_color", "palette", "animations"},
    )
    try:
        return RawDocumentFields.model_validate(present)
    except ValidationError as e:
        raise _shape_error(e) from e
