"""Resolve a validated descriptor into a typed Document.

Resolution checks referential integrity against the archive using
``entry_exists`` only; no image bytes are read here.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from pyxeldoc._internal.io.archive import EntrySource
from pyxeldoc._internal.schemas.descriptor_schema import (
    RawDescriptor,
    RawLayer,
    RawPalette,
    RawTileset,
    parse_animation_record,
    parse_document_fields,
    parse_layer_record,
    parse_tileset_record,
)
from pyxeldoc.codes import ErrorCode
from pyxeldoc.errors import ModelError
from pyxeldoc.kernel.document import (
    Animation,
    BlendMode,
    Color,
    Document,
    ElementId,
    Layer,
    Palette,
    TileRef,
    Tileset,
)
from pyxeldoc.kernel.version import SchemaVersion

logger = logging.getLogger(__name__)

_BLEND_MODES = {mode.value: mode for mode in BlendMode}


def resolve_document(raw: RawDescriptor, accessor: EntrySource) -> Document:
    """
    Build a Document from a version-validated descriptor.

    Layers and tilesets keep descriptor order. The first violation found
    is raised; no partial document is returned.

    Raises:
        DescriptorError: a layer/tileset/animation record has the wrong shape
        ModelError: dimensions, opacity, blend mode, asset references,
            tile indexes, palette or animations are invalid
    """
    layers_raw = [parse_layer_record(obj, i) for i, obj in enumerate(raw.layers)]
    tilesets_raw = [parse_tileset_record(obj, i) for i, obj in enumerate(raw.tilesets)]
    fields = parse_document_fields(raw)

    uses_grid = bool(tilesets_raw) or any(layer.tile_refs for layer in layers_raw)
    _check_dimensions(raw, grid_aligned=uses_grid)
    columns = raw.canvas_width // raw.tile_width
    rows = raw.canvas_height // raw.tile_height

    blend_modes = [
        _check_layer(layer, i, accessor) for i, layer in enumerate(layers_raw)
    ]
    tilesets = [
        _resolve_tileset(ts, i, raw, accessor) for i, ts in enumerate(tilesets_raw)
    ]
    # Later declaration wins for duplicate IDs
    tileset_by_id: Dict[ElementId, Tileset] = {ts.id: ts for ts in tilesets}

    layers = [
        Layer(
            id=layer.id,
            name=layer.name,
            position=i,
            opacity=float(layer.opacity),
            visible=layer.visible,
            muted=layer.muted,
            soloed=layer.soloed,
            blend_mode=blend_mode,
            image=layer.image,
            tiles=_resolve_tile_refs(layer, f"layers[{i}]", tileset_by_id, columns, rows),
        )
        for i, (layer, blend_mode) in enumerate(zip(layers_raw, blend_modes))
    ]

    palette = _resolve_palette(fields.palette, fields.indexed_color)
    animations = [
        _resolve_animation(obj, i) for i, obj in enumerate(fields.animations)
    ]

    document = Document(
        version=SchemaVersion.parse(raw.version),
        name=fields.name,
        canvas_width=raw.canvas_width,
        canvas_height=raw.canvas_height,
        tile_width=raw.tile_width,
        tile_height=raw.tile_height,
        indexed_color=fields.indexed_color,
        layers=tuple(layers),
        tilesets=tuple(tilesets),
        palette=palette,
        animations=tuple(animations),
    )
    logger.debug(
        "Resolved document: %dx%d canvas, %d layers, %d tilesets, %d animations",
        document.canvas_width,
        document.canvas_height,
        len(document.layers),
        len(document.tilesets),
        len(document.animations),
    )
    return document


def _check_dimensions(raw: RawDescriptor, grid_aligned: bool) -> None:
    sizes = {
        "canvasWidth": raw.canvas_width,
        "canvasHeight": raw.canvas_height,
        "tileWidth": raw.tile_width,
        "tileHeight": raw.tile_height,
    }
    for field, value in sizes.items():
        if value <= 0:
            raise ModelError(
                ErrorCode.INVALID_DIMENSIONS,
                f"{field} must be a positive integer, got {value}",
                field=field,
            )

    if not grid_aligned:
        return
    if raw.canvas_width % raw.tile_width or raw.canvas_height % raw.tile_height:
        raise ModelError(
            ErrorCode.INVALID_DIMENSIONS,
            f"Canvas {raw.canvas_width}x{raw.canvas_height} is not a multiple of "
            f"tile size {raw.tile_width}x{raw.tile_height}",
            field="canvasWidth",
        )


def _require_entry(accessor: EntrySource, entry: str, field: str) -> None:
    if not accessor.entry_exists(entry):
        raise ModelError(
            ErrorCode.MISSING_ASSET,
            f"{field} references missing archive entry {entry!r}",
            entry=entry,
            field=field,
        )


def _resolve_tileset(
    ts: RawTileset, position: int, raw: RawDescriptor, accessor: EntrySource
) -> Tileset:
    prefix = f"tilesets[{position}]"
    if ts.tile_width != raw.tile_width or ts.tile_height != raw.tile_height:
        raise ModelError(
            ErrorCode.INVALID_DIMENSIONS,
            f"{prefix} tile size {ts.tile_width}x{ts.tile_height} does not match "
            f"document tile size {raw.tile_width}x{raw.tile_height}",
            field=f"{prefix}.tileWidth",
        )
    if ts.tile_count < 0:
        raise ModelError(
            ErrorCode.INVALID_DIMENSIONS,
            f"{prefix}.tileCount must not be negative, got {ts.tile_count}",
            field=f"{prefix}.tileCount",
        )
    _require_entry(accessor, ts.image, f"{prefix}.image")

    return Tileset(
        id=ts.id,
        tile_width=ts.tile_width,
        tile_height=ts.tile_height,
        tile_count=ts.tile_count,
        image=ts.image,
        tiles_wide=ts.tiles_wide,
        fixed_width=ts.fixed_width,
    )


def _check_layer(layer: RawLayer, position: int, accessor: EntrySource) -> BlendMode:
    """Validate a layer's scalar fields and image reference; return its blend mode."""
    prefix = f"layers[{position}]"

    if not 0.0 <= float(layer.opacity) <= 1.0:
        raise ModelError(
            ErrorCode.INVALID_OPACITY,
            f"{prefix}.opacity must be within 0.0..1.0, got {layer.opacity}",
            field=f"{prefix}.opacity",
        )

    blend_mode = _BLEND_MODES.get(layer.blend_mode)
    if blend_mode is None:
        raise ModelError(
            ErrorCode.UNKNOWN_BLEND_MODE,
            f"{prefix}.blendMode {layer.blend_mode!r} is not one of {sorted(_BLEND_MODES)}",
            field=f"{prefix}.blendMode",
            blend_mode=layer.blend_mode,
        )

    if layer.image is not None:
        _require_entry(accessor, layer.image, f"{prefix}.image")
    return blend_mode


def _resolve_tile_refs(
    layer: RawLayer,
    prefix: str,
    tileset_by_id: Dict[ElementId, Tileset],
    columns: int,
    rows: int,
) -> Tuple[TileRef, ...]:
    refs: List[TileRef] = []
    for cell in sorted(layer.tile_refs):
        ref = layer.tile_refs[cell]
        field = f"{prefix}.tileRefs.{cell}"
        if cell >= columns * rows:
            raise ModelError(
                ErrorCode.INVALID_DIMENSIONS,
                f"{field} lies outside the {columns}x{rows} tile grid",
                field=field,
            )

        tileset = tileset_by_id.get(ref.tileset)
        if tileset is None:
            raise ModelError(
                ErrorCode.MISSING_ASSET,
                f"{field} references unknown tileset {ref.tileset!r}",
                field=f"{field}.tileset",
                tileset=ref.tileset,
            )
        if not 0 <= ref.index < tileset.tile_count:
            raise ModelError(
                ErrorCode.TILE_INDEX_OUT_OF_RANGE,
                f"{field} tile index {ref.index} is out of range for tileset "
                f"{tileset.id!r} with {tileset.tile_count} tiles",
                field=f"{field}.index",
                tileset=tileset.id,
                index=ref.index,
                tile_count=tileset.tile_count,
            )

        y, x = divmod(cell, columns)
        refs.append(
            TileRef(
                cell=cell,
                x=x,
                y=y,
                tileset=tileset.id,
                index=ref.index,
                rot=ref.rot * 90.0,
                flip_x=ref.flip_x,
            )
        )
    return tuple(refs)


def _decode_color(entry: Any, field: str) -> Optional[Color]:
    if entry is None:
        return None
    try:
        if isinstance(entry, str):
            return Color.from_hex(entry)
        if isinstance(entry, list) and len(entry) == 4 and all(
            isinstance(c, int) and not isinstance(c, bool) for c in entry
        ):
            r, g, b, a = entry
            return Color(r=r, g=g, b=b, a=a)
    except ValueError as e:
        raise ModelError(
            ErrorCode.INVALID_COLOR,
            f"{field} is not a valid colour: {e}",
            field=field,
        ) from e
    raise ModelError(
        ErrorCode.INVALID_COLOR,
        f"{field} must be an AARRGGBB string or [r, g, b, a] list, got {entry!r}",
        field=field,
    )


def _resolve_palette(raw_palette: Optional[RawPalette], indexed: bool) -> Optional[Palette]:
    if raw_palette is None:
        palette = None
    else:
        colors = tuple(
            _decode_color(entry, f"palette.colors[{i}]")
            for i, entry in enumerate(raw_palette.colors)
        )
        palette = Palette(colors=colors, width=raw_palette.width, height=raw_palette.height)

    if indexed and (palette is None or palette.num_colors == 0):
        raise ModelError(
            ErrorCode.EMPTY_PALETTE,
            "Indexed-colour document must declare a non-empty palette",
            field="palette",
        )
    return palette


def _resolve_animation(obj: Dict[str, Any], position: int) -> Animation:
    anim = parse_animation_record(obj, position)
    prefix = f"animations[{position}]"

    if anim.length < 1:
        raise ModelError(
            ErrorCode.INVALID_ANIMATION,
            f"{prefix}.length must be at least 1, got {anim.length}",
            field=f"{prefix}.length",
        )
    if anim.frame_duration < 0 or anim.base_tile < 0:
        raise ModelError(
            ErrorCode.INVALID_ANIMATION,
            f"{prefix} frameDuration and baseTile must not be negative",
            field=prefix,
        )

    if anim.frame_duration_multipliers is None:
        multipliers = (1.0,) * anim.length
    else:
        if len(anim.frame_duration_multipliers) != anim.length:
            raise ModelError(
                ErrorCode.INVALID_ANIMATION,
                f"{prefix} has {len(anim.frame_duration_multipliers)} frame duration "
                f"multipliers for {anim.length} frames",
                field=f"{prefix}.frameDurationMultipliers",
            )
        multipliers = tuple(m / 100.0 for m in anim.frame_duration_multipliers)

    return Animation(
        name=anim.name,
        base_tile=anim.base_tile,
        length=anim.length,
        frame_duration=timedelta(milliseconds=anim.frame_duration),
        frame_duration_multipliers=multipliers,
    )
