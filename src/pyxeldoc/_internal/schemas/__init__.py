"""Shape parsers for the docData.json descriptor.

This module provides parsers that produce loosely-typed, shape-checked
views of the descriptor. Interpretation of values happens in the kernel.
"""

from .descriptor_schema import (
    RawAnimation,
    RawDescriptor,
    RawDocumentFields,
    RawLayer,
    RawPalette,
    RawTileRef,
    RawTileset,
    parse_animation_record,
    parse_descriptor,
    parse_document_fields,
    parse_layer_record,
    parse_tileset_record,
)

__all__ = [
    "RawAnimation",
    "RawDescriptor",
    "RawDocumentFields",
    "RawLayer",
    "RawPalette",
    "RawTileRef",
    "RawTileset",
    "parse_animation_record",
    "parse_descriptor",
    "parse_document_fields",
    "parse_layer_record",
    "parse_tileset_record",
]
