"""pyxeldoc: read-only loader for PyxelEdit .pyxel documents."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("pyxeldoc")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from pyxeldoc.api import open, load, load_from_memory, load_document, METADATA_ENTRY
from pyxeldoc._internal.io.archive import ArchiveAccessor, EntrySource
from pyxeldoc.codes import ErrorCode
from pyxeldoc.contracts import OpenOptions
from pyxeldoc.errors import ArchiveError, DescriptorError, ModelError, OpenError, VersionError
from pyxeldoc.kernel.document import (
    Animation,
    BlendMode,
    Color,
    Document,
    Layer,
    Palette,
    RasterAsset,
    TileRef,
    Tileset,
)
from pyxeldoc.kernel.version import SUPPORTED_VERSION, SchemaVersion

__all__ = [
    "__version__",
    "open",
    "load",
    "load_from_memory",
    "load_document",
    "METADATA_ENTRY",
    "SUPPORTED_VERSION",
    "ArchiveAccessor",
    "EntrySource",
    "OpenOptions",
    "ErrorCode",
    "OpenError",
    "ArchiveError",
    "DescriptorError",
    "VersionError",
    "ModelError",
    "Document",
    "Layer",
    "Tileset",
    "Palette",
    "Color",
    "BlendMode",
    "TileRef",
    "Animation",
    "RasterAsset",
    "SchemaVersion",
]
