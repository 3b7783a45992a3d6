"""Public API for pyxeldoc.

High-level functions that open a .pyxel archive and return a complete,
immutable Document. Callers should use these functions instead of importing
from _internal.
"""

import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional, Union

from pyxeldoc._internal.io.archive import ArchiveAccessor, EntrySource
from pyxeldoc._internal.schemas.descriptor_schema import parse_descriptor
from pyxeldoc.contracts import OpenOptions
from pyxeldoc.kernel.document import Document
from pyxeldoc.kernel.materialize import materialize_document
from pyxeldoc.kernel.resolver import resolve_document
from pyxeldoc.kernel.version import validate_version

logger = logging.getLogger(__name__)

# Name of the descriptor entry inside every .pyxel archive
METADATA_ENTRY = "docData.json"


def _normalize_path(path: Union[str, os.PathLike, Path]) -> Path:
    """Normalize path input to Path object."""
    return Path(path) if not isinstance(path, Path) else path


def load_document(accessor: EntrySource, options: Optional[OpenOptions] = None) -> Document:
    """
    Run the full loading pipeline over an already opened archive.

    Args:
        accessor: Any object providing entry_exists/read_entry
        options: Loading options (defaults to OpenOptions())

    Returns:
        The resolved Document, with pixel buffers attached when
        ``options.materialize_images`` is set

    Raises:
        ArchiveError, DescriptorError, VersionError, ModelError
    """
    options = options or OpenOptions()

    raw = parse_descriptor(accessor.read_entry(METADATA_ENTRY))
    logger.debug("Descriptor declares version %s", raw.version)
    raw = validate_version(raw)
    document = resolve_document(raw, accessor)

    if options.materialize_images:
        document = materialize_document(document, accessor)
    return document


def open(path: Union[str, os.PathLike, Path], *, materialize_images: bool = False) -> Document:
    """
    Open the .pyxel document located at ``path``.

    Args:
        path: Path to the archive
        materialize_images: Decode every referenced image into pixels

    Returns:
        The resolved Document

    Example:
        >>> doc = pyxeldoc.open("sprites.pyxel")  # doctest: +SKIP
        >>> [layer.name for layer in doc.layers]  # doctest: +SKIP
    """
    options = OpenOptions(materialize_images=materialize_images)
    with ArchiveAccessor.open(_normalize_path(path)) as accessor:
        return load_document(accessor, options)


def load(fp: BinaryIO, *, materialize_images: bool = False) -> Document:
    """Load a document from a seekable binary file object."""
    options = OpenOptions(materialize_images=materialize_images)
    with ArchiveAccessor.from_fileobj(fp) as accessor:
        return load_document(accessor, options)


def load_from_memory(buf: bytes, *, materialize_images: bool = False) -> Document:
    """Load a document from the bytes of a .pyxel archive."""
    options = OpenOptions(materialize_images=materialize_images)
    with ArchiveAccessor.from_bytes(buf) as accessor:
        return load_document(accessor, options)
