"""Decode referenced PNG entries into pixel buffers."""

import io
import logging

import numpy as np
import PIL.Image

from pyxeldoc._internal.io.archive import EntrySource
from pyxeldoc.codes import ErrorCode
from pyxeldoc.errors import ModelError
from pyxeldoc.kernel.document import Document, RasterAsset

logger = logging.getLogger(__name__)


def decode_image(entry: str, data: bytes) -> RasterAsset:
    """
    Decode image bytes into an RGBA RasterAsset.

    :param entry: The archive entry the bytes came from, used in errors
    :param data: The encoded image (PNG for .pyxel archives)
    :return: A RasterAsset owning a read-only pixel array
    """
    try:
        with PIL.Image.open(io.BytesIO(data)) as handle:
            handle.load()
            rgba = handle.convert("RGBA")
    except (PIL.UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        # Pillow reports truncated or damaged streams as OSError/SyntaxError
        raise ModelError(
            ErrorCode.IMAGE_DECODE_FAILED,
            f"Cannot decode image entry {entry!r}: {e}",
            entry=entry,
        ) from e

    pixels = np.asarray(rgba, dtype=np.uint8).copy()
    pixels.setflags(write=False)
    return RasterAsset(
        entry=entry,
        width=rgba.width,
        height=rgba.height,
        mode="RGBA",
        pixels=pixels,
    )


def materialize_document(document: Document, accessor: EntrySource) -> Document:
    """Return a copy of ``document`` with a RasterAsset attached to every
    layer and tileset that references an image entry.

    Elements are decoded in document order; the first failure is raised.
    """
    layers = []
    for layer in document.layers:
        if layer.image is None:
            layers.append(layer)
            continue
        raster = decode_image(layer.image, accessor.read_entry(layer.image))
        logger.debug("Decoded layer %r from %s (%dx%d)", layer.name, layer.image, raster.width, raster.height)
        layers.append(layer.model_copy(update={"raster": raster}))

    tilesets = []
    for tileset in document.tilesets:
        raster = decode_image(tileset.image, accessor.read_entry(tileset.image))
        logger.debug("Decoded tileset %r from %s (%dx%d)", tileset.id, tileset.image, raster.width, raster.height)
        tilesets.append(tileset.model_copy(update={"raster": raster}))

    return document.model_copy(update={"layers": tuple(layers), "tilesets": tuple(tilesets)})
