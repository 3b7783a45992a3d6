"""Tests for image materialization."""

import numpy as np
import pytest

from pyxeldoc import ErrorCode, ModelError, OpenOptions, load_document
from pyxeldoc.kernel.materialize import decode_image


def test_decode_image_produces_readonly_rgba(png):
    asset = decode_image("layer0.png", png(5, 3, (10, 20, 30, 40)))
    assert (asset.width, asset.height, asset.mode) == (5, 3, "RGBA")
    assert asset.pixels.shape == (3, 5, 4)
    assert asset.pixels.dtype == np.uint8
    assert tuple(asset.pixels[0, 0]) == (10, 20, 30, 40)
    with pytest.raises(ValueError):
        asset.pixels[0, 0, 0] = 0


def test_decode_image_failure_names_entry():
    with pytest.raises(ModelError) as excinfo:
        decode_image("layer3.png", b"\x89PNG\r\n\x1a\nnot really a png")
    assert excinfo.value.code == ErrorCode.IMAGE_DECODE_FAILED
    assert excinfo.value.entry == "layer3.png"


def test_materialized_sizes_match_entries(descriptor, archive_bytes, counting_accessor, png):
    descriptor["layers"] = [
        {"id": 0, "name": "bg", "opacity": 1.0, "visible": True, "blendMode": "normal", "image": "layer0.png"},
        {"id": 1, "name": "notes", "opacity": 0.5, "visible": False, "blendMode": "multiply"},
    ]
    descriptor["tilesets"] = [
        {"id": 0, "tileWidth": 8, "tileHeight": 8, "tileCount": 6, "image": "tileset0.png"}
    ]
    buf = archive_bytes(descriptor, images={"layer0.png": png(64, 32), "tileset0.png": png(24, 16)})
    accessor = counting_accessor(buf)

    doc = load_document(accessor, OpenOptions(materialize_images=True))

    assert doc.is_materialized
    bg, notes = doc.layers
    assert (bg.raster.width, bg.raster.height) == (64, 32)
    assert bg.raster.entry == "layer0.png"
    assert notes.raster is None
    tileset = doc.tilesets[0]
    assert (tileset.raster.width, tileset.raster.height) == (24, 16)
    assert accessor.reads == ["docData.json", "layer0.png", "tileset0.png"]


def test_disabled_materialization_reads_no_images(descriptor, archive_bytes, counting_accessor, png):
    descriptor["layers"][0]["image"] = "layer0.png"
    descriptor["tilesets"] = [
        {"id": 0, "tileWidth": 8, "tileHeight": 8, "tileCount": 1, "image": "tileset0.png"}
    ]
    buf = archive_bytes(descriptor, images={"layer0.png": png(64, 32), "tileset0.png": png(8, 8)})
    accessor = counting_accessor(buf)

    doc = load_document(accessor)

    assert accessor.reads == ["docData.json"]
    assert set(accessor.exists_checks) == {"layer0.png", "tileset0.png"}
    assert doc.layers[0].image == "layer0.png"
    assert doc.layers[0].raster is None
    assert doc.tilesets[0].raster is None
    assert not doc.is_materialized


def test_corrupt_image_fails_whole_open(descriptor, archive_bytes, counting_accessor):
    descriptor["layers"][0]["image"] = "layer0.png"
    buf = archive_bytes(descriptor, images={"layer0.png": b"garbage"})

    with pytest.raises(ModelError) as excinfo:
        load_document(counting_accessor(buf), OpenOptions(materialize_images=True))
    assert excinfo.value.code == ErrorCode.IMAGE_DECODE_FAILED
    assert excinfo.value.entry == "layer0.png"

    # Same archive opens fine when pixels are not requested
    doc = load_document(counting_accessor(buf))
    assert doc.layers[0].image == "layer0.png"
