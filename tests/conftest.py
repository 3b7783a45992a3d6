"""Pytest configuration and archive-building fixtures.

No sys.path hacks - tests import from the installed pyxeldoc package.
Archives are built on the fly in tmp_path so every test owns its input.
"""

import copy
import io
import json
import zipfile
from pathlib import Path

import PIL.Image
import pytest

from pyxeldoc import ArchiveAccessor

BASE_DESCRIPTOR = {
    "version": "0.4.8",
    "canvasWidth": 64,
    "canvasHeight": 32,
    "tileWidth": 8,
    "tileHeight": 8,
    "layers": [
        {"id": 1, "name": "bg", "opacity": 1.0, "visible": True, "blendMode": "normal"}
    ],
    "tilesets": [],
}


def build_archive_bytes(descriptor, images=None, metadata_entry="docData.json") -> bytes:
    """Zip a descriptor (dict, or raw bytes) plus named image entries."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        if descriptor is not None:
            payload = descriptor if isinstance(descriptor, bytes) else json.dumps(descriptor).encode("utf-8")
            zf.writestr(metadata_entry, payload)
        for name, data in (images or {}).items():
            zf.writestr(name, data)
    return buf.getvalue()


def mark_encrypted(data: bytes) -> bytes:
    """Set the encryption flag on every local and central header of an archive."""
    raw = bytearray(data)
    for signature, flag_offset in ((b"PK\x03\x04", 6), (b"PK\x01\x02", 8)):
        pos = raw.find(signature)
        while pos != -1:
            raw[pos + flag_offset] |= 0x01
            pos = raw.find(signature, pos + 4)
    return bytes(raw)


def make_png(width: int, height: int, color=(255, 0, 0, 255)) -> bytes:
    """Encode a solid RGBA PNG."""
    image = PIL.Image.new("RGBA", (width, height), color)
    out = io.BytesIO()
    image.save(out, format="PNG")
    return out.getvalue()


class CountingAccessor:
    """Wraps an ArchiveAccessor and records every entry read."""

    def __init__(self, inner: ArchiveAccessor):
        self.inner = inner
        self.reads = []
        self.exists_checks = []

    def entry_exists(self, name: str) -> bool:
        self.exists_checks.append(name)
        return self.inner.entry_exists(name)

    def read_entry(self, name: str) -> bytes:
        self.reads.append(name)
        return self.inner.read_entry(name)


@pytest.fixture
def descriptor():
    """A fresh copy of the minimal valid descriptor."""
    return copy.deepcopy(BASE_DESCRIPTOR)


@pytest.fixture
def png():
    return make_png


@pytest.fixture
def archive_bytes():
    return build_archive_bytes


@pytest.fixture
def encrypted_archive_bytes():
    """Factory: stored archive of named entries, all flagged as encrypted."""
    def _build(entries) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_STORED) as zf:
            for name, data in entries.items():
                zf.writestr(name, data)
        return mark_encrypted(buf.getvalue())
    return _build


@pytest.fixture
def write_pyxel(tmp_path):
    """Factory: write a .pyxel archive into tmp_path and return its path."""
    def _write(descriptor, images=None, name="doc.pyxel", metadata_entry="docData.json") -> Path:
        path = tmp_path / name
        path.write_bytes(build_archive_bytes(descriptor, images, metadata_entry))
        return path
    return _write


@pytest.fixture
def counting_accessor():
    """Factory: open archive bytes behind a CountingAccessor."""
    opened = []

    def _open(buf: bytes) -> CountingAccessor:
        inner = ArchiveAccessor.from_bytes(buf)
        opened.append(inner)
        return CountingAccessor(inner)

    yield _open
    for inner in opened:
        inner.close()
