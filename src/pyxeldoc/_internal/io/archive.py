"""Zip archive access for .pyxel containers."""

from __future__ import annotations

import io
import logging
import os
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO, List, Optional, Protocol, Union

from pyxeldoc.codes import ErrorCode
from pyxeldoc.errors import ArchiveError

logger = logging.getLogger(__name__)


class EntrySource(Protocol):
    """Anything that can answer for named archive entries."""

    def entry_exists(self, name: str) -> bool:
        """Return True if an entry with exactly this name exists."""

    def read_entry(self, name: str) -> bytes:
        """Return the decompressed bytes of the named entry."""


class ArchiveAccessor:
    """Read-only view over an opened zip container.

    Holds the underlying ``ZipFile`` for its own lifetime; use it as a
    context manager (or call ``close``) to release the handle.
    """

    def __init__(self, zf: zipfile.ZipFile, source: str = "<memory>"):
        self._zip = zf
        self._names = frozenset(zf.namelist())
        self.source = source

    @classmethod
    def open(cls, path: Union[str, os.PathLike, Path]) -> "ArchiveAccessor":
        """Open the archive at ``path``."""
        archive_path = Path(path)
        try:
            zf = zipfile.ZipFile(archive_path, "r")
        except zipfile.BadZipFile as e:
            raise ArchiveError(
                ErrorCode.INVALID_ARCHIVE,
                f"Not a valid zip container: {archive_path}",
                path=str(archive_path),
            ) from e
        except OSError as e:
            raise ArchiveError(
                ErrorCode.OPEN_FAILED,
                f"Cannot open {archive_path}: {e.strerror or e}",
                path=str(archive_path),
            ) from e
        logger.debug("Opened archive %s (%d entries)", archive_path, len(zf.namelist()))
        return cls(zf, source=str(archive_path))

    @classmethod
    def from_fileobj(cls, fp: BinaryIO, source: Optional[str] = None) -> "ArchiveAccessor":
        """Wrap a seekable binary file object."""
        label = source or getattr(fp, "name", None) or "<stream>"
        try:
            zf = zipfile.ZipFile(fp, "r")
        except (zipfile.BadZipFile, EOFError) as e:
            raise ArchiveError(
                ErrorCode.INVALID_ARCHIVE,
                f"Not a valid zip container: {label}",
                path=str(label),
            ) from e
        except (OSError, ValueError) as e:
            # ValueError: closed stream
            raise ArchiveError(
                ErrorCode.OPEN_FAILED,
                f"Cannot read {label}: {e}",
                path=str(label),
            ) from e
        return cls(zf, source=str(label))

    @classmethod
    def from_bytes(cls, buf: bytes) -> "ArchiveAccessor":
        """Wrap an in-memory archive."""
        return cls.from_fileobj(io.BytesIO(buf), source="<memory>")

    def entry_names(self) -> List[str]:
        """Return all entry names, sorted."""
        return sorted(self._names)

    def entry_exists(self, name: str) -> bool:
        return name in self._names

    def read_entry(self, name: str) -> bytes:
        if name not in self._names:
            raise ArchiveError(
                ErrorCode.MISSING_ENTRY,
                f"Archive has no entry named {name!r}",
                entry=name,
            )
        try:
            return self._zip.read(name)
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
            # BadZipFile: CRC mismatch; NotImplementedError: unknown compression;
            # RuntimeError: encrypted entry
            raise ArchiveError(
                ErrorCode.CORRUPT_ENTRY,
                f"Cannot decompress entry {name!r}: {e}",
                entry=name,
            ) from e

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> "ArchiveAccessor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ArchiveAccessor({self.source!r}, entries={len(self._names)})"
