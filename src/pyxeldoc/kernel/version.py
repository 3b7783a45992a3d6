"""Schema version model and the exact-match version gate."""

import re

from pydantic import BaseModel, ConfigDict, NonNegativeInt

from pyxeldoc._internal.schemas.descriptor_schema import RawDescriptor
from pyxeldoc.codes import ErrorCode
from pyxeldoc.errors import VersionError

# Only PyxelEdit 0.4.8 documents are accepted. Blend mode names and the
# tile ref encoding are not stable across releases, so other versions are
# rejected rather than parsed on a best-effort basis.
SUPPORTED_VERSION = "0.4.8"

_SEMVER_RE = re.compile(r"(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)")


class SchemaVersion(BaseModel):
    """A major.minor.patch triple."""
    major: NonNegativeInt
    minor: NonNegativeInt
    patch: NonNegativeInt

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def parse(cls, text: str) -> "SchemaVersion":
        """Parse ``"X.Y.Z"``; raises ValueError for anything else."""
        m = _SEMVER_RE.fullmatch(text)
        if m is None:
            raise ValueError(f"Not a semantic version triple: {text!r}")
        return cls(major=int(m.group(1)), minor=int(m.group(2)), patch=int(m.group(3)))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


SUPPORTED_SCHEMA_VERSION = SchemaVersion.parse(SUPPORTED_VERSION)


def validate_version(raw: RawDescriptor) -> RawDescriptor:
    """Pass ``raw`` through unchanged if it declares the supported version.

    Raises:
        VersionError: UNSUPPORTED_VERSION with ``found_version`` and
            ``accepted_version`` details.
    """
    # Exact string match: no whitespace, padding or alternate digit forms
    if raw.version != SUPPORTED_VERSION:
        raise VersionError(
            ErrorCode.UNSUPPORTED_VERSION,
            f"Unsupported schema version {raw.version!r}. Supported: {SUPPORTED_VERSION!r}",
            found_version=raw.version,
            accepted_version=SUPPORTED_VERSION,
        )
    return raw
