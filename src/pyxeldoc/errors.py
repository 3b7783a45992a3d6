"""Exception hierarchy for document loading.

Every failure raised by ``pyxeldoc.open`` is an ``OpenError``. The concrete
subclass names the stage that failed; ``code`` names the exact kind and
``details`` carries the offending entry/field/version so callers can report
the problem without re-parsing anything.
"""

from typing import Any, Dict, Optional

from pyxeldoc.codes import ErrorCode


class OpenError(ValueError):
    """Base class for all document loading failures."""

    def __init__(self, code: ErrorCode, message: str, **details: Any):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: Dict[str, Any] = details

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.value!r}, {self.message!r})"


class ArchiveError(OpenError):
    """Raised when the container cannot be opened or an entry cannot be read."""

    @property
    def entry(self) -> Optional[str]:
        return self.details.get("entry")


class DescriptorError(OpenError):
    """Raised when the metadata entry is not well-formed or has the wrong shape."""

    @property
    def field(self) -> Optional[str]:
        return self.details.get("field")


class VersionError(OpenError):
    """Raised when the descriptor declares a schema version other than the supported one."""

    @property
    def found_version(self) -> Optional[str]:
        return self.details.get("found_version")

    @property
    def accepted_version(self) -> Optional[str]:
        return self.details.get("accepted_version")


class ModelError(OpenError):
    """Raised when a well-shaped descriptor violates document invariants."""

    @property
    def entry(self) -> Optional[str]:
        return self.details.get("entry")

    @property
    def field(self) -> Optional[str]:
        return self.details.get("field")
