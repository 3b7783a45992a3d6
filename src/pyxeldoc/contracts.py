"""Public option models for pyxeldoc."""

from pydantic import BaseModel, ConfigDict


class OpenOptions(BaseModel):
    """Per-call loading options.

    materialize_images: decode every referenced PNG entry into a pixel buffer.
    When False (default) layers and tilesets carry only the entry name and no
    image bytes are read at all.
    """
    materialize_images: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")
