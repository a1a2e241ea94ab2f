"""Result metadata models."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


def themed_icon_string(*names: str) -> str:
    """Serialize a named icon with fallbacks the way icon descriptors are exchanged."""
    if len(names) == 1:
        return names[0]
    return " ".join([".", "GThemedIcon", *names])


def file_icon_string(path: Path) -> str:
    """Serialize an icon backed by a local image file, as its path."""
    return str(path)


class IconData(BaseModel):
    """Raw pixel image used when no icon descriptor is available."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    rowstride: int
    has_alpha: bool = True
    bits_per_sample: int = 8
    n_channels: int = 4
    pixels: bytes = b""

    @classmethod
    def blank(cls, size: int) -> IconData:
        """A fully transparent square RGBA image."""
        rowstride = size * 4
        return cls(width=size, height=size, rowstride=rowstride, pixels=bytes(rowstride * size))

    def to_wire(self) -> tuple[int, int, int, bool, int, int, bytes]:
        return (
            self.width,
            self.height,
            self.rowstride,
            self.has_alpha,
            self.bits_per_sample,
            self.n_channels,
            self.pixels,
        )


class ResultMeta(BaseModel):
    """Display metadata for a single result identifier. Never mutated once built."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    gicon: str | None = None
    icon_data: IconData | None = Field(default=None)

    @model_validator(mode="after")
    def _check_single_icon(self) -> ResultMeta:
        if (self.gicon is None) == (self.icon_data is None):
            raise ValueError("ResultMeta needs exactly one of gicon or icon_data")
        return self

    def to_wire(self) -> dict[str, Any]:
        """Mapping with ``id``, ``name`` and either ``gicon`` or ``icon-data``."""
        wire: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.icon_data is not None:
            wire["icon-data"] = self.icon_data.to_wire()
        else:
            wire["gicon"] = self.gicon
        return wire
