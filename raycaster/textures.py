"""Wall textures loaded from PNG files."""

from __future__ import annotations

import os
import sys
from array import array
from collections.abc import Sequence
from dataclasses import dataclass

from raycaster.png import PixelFormat, PngError, PngImage

__all__ = ["TEXTURE_FILE_NAMES", "Texture", "load_wall_textures"]

TEXTURE_FILE_NAMES = (
    "redbrick.png",
    "purplestone.png",
    "mossystone.png",
    "graystone.png",
    "colorstone.png",
    "bluestone.png",
    "wood.png",
    "eagle.png",
)


@dataclass
class Texture:
    """A grid of 32-bit colours whose little-endian bytes read red, green, blue, alpha."""

    width: int
    height: int
    pixels: Sequence[int]

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("texture dimensions must be positive")
        if len(self.pixels) != self.width * self.height:
            raise ValueError("pixel count does not match texture dimensions")

    @classmethod
    def from_png(cls, image: PngImage) -> Texture:
        """Decode ``image`` (which must be 8-bit RGBA) into a texture."""
        data = image.decode()
        if image.format is not PixelFormat.RGBA8:
            raise ValueError(f"texture must be 8-bit RGBA, not {image.format.name}")
        pixels = array("I")
        pixels.frombytes(data)
        if sys.byteorder == "big":
            pixels.byteswap()
        return cls(image.width, image.height, pixels)

    def texel(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"texel ({x}, {y}) is outside the texture")
        return self.pixels[self.width * y + x]


def load_wall_textures(directory: str | os.PathLike[str] = "images") -> list[Texture | None]:
    """Load the wall textures; a file that cannot be read leaves ``None`` in its place."""
    textures: list[Texture | None] = []
    for name in TEXTURE_FILE_NAMES:
        try:
            textures.append(Texture.from_png(PngImage.from_file(os.path.join(directory, name))))
        except (PngError, ValueError):
            textures.append(None)
    return textures