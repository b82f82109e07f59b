"""An in-memory colour buffer and the window that shows it."""

from __future__ import annotations

import math
import sys
from array import array

import pygame

from raycaster.defs import WINDOW_HEIGHT, WINDOW_WIDTH

__all__ = ["ColorBuffer", "Window"]


def _round_half_away(value: float) -> int:
    magnitude = math.floor(abs(value) + 0.5)
    return -magnitude if value < 0 else magnitude


class ColorBuffer:
    """A width x height grid of 32-bit colours stored row by row.

    Colours are packed so that, stored little-endian, their bytes read
    red, green, blue, alpha.
    """

    def __init__(self, width: int = WINDOW_WIDTH, height: int = WINDOW_HEIGHT) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("buffer dimensions must be positive")
        self.width = width
        self.height = height
        self.pixels = array("I", [0]) * (width * height)

    def clear(self, color: int) -> None:
        """Set every pixel to ``color``."""
        self.pixels = array("I", [color]) * (self.width * self.height)

    def _check(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) is outside the buffer")

    def draw_pixel(self, x: int, y: int, color: int) -> None:
        x, y = int(x), int(y)
        self._check(x, y)
        self.pixels[self.width * y + x] = color

    def draw_rect(self, x: float, y: float, width: float, height: float, color: int) -> None:
        """Fill the rectangle from (x, y) to (x + width, y + height), both ends included."""
        x, y, width, height = int(x), int(y), int(width), int(height)
        if width < 0 or height < 0:
            return
        self._check(x, y)
        self._check(x + width, y + height)
        row = array("I", [color]) * (width + 1)
        for j in range(y, y + height + 1):
            start = self.width * j + x
            self.pixels[start:start + width + 1] = row

    def draw_line(self, x0: float, y0: float, x1: float, y1: float, color: int) -> None:
        """Draw a DDA line from (x0, y0) towards (x1, y1), excluding the end point."""
        x0, y0, x1, y1 = int(x0), int(y0), int(x1), int(y1)
        delta_x = x1 - x0
        delta_y = y1 - y0
        steps = max(abs(delta_x), abs(delta_y))
        if steps == 0:
            return
        x_step = delta_x / steps
        y_step = delta_y / steps
        current_x, current_y = float(x0), float(y0)
        for _ in range(steps):
            self.draw_pixel(_round_half_away(current_x), _round_half_away(current_y), color)
            current_x += x_step
            current_y += y_step

    def to_bytes(self) -> bytes:
        """Return the pixels as RGBA bytes, row by row."""
        data = array("I", self.pixels)
        if sys.byteorder == "big":
            data.byteswap()
        return data.tobytes()


class Window:
    """A borderless full-screen window that shows a stretched colour buffer."""

    def __init__(self) -> None:
        pygame.init()
        try:
            info = pygame.display.Info()
            self.width = info.current_w
            self.height = info.current_h
            self.screen = pygame.display.set_mode((self.width, self.height), pygame.NOFRAME)
        except pygame.error:
            pygame.quit()
            raise

    def present(self, buffer: ColorBuffer) -> None:
        """Copy ``buffer`` to the screen, scaled to the window size."""
        surface = pygame.image.frombuffer(
            buffer.to_bytes(), (buffer.width, buffer.height), "RGBA"
        )
        scaled = pygame.transform.scale(surface, self.screen.get_size())
        self.screen.blit(scaled, (0, 0))
        pygame.display.flip()

    def close(self) -> None:
        pygame.quit()

    def __enter__(self) -> Window:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()