"""The tile grid the player moves through."""

from __future__ import annotations

import math
from collections.abc import Sequence

from raycaster.defs import MINIMAP_SCALE_FACTOR, TILE_SIZE
from raycaster.graphics import ColorBuffer

__all__ = ["DEFAULT_GRID", "GameMap"]

DEFAULT_GRID = (
    (1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1),
    (1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0, 1),
    (1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 8, 0, 0, 0, 1),
    (1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1),
    (1, 0, 0, 0, 2, 2, 0, 3, 0, 4, 0, 5, 0, 6, 0, 0, 0, 0, 0, 1),
    (1, 0, 0, 0, 0, 0, 0, 3, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1),
    (1, 0, 0, 0, 0, 0, 0, 3, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1),
    (1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 7, 0, 0, 0, 0, 0, 1),
    (1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 5),
    (1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 5),
    (1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 5),
    (1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 5),
    (1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 5, 5, 5, 5, 5, 5),
)

_WALL_COLOR = 0xFFFFFFFF
_FLOOR_COLOR = 0x00000000


class GameMap:
    """A rectangular grid of tiles; zero is empty, any other value is a wall texture."""

    def __init__(self, grid: Sequence[Sequence[int]] = DEFAULT_GRID) -> None:
        rows = tuple(tuple(row) for row in grid)
        if not rows or not rows[0]:
            raise ValueError("map grid must not be empty")
        if any(len(row) != len(rows[0]) for row in rows):
            raise ValueError("map grid rows must all have the same length")
        self.grid = rows
        self.rows = len(rows)
        self.cols = len(rows[0])

    @property
    def pixel_width(self) -> int:
        return self.cols * TILE_SIZE

    @property
    def pixel_height(self) -> int:
        return self.rows * TILE_SIZE

    def has_wall_at(self, x: float, y: float) -> bool:
        """Whether world point (x, y) lies in a wall; points outside the map count as walls."""
        if x < 0 or x >= self.pixel_width or y < 0 or y >= self.pixel_height:
            return True
        return self.grid[math.floor(y / TILE_SIZE)][math.floor(x / TILE_SIZE)] != 0

    def is_inside(self, x: float, y: float) -> bool:
        """Whether (x, y) lies within the map, its far edges included."""
        return 0 <= x <= self.pixel_width and 0 <= y <= self.pixel_height

    def content_at(self, row: int, col: int) -> int:
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise IndexError(f"tile ({row}, {col}) is outside the map")
        return self.grid[row][col]

    def render(self, buffer: ColorBuffer) -> None:
        """Draw the map as a scaled-down minimap in the buffer's top-left corner."""
        size = TILE_SIZE * MINIMAP_SCALE_FACTOR
        for i, row in enumerate(self.grid):
            for j, content in enumerate(row):
                buffer.draw_rect(
                    j * TILE_SIZE * MINIMAP_SCALE_FACTOR,
                    i * TILE_SIZE * MINIMAP_SCALE_FACTOR,
                    size,
                    size,
                    _WALL_COLOR if content != 0 else _FLOOR_COLOR,
                )