"""The player's position, heading and movement."""

from __future__ import annotations

import math
from dataclasses import dataclass

from raycaster.defs import MINIMAP_SCALE_FACTOR, PI, WINDOW_HEIGHT, WINDOW_WIDTH
from raycaster.graphics import ColorBuffer
from raycaster.map import GameMap

__all__ = ["Player"]


@dataclass
class Player:
    """Player state; directions are -1, 0 or +1 and angles are radians."""

    x: float = WINDOW_WIDTH // 2
    y: float = WINDOW_HEIGHT // 2
    width: float = 5
    height: float = 5
    turn_direction: int = 0
    walk_direction: int = 0
    rotation_angle: float = PI / 2
    walk_speed: float = 100
    turn_speed: float = 45 * (PI / 180)

    def move(self, delta_time: float, game_map: GameMap) -> None:
        """Turn and walk for ``delta_time`` seconds unless the step lands in a wall."""
        self.rotation_angle += self.turn_direction * self.turn_speed * delta_time
        step = self.walk_direction * self.walk_speed * delta_time
        new_x = self.x + math.cos(self.rotation_angle) * step
        new_y = self.y + math.sin(self.rotation_angle) * step
        if not game_map.has_wall_at(new_x, new_y):
            self.x = new_x
            self.y = new_y

    def render(self, buffer: ColorBuffer) -> None:
        """Draw the player as a small square on the minimap."""
        buffer.draw_rect(
            self.x * MINIMAP_SCALE_FACTOR,
            self.y * MINIMAP_SCALE_FACTOR,
            self.width * MINIMAP_SCALE_FACTOR,
            self.height * MINIMAP_SCALE_FACTOR,
            0xFFFFFFFF,
        )