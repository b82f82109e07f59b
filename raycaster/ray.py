"""Casting rays from the player to the nearest wall."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from raycaster.defs import DIST_PROJ_PLANE, MINIMAP_SCALE_FACTOR, NUM_RAYS, PI, TILE_SIZE, TWO_PI
from raycaster.graphics import ColorBuffer
from raycaster.map import GameMap
from raycaster.player import Player

__all__ = [
    "Ray",
    "normalize_angle",
    "distance_between_points",
    "cast_ray",
    "cast_all_rays",
    "render_rays",
]

_RAY_COLOR = 0xFF0000FF
_RAY_RENDER_STRIDE = 50


@dataclass
class Ray:
    """Where one ray met a wall, and how it got there."""

    ray_angle: float
    wall_hit_x: float
    wall_hit_y: float
    distance: float
    was_hit_vertical: bool
    wall_hit_content: int


def normalize_angle(angle: float) -> float:
    """Bring ``angle`` into the range [0, 2*pi)."""
    angle = math.remainder(angle, TWO_PI)
    if angle < 0:
        angle += TWO_PI
    return angle


def distance_between_points(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def _content_at_point(game_map: GameMap, x: float, y: float) -> int:
    row = min(max(math.floor(y / TILE_SIZE), 0), game_map.rows - 1)
    col = min(max(math.floor(x / TILE_SIZE), 0), game_map.cols - 1)
    return game_map.content_at(row, col)


def _first_hit(
    game_map: GameMap,
    x: float,
    y: float,
    step_x: float,
    step_y: float,
    check_dx: float,
    check_dy: float,
) -> tuple[float, float, int] | None:
    """Walk grid intersections until one borders a wall; return the hit and its content."""
    while game_map.is_inside(x, y):
        check_x = x + check_dx
        check_y = y + check_dy
        if game_map.has_wall_at(check_x, check_y):
            return x, y, _content_at_point(game_map, check_x, check_y)
        x += step_x
        y += step_y
    return None


def cast_ray(ray_angle: float, player: Player, game_map: GameMap) -> Ray:
    """Cast one ray at ``ray_angle`` from the player and return its nearest wall hit."""
    ray_angle = normalize_angle(ray_angle)

    facing_down = 0 < ray_angle < PI
    facing_up = not facing_down
    facing_right = ray_angle < 0.5 * PI or ray_angle > 1.5 * PI
    facing_left = not facing_right

    tangent = math.tan(ray_angle)

    horizontal = None
    if tangent != 0:
        y_intercept = math.floor(player.y / TILE_SIZE) * TILE_SIZE
        if facing_down:
            y_intercept += TILE_SIZE
        x_intercept = player.x + (y_intercept - player.y) / tangent
        y_step = -TILE_SIZE if facing_up else TILE_SIZE
        x_step = abs(TILE_SIZE / tangent)
        if facing_left:
            x_step = -x_step
        horizontal = _first_hit(
            game_map, x_intercept, y_intercept, x_step, y_step, 0, -1 if facing_up else 0
        )

    x_intercept = math.floor(player.x / TILE_SIZE) * TILE_SIZE
    if facing_right:
        x_intercept += TILE_SIZE
    y_intercept = player.y + (x_intercept - player.x) * tangent
    x_step = -TILE_SIZE if facing_left else TILE_SIZE
    y_step = abs(TILE_SIZE * tangent)
    if facing_up:
        y_step = -y_step
    vertical = _first_hit(
        game_map, x_intercept, y_intercept, x_step, y_step, -1 if facing_left else 0, 0
    )

    horizontal_distance = (
        distance_between_points(player.x, player.y, horizontal[0], horizontal[1])
        if horizontal is not None
        else math.inf
    )
    vertical_distance = (
        distance_between_points(player.x, player.y, vertical[0], vertical[1])
        if vertical is not None
        else math.inf
    )

    if vertical is not None and vertical_distance < horizontal_distance:
        hit_x, hit_y, content = vertical
        return Ray(ray_angle, hit_x, hit_y, vertical_distance, True, content)
    hit_x, hit_y, content = horizontal if horizontal is not None else (0.0, 0.0, 0)
    return Ray(ray_angle, hit_x, hit_y, horizontal_distance, False, content)


def cast_all_rays(
    player: Player, game_map: GameMap, num_rays: int = NUM_RAYS
) -> list[Ray]:
    """Cast one ray per screen column, spaced evenly across the projection plane."""
    centre = num_rays // 2
    return [
        cast_ray(
            player.rotation_angle + math.atan((column - centre) / DIST_PROJ_PLANE),
            player,
            game_map,
        )
        for column in range(num_rays)
    ]


def render_rays(rays: Sequence[Ray], player: Player, buffer: ColorBuffer) -> None:
    """Draw every fiftieth ray on the minimap."""
    for ray in rays[::_RAY_RENDER_STRIDE]:
        buffer.draw_line(
            player.x * MINIMAP_SCALE_FACTOR,
            player.y * MINIMAP_SCALE_FACTOR,
            ray.wall_hit_x * MINIMAP_SCALE_FACTOR,
            ray.wall_hit_y * MINIMAP_SCALE_FACTOR,
            _RAY_COLOR,
        )