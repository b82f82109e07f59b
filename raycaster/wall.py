"""Projection of the cast rays into textured wall strips."""

from __future__ import annotations

import math
from array import array
from collections.abc import Sequence

from raycaster.defs import DIST_PROJ_PLANE, TILE_SIZE
from raycaster.graphics import ColorBuffer
from raycaster.player import Player
from raycaster.ray import Ray
from raycaster.textures import Texture

__all__ = ["change_color_intensity", "render_wall_projection"]

_CEILING_COLOR = 0xFF444444
_FLOOR_COLOR = 0xFF888888
_VERTICAL_SHADE = 0.7
_MAX_STRIP = 2**31 - 1


def change_color_intensity(color: int, factor: float) -> int:
    """Scale the red, green and blue channels of ``color`` by ``factor``, keeping alpha."""
    alpha = color & 0xFF000000
    red = int((color & 0x00FF0000) * factor) & 0x00FF0000
    green = int((color & 0x0000FF00) * factor) & 0x0000FF00
    blue = int((color & 0x000000FF) * factor) & 0x000000FF
    return alpha | red | green | blue


def _strip_height(perpendicular_distance: float) -> int:
    if perpendicular_distance == 0:
        return _MAX_STRIP
    projected = (TILE_SIZE / perpendicular_distance) * DIST_PROJ_PLANE
    if not math.isfinite(projected):
        return _MAX_STRIP if projected > 0 else -_MAX_STRIP
    return int(max(-_MAX_STRIP, min(_MAX_STRIP, projected)))


def _half(value: int) -> int:
    return -((-value) // 2) if value < 0 else value // 2


def _texture_for(content: int, textures: Sequence[Texture | None]) -> Texture:
    index = content - 1
    texture = textures[index] if 0 <= index < len(textures) else None
    if texture is None:
        raise ValueError(f"no texture for wall content {content}")
    return texture


def render_wall_projection(
    rays: Sequence[Ray],
    player: Player,
    textures: Sequence[Texture | None],
    buffer: ColorBuffer,
) -> None:
    """Draw ceiling, textured wall and floor for each ray, one column per ray."""
    width, height = buffer.width, buffer.height
    if len(rays) > width:
        raise ValueError("more rays than buffer columns")
    half_height = height // 2
    pixels = buffer.pixels

    for x, ray in enumerate(rays):
        perpendicular = ray.distance * math.cos(ray.ray_angle - player.rotation_angle)
        strip = _strip_height(perpendicular)
        half_strip = _half(strip)

        top = max(half_height - half_strip, 0)
        bottom = min(half_height + half_strip, height)

        if top > 0:
            pixels[x:x + top * width:width] = array("I", [_CEILING_COLOR]) * top

        if bottom > top:
            texture = _texture_for(ray.wall_hit_content, textures)
            hit = ray.wall_hit_y if ray.was_hit_vertical else ray.wall_hit_x
            offset_x = int(hit) % TILE_SIZE
            scale = texture.height / strip
            texture_pixels = texture.pixels
            texture_width = texture.width
            for y in range(top, bottom):
                offset_y = int((y + half_strip - half_height) * scale)
                color = texture_pixels[texture_width * offset_y + offset_x]
                if ray.was_hit_vertical:
                    color = change_color_intensity(color, _VERTICAL_SHADE)
                pixels[width * y + x] = color

        floor_rows = height - bottom
        if floor_rows > 0:
            pixels[x + bottom * width::width] = array("I", [_FLOOR_COLOR]) * floor_rows