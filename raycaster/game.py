"""The game loop: input, update and rendering."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

import pygame

from raycaster.defs import FRAME_TIME_LENGTH
from raycaster.graphics import ColorBuffer, Window
from raycaster.map import GameMap
from raycaster.player import Player
from raycaster.ray import Ray, cast_all_rays, render_rays
from raycaster.textures import Texture, load_wall_textures
from raycaster.wall import render_wall_projection

__all__ = ["Game", "main"]

_BACKGROUND = 0xFF000000


class Game:
    """The world, the player and the frame they are drawn into."""

    def __init__(self, textures: Sequence[Texture | None]) -> None:
        self.textures = list(textures)
        self.game_map = GameMap()
        self.player = Player()
        self.rays: list[Ray] = []
        self.buffer = ColorBuffer()
        self.running = True

    def handle_key(self, key: int, pressed: bool) -> None:
        """Apply a key press or release to the player or the game state."""
        if pressed:
            if key == pygame.K_ESCAPE:
                self.running = False
            elif key == pygame.K_UP:
                self.player.walk_direction = 1
            elif key == pygame.K_DOWN:
                self.player.walk_direction = -1
            elif key == pygame.K_RIGHT:
                self.player.turn_direction = 1
            elif key == pygame.K_LEFT:
                self.player.turn_direction = -1
        elif key in (pygame.K_UP, pygame.K_DOWN):
            self.player.walk_direction = 0
        elif key in (pygame.K_RIGHT, pygame.K_LEFT):
            self.player.turn_direction = 0

    def update(self, delta_time: float) -> None:
        """Advance the player by ``delta_time`` seconds and recast every ray."""
        self.player.move(delta_time, self.game_map)
        self.rays = cast_all_rays(self.player, self.game_map)

    def render(self) -> ColorBuffer:
        """Draw the 3D view and the minimap, and return the frame."""
        self.buffer.clear(_BACKGROUND)
        render_wall_projection(self.rays, self.player, self.textures, self.buffer)
        self.game_map.render(self.buffer)
        render_rays(self.rays, self.player, self.buffer)
        self.player.render(self.buffer)
        return self.buffer

    def _process_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
                self.handle_key(event.key, event.type == pygame.KEYDOWN)

    def run(self, window: Window) -> None:
        """Run frames at a capped rate until the game stops."""
        last_ticks = pygame.time.get_ticks()
        while self.running:
            self._process_events()
            wait = FRAME_TIME_LENGTH - (pygame.time.get_ticks() - last_ticks)
            if 0 < wait <= FRAME_TIME_LENGTH:
                pygame.time.delay(wait)
            now = pygame.time.get_ticks()
            delta_time = (now - last_ticks) / 1000.0
            last_ticks = now
            self.update(delta_time)
            window.present(self.render())


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Walk around a textured ray-cast maze.")
    parser.add_argument(
        "--images", default="images", help="directory holding the wall textures"
    )
    args = parser.parse_args(argv)

    textures = load_wall_textures(args.images)
    try:
        window = Window()
    except pygame.error as exc:
        print(f"Error creating window: {exc}", file=sys.stderr)
        return 1
    with window:
        Game(textures).run(window)
    return 0


if __name__ == "__main__":
    sys.exit(main())