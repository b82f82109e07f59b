from array import array

import pygame
import pytest

from raycaster.defs import NUM_RAYS, NUM_TEXTURES, WINDOW_HEIGHT, WINDOW_WIDTH
from raycaster.game import Game
from raycaster.textures import Texture

WALL = 0xFF112233


def _game():
    texture = Texture(64, 64, array("I", [WALL]) * (64 * 64))
    return Game([texture] * NUM_TEXTURES)


@pytest.mark.parametrize(
    "key, walk, turn",
    [
        (pygame.K_UP, 1, 0),
        (pygame.K_DOWN, -1, 0),
        (pygame.K_RIGHT, 0, 1),
        (pygame.K_LEFT, 0, -1),
    ],
)
def test_key_press_and_release(key, walk, turn):
    game = _game()
    game.handle_key(key, True)
    assert (game.player.walk_direction, game.player.turn_direction) == (walk, turn)
    game.handle_key(key, False)
    assert (game.player.walk_direction, game.player.turn_direction) == (0, 0)
    assert game.running


def test_escape_stops_game():
    game = _game()
    game.handle_key(pygame.K_ESCAPE, True)
    assert game.running is False


def test_update_casts_all_rays():
    game = _game()
    game.update(0.0)
    assert len(game.rays) == NUM_RAYS
    assert all(ray.wall_hit_content != 0 for ray in game.rays)


def test_update_moves_player_forward():
    game = _game()
    start_x, start_y = game.player.x, game.player.y
    game.handle_key(pygame.K_UP, True)
    game.update(0.5)
    assert game.player.y > start_y
    assert game.player.x == pytest.approx(start_x, abs=1e-3)


def test_update_turns_player():
    game = _game()
    start = game.player.rotation_angle
    game.handle_key(pygame.K_RIGHT, True)
    game.update(1.0)
    assert game.player.rotation_angle > start


def test_render_frame():
    game = _game()
    game.update(0.0)
    buffer = game.render()
    assert buffer is game.buffer
    width = buffer.width
    assert buffer.pixels[WINDOW_WIDTH - 1] == 0xFF444444
    assert buffer.pixels[width * (WINDOW_HEIGHT - 1) + WINDOW_WIDTH - 1] == 0xFF888888
    assert buffer.pixels[width * (WINDOW_HEIGHT // 2) + WINDOW_WIDTH // 2] == WALL
    player_x = int(game.player.x * 0.3)
    player_y = int(game.player.y * 0.3)
    assert buffer.pixels[width * player_y + player_x] == 0xFFFFFFFF