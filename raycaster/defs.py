"""Shared constants for the world, the screen and the camera."""

import math

PI = 3.14159265
TWO_PI = 6.28318530

TILE_SIZE = 64
MAP_NUM_ROWS = 13
MAP_NUM_COLS = 20
NUM_TEXTURES = 8

MINIMAP_SCALE_FACTOR = 0.3

WINDOW_WIDTH = 1600
WINDOW_HEIGHT = 900

TEXTURE_WIDTH = 64
TEXTURE_HEIGHT = 64

FOV_ANGLE = 60 * (PI / 180)

NUM_RAYS = WINDOW_WIDTH

DIST_PROJ_PLANE = (WINDOW_WIDTH // 2) / math.tan(FOV_ANGLE / 2)

FPS = 30
FRAME_TIME_LENGTH = 1000 // FPS