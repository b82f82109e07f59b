"""A textured grid raycaster with a minimap, a pygame window and its own PNG decoder."""

__version__ = "0.1.0"