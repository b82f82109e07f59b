# raycaster

A small first-person raycaster. The player walks through a fixed tile map.
Walls are drawn as textured vertical strips. Walls that a ray meets on a
vertical grid line are shaded darker. The ceiling is dark grey and the floor
is a lighter grey. A top-down minimap is drawn over the view. It shows the
map, the player and every fiftieth ray.

The package reads its wall textures with its own PNG decoder
(`raycaster.png` and `raycaster.inflate`).

## Installing

```
pip install .
```

To run the tests as well:

```
pip install .[test]
pytest
```

## Playing

```
raycaster
```

The same entry point can also be started with `python -m raycaster.game`.

The game opens a borderless window the size of the current display. Frames
are drawn at 1600x900 and scaled to fit the window. Wall textures are read
from an `images` directory below the current directory. Use `--images DIR`
to read them from another directory:

```
raycaster --images path/to/textures
```

The files are `redbrick.png`, `purplestone.png`, `mossystone.png`,
`graystone.png`, `colorstone.png`, `bluestone.png`, `wood.png` and
`eagle.png`. They belong to wall numbers 1 to 8 on the map, in that order.
Each texture must be an 8-bit RGBA PNG. A file that is missing or cannot be
read is skipped when the game loads. The game then raises `ValueError` the
first time it has to draw a wall that uses that texture.

Controls:

| Key          | Action                            |
|--------------|-----------------------------------|
| Up arrow     | walk forward (100 units a second) |
| Down arrow   | walk backward                     |
| Left arrow   | turn left (45 degrees a second)   |
| Right arrow  | turn right                        |
| Escape       | quit                              |

Closing the window also quits. The frame rate is capped at 30 frames per
second. A step that would end inside a wall is not taken.

## Using the pieces

Each part of the package can be used without a window:

- `raycaster.map.GameMap`: the tile grid, with `has_wall_at`, `is_inside`,
  `content_at` and `render`. Points outside the map count as walls.
  `raycaster.map.DEFAULT_GRID` is the built-in map.
- `raycaster.player.Player`: a dataclass holding position, heading and speeds.
  `move(delta_time, game_map)` applies the current turn and walk directions.
- `raycaster.ray`:
  - `cast_ray(angle, player, game_map)` returns a `Ray` with the nearest wall
    hit, its distance, the wall number, and whether the hit was on a vertical
    grid line.
  - `cast_all_rays(player, game_map, num_rays)` casts one ray per screen
    column.
  - `normalize_angle` and `distance_between_points` are helpers.
- `raycaster.wall.render_wall_projection(rays, player, textures, buffer)`
  draws the ceiling, the walls and the floor. `change_color_intensity` scales
  the colour channels of a pixel and leaves alpha alone.
- `raycaster.graphics.ColorBuffer`: a grid of 32-bit pixels, with `clear`,
  `draw_pixel`, `draw_rect`, `draw_line` and `to_bytes` (RGBA bytes). Drawing
  outside the buffer raises `IndexError`.
  `raycaster.graphics.Window` shows a buffer on screen and works as a context
  manager.
- `raycaster.textures.Texture.from_png(image)` turns a decoded 8-bit RGBA
  image into texels. `load_wall_textures(directory)` loads the eight wall
  textures.
- `raycaster.game.Game`: ties these together. It has `handle_key`, `update`,
  `render` and `run`.

### Decoding PNG images

```python
from raycaster.png import PngImage

image = PngImage.from_file("images/wood.png")
pixels = image.decode()
print(image.width, image.height, image.format)
```

`PngImage.read_header()` parses only the signature and the IHDR chunk.
`decode()` returns the raw, unfiltered pixel bytes and also stores them in
`image.buffer`. The decoder handles greyscale (1, 2, 4 and 8 bits),
greyscale with alpha (1, 2, 4 and 8 bits), RGB (8 and 16 bits) and RGBA
(8 and 16 bits).

When something goes wrong, `raycaster.png.PngError` is raised, with `code`
set to a `raycaster.png.ErrorCode`:

| Code            | Cause                                        |
|-----------------|----------------------------------------------|
| `NOT_FOUND`     | the file cannot be opened                    |
| `NOT_PNG`       | the data is not a PNG                        |
| `MALFORMED`     | the data is corrupt                          |
| `UNSUPPORTED`   | the image has an unknown critical chunk      |
| `UNINTERLACED`  | the image is interlaced                      |
| `UNFORMAT`      | the colour type and bit depth are not supported |

`raycaster.inflate.inflate(data, out_size)` and `inflate_raw(data, out_size)`
decompress zlib and raw DEFLATE streams. The output must stay within
`out_size` bytes. They raise `raycaster.inflate.InflateError` on bad input.

## What it does not do

- The map is fixed. There is no level loading or editing.
- There are no sprites, enemies, weapons, sound or saved games.
- Interlaced PNG images, palette (indexed-colour) images and preset zlib
  dictionaries are not supported.