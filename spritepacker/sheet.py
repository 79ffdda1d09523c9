"""
Formula-based sprite sheet layouts.

Unlike the atlas, a sheet places sprites in a fixed pattern (a row, a
column or a uniform grid) and always succeeds: the surface is sized to fit.
"""

import logging
import math
from typing import List, Sequence, Tuple

from .atlas import DEFAULT_PADDING, compose
from .errors import InvalidInputError
from .sprites import Placement, Sprite, Surface, check_padding, next_power_of_two, prepare_sprites

log = logging.getLogger(__name__)

LAYOUTS = ('horizontal', 'vertical', 'grid')
DEFAULT_LAYOUT = 'horizontal'


def _horizontal(sprites: Sequence[Sprite], padding: int) -> Tuple[int, int, List[Tuple[int, int]]]:
    width = padding + sum(s.width + padding for s in sprites)
    height = max(s.height for s in sprites) + padding * 2

    positions = []
    x = padding
    for sprite in sprites:
        positions.append((x, padding))
        x += sprite.width + padding
    return width, height, positions


def _vertical(sprites: Sequence[Sprite], padding: int) -> Tuple[int, int, List[Tuple[int, int]]]:
    width = max(s.width for s in sprites) + padding * 2
    height = padding + sum(s.height + padding for s in sprites)

    positions = []
    y = padding
    for sprite in sprites:
        positions.append((padding, y))
        y += sprite.height + padding
    return width, height, positions


def _grid(sprites: Sequence[Sprite], padding: int) -> Tuple[int, int, List[Tuple[int, int]]]:
    cols = math.ceil(math.sqrt(len(sprites)))
    rows = math.ceil(len(sprites) / cols)
    cell_width = max(s.width for s in sprites)
    cell_height = max(s.height for s in sprites)

    width = cols * (cell_width + padding) + padding
    height = rows * (cell_height + padding) + padding

    positions = []
    for index in range(len(sprites)):
        col = index % cols
        row = index // cols
        positions.append((
            padding + col * (cell_width + padding),
            padding + row * (cell_height + padding),
        ))
    return width, height, positions


_LAYOUT_FUNCTIONS = {
    'horizontal': _horizontal,
    'vertical': _vertical,
    'grid': _grid,
}


def layout_sheet(sprites: Sequence[Sprite], layout: str = DEFAULT_LAYOUT,
                 padding: int = DEFAULT_PADDING, power_of_two: bool = True) -> Surface:
    """Arrange sprites in a row, a column or a grid and compose the sheet.

    Placements keep the input order and report the sprites' own sizes.
    """
    sprites = prepare_sprites(sprites)
    check_padding(padding)
    layout_fn = _LAYOUT_FUNCTIONS.get(layout)
    if layout_fn is None:
        raise InvalidInputError(f"Unknown sheet layout {layout!r}, expected one of {', '.join(LAYOUTS)}")

    width, height, positions = layout_fn(sprites, padding)
    if power_of_two:
        width = next_power_of_two(width)
        height = next_power_of_two(height)

    placements = [
        Placement(sprite, x, y, sprite.width, sprite.height)
        for sprite, (x, y) in zip(sprites, positions)
    ]
    log.info("Laid out %d sprites %s on %d×%d sheet", len(placements), layout, width, height)
    return Surface(compose(placements, width, height), placements)
