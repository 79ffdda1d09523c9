"""
Texture atlas packing.

Sprites are sorted largest first and packed with :class:`MaxRectsPacker` into
a candidate surface that starts small and doubles along its shorter side
until everything fits or the maximum size is reached.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from PIL import Image

from .errors import InvalidInputError, PackingInfeasibleError
from .packer import HeuristicType, MaxRectsPacker
from .sprites import Placement, Sprite, Surface, check_padding, next_power_of_two, prepare_sprites

log = logging.getLogger(__name__)

DEFAULT_PADDING = 2
DEFAULT_MAX_SIZE = 2048
MIN_ATLAS_SIZE = 32

ALGORITHMS = {
    'maxrects': HeuristicType.BEST_SHORT_SIDE_FIT,
    'shortside': HeuristicType.BEST_SHORT_SIDE_FIT,
    'longside': HeuristicType.BEST_LONG_SIDE_FIT,
    'area': HeuristicType.BEST_AREA_FIT,
    'bottomleft': HeuristicType.BOTTOM_LEFT,
}
DEFAULT_ALGORITHM = 'maxrects'


def resolve_heuristic(algorithm: str) -> HeuristicType:
    """Map an algorithm name to a placement heuristic, defaulting to short side fit."""
    heuristic = ALGORITHMS.get((algorithm or DEFAULT_ALGORITHM).lower())
    if heuristic is None:
        log.warning("Unknown packing algorithm %r, using %r", algorithm, DEFAULT_ALGORITHM)
        heuristic = ALGORITHMS[DEFAULT_ALGORITHM]
    return heuristic


def _grow_size(width: int, height: int, max_size: int) -> Optional[Tuple[int, int]]:
    """Double the shorter (or equal) side, clamped to the limit; grow the other side once it is reached."""
    grown_width = min(next_power_of_two(width + 1), max_size)
    grown_height = min(next_power_of_two(height + 1), max_size)

    if width <= height and width < max_size:
        return grown_width, height
    if height < max_size:
        return width, grown_height
    if width < max_size:
        return grown_width, height
    # Can't grow any more, maximum size reached
    return None


def _try_pack(sprites: Sequence[Sprite], width: int, height: int, padding: int,
              heuristic: HeuristicType) -> Optional[List[Placement]]:
    """Pack every sprite into a fresh packer, or return None on the first miss."""
    packer = MaxRectsPacker(width, height, padding, heuristic)
    placements = []

    for sprite in sprites:
        rect = packer.insert(sprite.width, sprite.height)
        if rect is None:
            log.debug("Sprite %s does not fit at %d×%d after %d placements",
                      sprite.name, width, height, len(placements))
            return None
        placements.append(Placement(sprite, rect.x, rect.y, rect.width, rect.height))

    log.debug("Packed %d sprites at %d×%d (%.1f%% occupied)",
              len(placements), width, height, packer.occupancy() * 100)
    return placements


def compose(placements: Sequence[Placement], width: int, height: int) -> Image.Image:
    """Draw each sprite at its placement on a transparent RGBA image."""
    image = Image.new('RGBA', (width, height), (0, 0, 0, 0))
    for placement in placements:
        image.paste(placement.sprite.image, (placement.x, placement.y))
    return image


def pack_atlas(sprites: Sequence[Sprite], algorithm: str = DEFAULT_ALGORITHM,
               padding: int = DEFAULT_PADDING, max_size: int = DEFAULT_MAX_SIZE,
               power_of_two: bool = True) -> Surface:
    """Pack sprites into the smallest atlas found by the size-growth search.

    Raises:
        InvalidInputError: no sprites, a degenerate sprite, negative padding
            or a non-positive ``max_size``.
        PackingInfeasibleError: nothing up to ``max_size`` × ``max_size``
            holds every sprite.
    """
    sprites = prepare_sprites(sprites)
    check_padding(padding)
    if max_size <= 0:
        raise InvalidInputError(f"Maximum atlas size must be positive, got {max_size}")
    heuristic = resolve_heuristic(algorithm)

    for sprite in sprites:
        if sprite.width + padding > max_size or sprite.height + padding > max_size:
            raise PackingInfeasibleError(
                f"Sprite {sprite.name} ({sprite.width}×{sprite.height}, padding {padding}) "
                f"does not fit within maximum atlas size {max_size}×{max_size}",
                max_size=max_size, sprite_name=sprite.name,
            )

    # Sort by area (largest first); sorted() keeps the input order for ties
    ordered = sorted(sprites, key=lambda s: s.area, reverse=True)
    padded_area = sum((s.width + padding) * (s.height + padding) for s in ordered)

    width = height = min(MIN_ATLAS_SIZE, max_size)
    while True:
        placements = None
        if padded_area <= width * height:
            placements = _try_pack(ordered, width, height, padding, heuristic)
        if placements is not None:
            break

        grown = _grow_size(width, height, max_size)
        if grown is None:
            raise PackingInfeasibleError(
                f"{len(ordered)} sprites do not fit within maximum atlas size {max_size}×{max_size}",
                max_size=max_size,
            )
        width, height = grown
        log.debug("Growing atlas to %d×%d", width, height)

    # Trim to the used extent, which never exceeds the candidate size
    used_width = max(p.x + p.width for p in placements)
    used_height = max(p.y + p.height for p in placements)
    if power_of_two:
        used_width = next_power_of_two(used_width)
        used_height = next_power_of_two(used_height)

    log.info("Packed %d sprites into %d×%d atlas", len(placements), used_width, used_height)
    return Surface(compose(placements, used_width, used_height), placements)
