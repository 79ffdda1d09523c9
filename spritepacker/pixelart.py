"""
Pixel-art post-processing.

Provides palette quantization, Floyd-Steinberg dithering, silhouette
outlining and low-resolution pixelation.  The per-pixel stages work on
``(height, width, 4)`` uint8 RGBA arrays: each takes the array, modifies it
in place and hands it back, so the caller should not keep using a buffer
after passing it on.  ``outline`` is the exception and returns a new array.

Dependencies:
    Pillow  -- resampling and colour parsing
    NumPy   -- pixel buffers
"""

import logging
import math
from typing import List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from PIL import Image, ImageColor

from .errors import InvalidInputError

log = logging.getLogger(__name__)

DEFAULT_PALETTE_SIZE = 16
DITHER_STEP = 32
PIXELATE_RESOLUTION = 64
OUTLINE_COLOR = (0, 0, 0, 255)
ALPHA_THRESHOLD = 128


def to_pixels(image: Image.Image) -> np.ndarray:
    """Copy an image into a writable RGBA uint8 array."""
    return np.array(image.convert('RGBA'), dtype=np.uint8)


def from_pixels(pixels: np.ndarray) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))


def _round_to_step(values: np.ndarray, step: int) -> np.ndarray:
    # Halves round up
    return np.floor(values / step + 0.5) * step


def quantize(pixels: np.ndarray, palette_size: int = DEFAULT_PALETTE_SIZE) -> np.ndarray:
    """Snap R, G and B of every visible pixel to multiples of ``256 // palette_size``.

    Alpha is left alone and fully transparent pixels are skipped.  Applying
    it twice gives the same result as applying it once.
    """
    if not 1 <= palette_size <= 256:
        raise InvalidInputError(f"Palette size must be between 1 and 256, got {palette_size}")

    step = 256 // palette_size
    visible = pixels[..., 3] != 0
    rgb = pixels[..., :3]
    levels = _round_to_step(rgb[visible].astype(np.float64), step)
    rgb[visible] = np.clip(levels, 0, 255).astype(np.uint8)
    return pixels


def dither(pixels: np.ndarray, step: int = DITHER_STEP) -> np.ndarray:
    """
    Floyd-Steinberg error diffusion on R, G and B.

    Each visible pixel is snapped to a multiple of *step* (at most the largest
    multiple that still fits in a byte) and the rounding error is pushed to
    its right (7/16), lower-left (3/16), lower (5/16) and lower-right (1/16)
    neighbours.  Transparent pixels neither receive nor pass on error.

    Args:
        pixels: RGBA uint8 array, modified in place.
        step:   Quantization granularity per channel.

    Returns:
        The same array.
    """
    if step <= 0 or step > 255:
        raise InvalidInputError(f"Dither step must be between 1 and 255, got {step}")

    height, width = pixels.shape[:2]
    top = (255 // step) * step
    visible_mask = pixels[..., 3] != 0
    # Sequential raster scan over plain Python floats
    visible = visible_mask.tolist()
    work = pixels[..., :3].astype(np.float64).tolist()

    for y in range(height):
        row, row_visible = work[y], visible[y]
        below = work[y + 1] if y + 1 < height else None
        below_visible = visible[y + 1] if below is not None else None

        for x in range(width):
            if not row_visible[x]:
                continue
            pixel = row[x]
            for c in range(3):
                old_value = pixel[c]
                new_value = min(max(math.floor(old_value / step + 0.5) * step, 0), top)
                error = old_value - new_value
                pixel[c] = new_value
                if not error:
                    continue

                if x + 1 < width and row_visible[x + 1]:
                    row[x + 1][c] += error * 7 / 16
                if below is not None:
                    if x > 0 and below_visible[x - 1]:
                        below[x - 1][c] += error * 3 / 16
                    if below_visible[x]:
                        below[x][c] += error * 5 / 16
                    if x + 1 < width and below_visible[x + 1]:
                        below[x + 1][c] += error * 1 / 16

    rgb = pixels[..., :3]
    rgb[visible_mask] = np.array(work, dtype=np.float64)[visible_mask].astype(np.uint8)
    return pixels


def outline(pixels: np.ndarray) -> np.ndarray:
    """Return a copy with a one-pixel black outline along the silhouette edge.

    A pixel with alpha above 128 turns opaque black when any of its four
    direct neighbours has alpha below 128.  The outermost rows and columns
    are never touched.
    """
    outlined = pixels.copy()
    height, width = pixels.shape[:2]
    if height < 3 or width < 3:
        return outlined

    alpha = pixels[..., 3]
    opaque = alpha[1:-1, 1:-1] > ALPHA_THRESHOLD
    exposed = (
        (alpha[:-2, 1:-1] < ALPHA_THRESHOLD) |
        (alpha[2:, 1:-1] < ALPHA_THRESHOLD) |
        (alpha[1:-1, :-2] < ALPHA_THRESHOLD) |
        (alpha[1:-1, 2:] < ALPHA_THRESHOLD)
    )
    outlined[1:-1, 1:-1][opaque & exposed] = OUTLINE_COLOR
    return outlined


def stylize(image: Image.Image, palette_size: int = DEFAULT_PALETTE_SIZE,
            dither_step: int = DITHER_STEP) -> Image.Image:
    """Palette-reduce and then dither an image at its own resolution."""
    pixels = quantize(to_pixels(image), palette_size)
    return from_pixels(dither(pixels, dither_step))


def pixelate(image: Image.Image, size: Optional[Tuple[int, int]] = None,
             resolution: int = PIXELATE_RESOLUTION,
             palette_size: int = DEFAULT_PALETTE_SIZE) -> Image.Image:
    """
    Render an image as chunky pixel art.

    The source is shrunk to ``resolution`` × ``resolution`` with nearest
    neighbour sampling, palette-reduced, scaled back up to *size* (the
    source size by default) with nearest neighbour again and outlined.
    """
    if resolution <= 0:
        raise InvalidInputError(f"Pixelation resolution must be positive, got {resolution}")
    source = image.convert('RGBA')
    size = tuple(size) if size else source.size
    if size[0] <= 0 or size[1] <= 0:
        raise InvalidInputError(f"Target size must be positive, got {size[0]}×{size[1]}")

    log.debug("Pixelating %d×%d image via %d×%d to %d×%d",
              source.width, source.height, resolution, resolution, size[0], size[1])
    low_res = source.resize((resolution, resolution), Image.NEAREST)
    pixels = quantize(to_pixels(low_res), palette_size)
    upscaled = from_pixels(pixels).resize(size, Image.NEAREST)
    return from_pixels(outline(to_pixels(upscaled)))


def _adjust_brightness(color: str, brightness: float) -> str:
    r, g, b = ImageColor.getrgb(color)[:3]
    return '#{:02x}{:02x}{:02x}'.format(int(r * brightness), int(g * brightness), int(b * brightness))


def generate_palette(colors: Union[Mapping[str, str], Sequence[str]],
                     palette_size: int = DEFAULT_PALETTE_SIZE) -> List[str]:
    """
    Build a hex palette from base colours plus a brightness ramp.

    The base colours come first, followed by ``palette_size`` darkened
    shades of the primary colour (the ``primary`` entry of a mapping, the
    first colour of a sequence, or white).  The result is cut to
    ``palette_size`` entries.
    """
    if isinstance(colors, Mapping):
        base = [c for c in colors.values() if c]
        primary = colors.get('primary')
    else:
        base = [c for c in colors if c]
        primary = base[0] if base else None
    primary = primary or '#FFFFFF'

    palette = list(base)
    for i in range(palette_size):
        palette.append(_adjust_brightness(primary, i / palette_size))
    return palette[:palette_size]
