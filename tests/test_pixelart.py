import numpy as np
import pytest
from PIL import Image

from spritepacker import InvalidInputError, dither, generate_palette, outline, pixelate, quantize, stylize
from spritepacker.pixelart import from_pixels, to_pixels


def _random_pixels(height=24, width=24, seed=0):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    pixels[rng.random((height, width)) < 0.2, 3] = 0
    return pixels


def _blob(size=7, inner=3, alpha=255):
    """A transparent square with an opaque red block in the middle."""
    pixels = np.zeros((size, size, 4), dtype=np.uint8)
    start = (size - inner) // 2
    pixels[start:start + inner, start:start + inner] = (255, 0, 0, alpha)
    return pixels


def test_quantize_snaps_to_palette_step():
    pixels = np.array([[[100, 8, 255, 200], [7, 24, 250, 255]]], dtype=np.uint8)
    quantize(pixels, 16)

    assert pixels.tolist() == [[[96, 16, 255, 200], [0, 32, 255, 255]]]


def test_quantize_is_idempotent():
    for palette_size in (2, 3, 7, 16, 32):
        once = quantize(_random_pixels(), palette_size)
        twice = quantize(once.copy(), palette_size)
        assert np.array_equal(once, twice)


def test_quantize_skips_transparent_pixels_and_keeps_alpha():
    source = _random_pixels()
    result = quantize(source.copy(), 4)

    transparent = source[..., 3] == 0
    assert np.array_equal(result[transparent], source[transparent])
    assert np.array_equal(result[..., 3], source[..., 3])


def test_quantize_works_in_place():
    pixels = _random_pixels()
    assert quantize(pixels) is pixels


@pytest.mark.parametrize("palette_size", [0, 257])
def test_quantize_rejects_bad_palette_size(palette_size):
    with pytest.raises(InvalidInputError):
        quantize(_random_pixels(), palette_size)


def test_dither_outputs_multiples_of_step():
    source = _random_pixels()
    result = dither(source.copy())

    visible = source[..., 3] != 0
    assert np.all(result[visible][:, :3] % 32 == 0)
    assert np.array_equal(result[~visible], source[~visible])
    assert np.array_equal(result[..., 3], source[..., 3])


def test_dither_spreads_error_across_flat_areas():
    pixels = np.full((16, 16, 4), 100, dtype=np.uint8)
    pixels[..., 3] = 255
    values = set(np.unique(dither(pixels)[..., :3]).tolist())

    assert values == {96, 128}


def test_dither_clamps_to_highest_level():
    pixels = np.full((2, 2, 4), 255, dtype=np.uint8)
    assert np.all(dither(pixels)[..., :3] == 224)


def test_dither_ignores_transparent_neighbours():
    pixels = np.array([[[40, 40, 40, 255], [0, 0, 0, 0]]], dtype=np.uint8)
    dither(pixels)
    assert pixels.tolist() == [[[32, 32, 32, 255], [0, 0, 0, 0]]]


def test_outline_marks_silhouette_edge():
    source = _blob()
    result = outline(source)

    # Ring of the 3x3 block turns black, centre keeps its colour
    assert tuple(result[3, 3]) == (255, 0, 0, 255)
    for y, x in [(2, 2), (2, 3), (2, 4), (3, 2), (3, 4), (4, 2), (4, 3), (4, 4)]:
        assert tuple(result[y, x]) == (0, 0, 0, 255)
    assert np.array_equal(result[..., 3] == 0, source[..., 3] == 0)
    # Source buffer untouched
    assert np.array_equal(source, _blob())


def test_outline_leaves_enclosed_pixels_alone():
    pixels = np.zeros((9, 9, 4), dtype=np.uint8)
    pixels[1:8, 1:8] = (10, 20, 30, 255)
    result = outline(pixels)

    interior = (slice(2, 7), slice(2, 7))
    assert np.all(result[interior] == (10, 20, 30, 255))


def test_outline_skips_border_rows_and_columns():
    pixels = np.full((5, 5, 4), 255, dtype=np.uint8)
    pixels[2, :, 3] = 0
    result = outline(pixels)

    assert np.array_equal(result[0], pixels[0])
    assert tuple(result[1, 0]) == (255, 255, 255, 255)
    assert tuple(result[1, 2]) == (0, 0, 0, 255)


def test_outline_thresholds_are_strict():
    # Alpha 128 is neither opaque nor transparent
    pixels = _blob(alpha=128)
    assert np.array_equal(outline(pixels), pixels)

    pixels = np.full((3, 3, 4), 255, dtype=np.uint8)
    pixels[0, 1, 3] = 128
    assert np.array_equal(outline(pixels), pixels)


def test_pixelate_keeps_source_size_by_default():
    image = Image.new('RGBA', (100, 80), (200, 50, 25, 255))
    assert pixelate(image).size == (100, 80)
    assert pixelate(image, size=(128, 128)).size == (128, 128)


def test_pixelate_produces_blocks():
    pixels = np.zeros((128, 128, 4), dtype=np.uint8)
    pixels[..., 0] = np.arange(128)[None, :] * 2
    pixels[..., 1] = np.arange(128)[:, None] * 2
    pixels[..., 3] = 255
    result = to_pixels(pixelate(from_pixels(pixels)))

    assert np.array_equal(result[0::2, 0::2], result[1::2, 1::2])
    rgb = result[..., :3]
    assert np.all((rgb % 16 == 0) | (rgb == 255))


def test_pixelate_outlines_sprites():
    image = Image.new('RGBA', (128, 128), (0, 0, 0, 0))
    image.paste((240, 240, 240, 255), (32, 32, 96, 96))
    result = to_pixels(pixelate(image))

    assert tuple(result[32, 64]) == (0, 0, 0, 255)
    assert tuple(result[64, 64]) == (240, 240, 240, 255)
    assert result[0, 0, 3] == 0


def test_pixelate_rejects_bad_sizes():
    image = Image.new('RGBA', (8, 8))
    with pytest.raises(InvalidInputError):
        pixelate(image, resolution=0)
    with pytest.raises(InvalidInputError):
        pixelate(image, size=(0, 8))


def test_stylize():
    image = from_pixels(_random_pixels())
    result = to_pixels(stylize(image))

    assert result.shape == (24, 24, 4)
    visible = result[..., 3] != 0
    assert np.all(result[visible][:, :3] % 32 == 0)


def test_generate_palette_from_mapping():
    palette = generate_palette({"primary": "#ff0000", "secondary": "#00ff00"}, 4)
    assert palette == ["#ff0000", "#00ff00", "#000000", "#3f0000"]


def test_generate_palette_defaults_to_white_ramp():
    assert generate_palette([], 2) == ["#000000", "#7f7f7f"]
    assert len(generate_palette(["#123456"])) == 16


def test_dither_diffuses_error_to_later_neighbours():
    pixels = np.full((2, 2, 4), 40, dtype=np.uint8)
    pixels[..., 3] = 255
    dither(pixels)

    # 40 -> 32 everywhere until the accumulated error lifts the last pixel to 64
    assert pixels[..., 0].tolist() == [[32, 32], [32, 64]]
    assert np.array_equal(pixels[..., 0], pixels[..., 2])
