import json

import pytest

from spritepacker import InvalidInputError, PackingInfeasibleError, atlas_metadata, pack_atlas
from spritepacker.atlas import _grow_size, resolve_heuristic
from spritepacker.packer import HeuristicType

from .helpers import assert_inside, assert_no_overlap


def _is_power_of_two(n):
    return n > 0 and n & (n - 1) == 0


def test_five_large_sprites_fit_in_256(make_sprite):
    sprites = [make_sprite(64, 64, f"tile_{i}") for i in range(5)]
    surface = pack_atlas(sprites, padding=0, max_size=256)

    assert surface.width <= 256 and surface.height <= 256
    assert_no_overlap(surface.placements)
    assert_inside(surface.placements, surface.width, surface.height)

    frames = json.loads(atlas_metadata(surface))["frames"]
    assert sorted(frames) == [f"tile_{i}" for i in range(5)]


@pytest.mark.parametrize("size", [(300, 10), (10, 300), (300, 300)])
def test_sprite_larger_than_max_size_is_infeasible(make_sprite, size):
    with pytest.raises(PackingInfeasibleError) as excinfo:
        pack_atlas([make_sprite(*size, "huge")], max_size=256)

    assert excinfo.value.max_size == 256
    assert excinfo.value.sprite_name == "huge"


def test_padding_counts_towards_max_size(make_sprite):
    with pytest.raises(PackingInfeasibleError):
        pack_atlas([make_sprite(64, 64)], padding=2, max_size=64)


def test_too_many_sprites_is_infeasible(make_sprite):
    sprites = [make_sprite(64, 64) for _ in range(5)]

    with pytest.raises(PackingInfeasibleError, match="maximum atlas size 128×128"):
        pack_atlas(sprites, padding=0, max_size=128)


def test_mixed_sprites_with_padding(make_sprite):
    sizes = [(16, 16), (32, 16), (16, 32), (40, 40), (8, 50), (50, 8), (24, 24), (10, 10)]
    sprites = [make_sprite(w, h, f"s{i}") for i, (w, h) in enumerate(sizes)]
    surface = pack_atlas(sprites, padding=2)

    assert len(surface.placements) == len(sprites)
    assert_no_overlap(surface.placements)
    assert_inside(surface.placements, surface.width, surface.height)
    assert _is_power_of_two(surface.width) and _is_power_of_two(surface.height)
    for p in surface.placements:
        assert p.width == p.sprite.width + 2
        assert p.height == p.sprite.height + 2


def test_packing_is_deterministic(make_sprite):
    sizes = [(30, 12), (12, 30), (20, 20), (20, 20), (5, 44), (44, 5), (17, 9)]

    def placements():
        sprites = [make_sprite(w, h, f"s{i}") for i, (w, h) in enumerate(sizes)]
        surface = pack_atlas(sprites, padding=1)
        return [(p.name, p.x, p.y, p.width, p.height) for p in surface.placements], surface.image.size

    assert placements() == placements()


def test_largest_sprites_are_packed_first_and_ties_keep_order(make_sprite):
    sprites = [make_sprite(16, 16, "a"), make_sprite(32, 32, "b"), make_sprite(16, 16, "c")]
    surface = pack_atlas(sprites)

    assert [p.name for p in surface.placements] == ["b", "a", "c"]


def test_surface_is_trimmed_to_used_extent(make_sprite):
    surface = pack_atlas([make_sprite(10, 10)], padding=2, power_of_two=False)
    assert surface.image.size == (12, 12)

    surface = pack_atlas([make_sprite(10, 10)], padding=2, power_of_two=True)
    assert surface.image.size == (16, 16)


def test_composed_pixels_and_transparent_padding(make_sprite):
    surface = pack_atlas([make_sprite(10, 10, color=(0, 255, 0, 255))], padding=2, power_of_two=False)

    assert surface.image.getpixel((0, 0)) == (0, 255, 0, 255)
    assert surface.image.getpixel((9, 9)) == (0, 255, 0, 255)
    assert surface.image.getpixel((10, 0))[3] == 0
    assert surface.image.getpixel((0, 11))[3] == 0


def test_metadata_reports_sizes_without_padding(make_sprite):
    surface = pack_atlas([make_sprite(10, 6, "bar")], padding=4)
    assert surface.placements[0].to_dict() == {"name": "bar", "x": 0, "y": 0, "width": 10, "height": 6}


def test_unnamed_sprites_get_positional_names(make_sprite):
    sprites = [make_sprite(8, 8), make_sprite(8, 8, "named"), make_sprite(8, 8)]
    surface = pack_atlas(sprites)

    assert [p.name for p in surface.placements] == ["sprite_0", "named", "sprite_2"]
    assert sprites[0].name is None


def test_invalid_inputs(make_sprite):
    with pytest.raises(InvalidInputError):
        pack_atlas([])
    with pytest.raises(InvalidInputError):
        pack_atlas([make_sprite(0, 10)])
    with pytest.raises(InvalidInputError):
        pack_atlas([make_sprite(10, 10)], padding=-1)
    with pytest.raises(InvalidInputError):
        pack_atlas([make_sprite(10, 10)], max_size=0)


def test_unknown_algorithm_falls_back_to_short_side_fit(make_sprite, caplog):
    sizes = [(30, 12), (12, 30), (20, 20), (6, 6)]

    def positions(algorithm):
        sprites = [make_sprite(w, h, f"s{i}") for i, (w, h) in enumerate(sizes)]
        return [(p.x, p.y) for p in pack_atlas(sprites, algorithm=algorithm).placements]

    assert positions("guillotine") == positions("maxrects")
    assert "Unknown packing algorithm" in caplog.text


def test_resolve_heuristic():
    assert resolve_heuristic("maxrects") == HeuristicType.BEST_SHORT_SIDE_FIT
    assert resolve_heuristic("BottomLeft") == HeuristicType.BOTTOM_LEFT
    assert resolve_heuristic(None) == HeuristicType.BEST_SHORT_SIDE_FIT


def test_grow_size_doubles_shorter_side_until_limit():
    assert _grow_size(32, 32, 2048) == (64, 32)
    assert _grow_size(64, 32, 2048) == (64, 64)
    assert _grow_size(256, 128, 256) == (256, 256)
    assert _grow_size(128, 256, 256) == (256, 256)
    assert _grow_size(256, 256, 256) is None


def test_grow_size_clamps_to_non_power_of_two_limit():
    assert _grow_size(64, 64, 100) == (100, 64)
    assert _grow_size(100, 64, 100) == (100, 100)
    assert _grow_size(100, 100, 100) is None


def test_non_power_of_two_max_size_is_reachable(make_sprite):
    surface = pack_atlas([make_sprite(80, 80, "big")], padding=0, max_size=100, power_of_two=False)

    assert surface.image.size == (80, 80)
    assert (surface.placements[0].x, surface.placements[0].y) == (0, 0)


def test_duplicate_names_are_rejected(make_sprite):
    with pytest.raises(InvalidInputError, match="hero"):
        pack_atlas([make_sprite(8, 8, "hero"), make_sprite(4, 4, "hero")])
