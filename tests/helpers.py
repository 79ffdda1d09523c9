import itertools


def assert_no_overlap(placements):
    for a, b in itertools.combinations(placements, 2):
        assert not a.rect.intersects(b.rect), f"{a} overlaps {b}"


def assert_inside(placements, width, height):
    for p in placements:
        assert p.x >= 0 and p.y >= 0
        assert p.x + p.width <= width
        assert p.y + p.height <= height
