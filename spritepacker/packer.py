import enum
import logging
from typing import List, Optional, Tuple

from .sprites import Rectangle

log = logging.getLogger(__name__)


class HeuristicType(enum.Enum):
    """Enum for placement heuristics."""
    BEST_SHORT_SIDE_FIT = 1  # Minimize the shorter leftover side
    BEST_LONG_SIDE_FIT = 2   # Minimize the longer leftover side
    BEST_AREA_FIT = 3        # Minimize the total area of leftover space
    BOTTOM_LEFT = 4          # Topmost, then leftmost free position


class MaxRectsPacker:
    """Maximal Rectangles allocator for a single fixed-size surface.

    Every placement reserves ``padding`` extra pixels on its right and bottom
    edges. Free space is tracked as a list of possibly overlapping maximal
    rectangles; placing a rectangle splits each free rectangle it touches into
    the slivers left, right, above and below it. With ``prune`` enabled, free
    rectangles swallowed by another are dropped after each split.
    """

    def __init__(self, width: int, height: int, padding: int = 0,
                 heuristic: HeuristicType = HeuristicType.BEST_SHORT_SIDE_FIT,
                 prune: bool = True):
        self.width = width
        self.height = height
        self.padding = padding
        self.heuristic = heuristic
        self.prune = prune
        # Start with the entire surface as a free rectangle
        self.free_rects: List[Rectangle] = [Rectangle(0, 0, width, height)]
        self.used_rects: List[Rectangle] = []

    def _score(self, free_rect: Rectangle, width: int, height: int) -> Tuple[int, ...]:
        """Score a candidate free rectangle; lower is better."""
        leftover_width = free_rect.width - width
        leftover_height = free_rect.height - height

        if self.heuristic == HeuristicType.BEST_LONG_SIDE_FIT:
            return max(leftover_width, leftover_height), min(leftover_width, leftover_height)

        if self.heuristic == HeuristicType.BEST_AREA_FIT:
            return free_rect.area() - width * height, min(leftover_width, leftover_height)

        if self.heuristic == HeuristicType.BOTTOM_LEFT:
            return free_rect.y, free_rect.x

        # Short side only, so equal fits go to the earliest free rectangle
        return (min(leftover_width, leftover_height),)

    def find_position(self, width: int, height: int) -> Optional[Rectangle]:
        """Return the best padded rectangle for the request, or None if nothing fits."""
        best_score = None
        best_rect = None

        for free_rect in self.free_rects:
            if free_rect.width < width or free_rect.height < height:
                continue
            score = self._score(free_rect, width, height)
            if best_score is None or score < best_score:
                best_score = score
                best_rect = Rectangle(free_rect.x, free_rect.y, width, height)

        return best_rect

    def insert(self, width: int, height: int) -> Optional[Rectangle]:
        """Place a ``width`` × ``height`` request.

        Returns the padded rectangle it occupies, or None when it does not fit
        on this surface. A miss leaves the packer unchanged.
        """
        used_rect = self.find_position(width + self.padding, height + self.padding)
        if used_rect is None:
            log.debug("No room for %d×%d on %d×%d surface (%d free rects)",
                      width, height, self.width, self.height, len(self.free_rects))
            return None

        self.used_rects.append(used_rect)
        self._split_free_rectangles(used_rect)
        if self.prune:
            self._prune_free_rectangles()

        return used_rect

    def _split_free_rectangles(self, used_rect: Rectangle):
        """Replace every free rectangle overlapping *used_rect* with its uncovered slivers."""
        new_free_rects = []

        for free_rect in self.free_rects:
            if not used_rect.intersects(free_rect):
                new_free_rects.append(free_rect)
                continue

            if used_rect.x > free_rect.x:
                new_free_rects.append(Rectangle(
                    free_rect.x, free_rect.y,
                    used_rect.x - free_rect.x, free_rect.height,
                ))

            if used_rect.right < free_rect.right:
                new_free_rects.append(Rectangle(
                    used_rect.right, free_rect.y,
                    free_rect.right - used_rect.right, free_rect.height,
                ))

            if used_rect.y > free_rect.y:
                new_free_rects.append(Rectangle(
                    free_rect.x, free_rect.y,
                    free_rect.width, used_rect.y - free_rect.y,
                ))

            if used_rect.bottom < free_rect.bottom:
                new_free_rects.append(Rectangle(
                    free_rect.x, used_rect.bottom,
                    free_rect.width, free_rect.bottom - used_rect.bottom,
                ))

        self.free_rects = new_free_rects

    def _prune_free_rectangles(self):
        """Remove free rectangles contained in another one, keeping the first of equal pairs."""
        pruned = []
        for i, rect in enumerate(self.free_rects):
            redundant = False
            for j, other in enumerate(self.free_rects):
                if i == j or not other.contains(rect):
                    continue
                if rect != other or j < i:
                    redundant = True
                    break
            if not redundant:
                pruned.append(rect)
        self.free_rects = pruned

    def occupancy(self) -> float:
        """Fraction of the surface covered by used rectangles."""
        used_area = sum(rect.area() for rect in self.used_rects)
        return used_area / (self.width * self.height)
