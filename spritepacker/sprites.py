import io
import os
from typing import Dict, List, Optional, Sequence

from PIL import Image

from .errors import InvalidInputError


class Rectangle:
    """An axis-aligned rectangle in surface-local pixel coordinates."""
    def __init__(self, x: int, y: int, width: int, height: int):
        self.x = x
        self.y = y
        self.width = width
        self.height = height

    def __repr__(self):
        return f"Rectangle({self.width}×{self.height} at ({self.x},{self.y}))"

    def __eq__(self, other):
        if not isinstance(other, Rectangle):
            return NotImplemented
        return (self.x, self.y, self.width, self.height) == (other.x, other.y, other.width, other.height)

    def __hash__(self):
        return hash((self.x, self.y, self.width, self.height))

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def intersects(self, other: 'Rectangle') -> bool:
        """Check if this rectangle overlaps another (touching edges do not count)."""
        return not (
            self.right <= other.x or
            self.bottom <= other.y or
            self.x >= other.right or
            self.y >= other.bottom
        )

    def contains(self, other: 'Rectangle') -> bool:
        """Check if *other* lies entirely inside this rectangle."""
        return (
            other.x >= self.x and
            other.y >= self.y and
            other.right <= self.right and
            other.bottom <= self.bottom
        )

    def area(self) -> int:
        return self.width * self.height

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


class Sprite:
    """A named RGBA image handed in for packing. Never modified by the packer."""
    def __init__(self, image: Image.Image, name: Optional[str] = None):
        if image.mode != 'RGBA':
            image = image.convert('RGBA')
        self.image = image
        self.name = name

    def __repr__(self):
        return f"Sprite({self.width}×{self.height} - {self.name})"

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @classmethod
    def open(cls, path: str, name: Optional[str] = None) -> 'Sprite':
        """Load a sprite from an image file, named after the file by default."""
        with Image.open(path) as img:
            img.load()
            return cls(img.convert('RGBA'), name or os.path.basename(path))


class Placement:
    """Where a sprite ended up on a surface.

    ``width`` and ``height`` are the padded dimensions reserved for the
    sprite; ``to_dict`` reports the sprite's own size.
    """
    def __init__(self, sprite: Sprite, x: int, y: int, width: int, height: int):
        self.sprite = sprite
        self.x = x
        self.y = y
        self.width = width
        self.height = height

    def __repr__(self):
        return f"Placement({self.name} at ({self.x},{self.y}) {self.width}×{self.height})"

    @property
    def name(self) -> str:
        return self.sprite.name

    @property
    def rect(self) -> Rectangle:
        return Rectangle(self.x, self.y, self.width, self.height)

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "width": self.sprite.width,
            "height": self.sprite.height,
        }


class Surface:
    """A composed image together with the placements drawn on it."""
    def __init__(self, image: Image.Image, placements: List[Placement]):
        self.image = image
        self.placements = placements

    def __repr__(self):
        return f"Surface({self.width}×{self.height}, {len(self.placements)} sprites)"

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def encode(self, image_format: str = 'png') -> bytes:
        buffer = io.BytesIO()
        self.image.save(buffer, format=image_format.upper())
        return buffer.getvalue()


class AnimationFrame:
    def __init__(self, index: int, duration: float, sprite: Sprite, bounds: Optional[Rectangle] = None):
        self.index = index
        self.duration = duration
        self.sprite = sprite
        self.bounds = bounds

    def __repr__(self):
        return f"AnimationFrame({self.index}, {self.duration}ms - {self.sprite.name})"


class Animation:
    """A frame sequence played back at a fixed rate."""
    def __init__(self, frames: List[AnimationFrame], fps: float, loop: bool = True):
        self.frames = frames
        self.fps = fps
        self.loop = loop

    @property
    def total_duration(self) -> float:
        return len(self.frames) * 1000 / self.fps


def next_power_of_two(n: int) -> int:
    """Return the next power of two greater than or equal to n."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def prepare_sprites(sprites: Sequence[Sprite]) -> List[Sprite]:
    """Validate a sprite list and give unnamed sprites a positional name."""
    sprites = list(sprites)
    if not sprites:
        raise InvalidInputError("At least one sprite is required")

    named = []
    seen = set()
    for index, sprite in enumerate(sprites):
        if sprite.width <= 0 or sprite.height <= 0:
            raise InvalidInputError(
                f"Sprite {sprite.name or index} has non-positive size {sprite.width}×{sprite.height}"
            )
        if not sprite.name:
            sprite = Sprite(sprite.image, f"sprite_{index}")
        # Atlas frames are keyed by name
        if sprite.name in seen:
            raise InvalidInputError(f"Duplicate sprite name {sprite.name!r}")
        seen.add(sprite.name)
        named.append(sprite)
    return named


def check_padding(padding: int) -> None:
    if padding < 0:
        raise InvalidInputError(f"Padding must not be negative, got {padding}")
