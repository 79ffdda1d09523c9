import pytest
from PIL import Image

from spritepacker import Sprite


@pytest.fixture
def make_sprite():
    """Factory for solid-colour sprites."""
    def _make(width, height, name=None, color=(255, 0, 0, 255)):
        return Sprite(Image.new('RGBA', (width, height), color), name)
    return _make
