"""Exception types raised by the packing and layout functions."""


class SpritePackerError(Exception):
    """Base class for all spritepacker errors."""


class InvalidInputError(SpritePackerError, ValueError):
    """Raised for empty sprite lists, degenerate sizes or bad options."""


class PackingInfeasibleError(SpritePackerError):
    """No atlas up to the maximum size can hold every sprite.

    Callers can retry with a larger ``max_size``, with ``power_of_two``
    disabled, or fall back to a sprite sheet layout, which never fails.
    """

    def __init__(self, message: str, max_size: int = None, sprite_name: str = None):
        super().__init__(message)
        self.max_size = max_size
        self.sprite_name = sprite_name
