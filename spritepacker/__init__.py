"""Texture atlas packing, sprite sheet layout and pixel-art post-processing."""

from .atlas import pack_atlas
from .errors import InvalidInputError, PackingInfeasibleError, SpritePackerError
from .exporter import export_animation, export_atlas, export_for_engine, export_sprite_sheet
from .metadata import animation_metadata, atlas_metadata, build_animation, sheet_metadata
from .packer import HeuristicType, MaxRectsPacker
from .pixelart import dither, generate_palette, outline, pixelate, quantize, stylize
from .sheet import layout_sheet
from .sprites import Animation, AnimationFrame, Placement, Rectangle, Sprite, Surface, next_power_of_two

__version__ = "1.0.0"
