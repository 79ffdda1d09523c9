"""
Metadata serialization for sheets, atlases and animations.

Unknown format names never fail: they are logged and served with the
default format of the respective serializer, so callers always get a valid
metadata document back.
"""

import json
import logging
from typing import Callable, Dict, Iterable, List, Sequence, Union
from xml.sax.saxutils import quoteattr

from .errors import InvalidInputError
from .sprites import Animation, AnimationFrame, Placement, Rectangle, Sprite, Surface

log = logging.getLogger(__name__)

GENERATOR = "Procedural Sprite Factory"
METADATA_VERSION = "1.0"
DEFAULT_FPS = 12


# ---------------------------------------------------------------------------
# Sprite sheets
# ---------------------------------------------------------------------------

def sheet_metadata(placements: Sequence[Placement]) -> Dict:
    """Generic sprite sheet description, one entry per sprite in placement order."""
    return {
        "format": "sprite-sheet",
        "sprites": [p.to_dict() for p in placements],
        "meta": {
            "version": METADATA_VERSION,
            "generator": GENERATOR,
        },
    }


# ---------------------------------------------------------------------------
# Atlases
# ---------------------------------------------------------------------------

def _atlas_json(surface: Surface, image_name: str) -> str:
    frames = {}
    for placement in surface.placements:
        item = placement.to_dict()
        frames[item["name"]] = {
            "frame": {"x": item["x"], "y": item["y"], "w": item["width"], "h": item["height"]},
            "rotated": False,
            "trimmed": False,
            "spriteSourceSize": {"x": 0, "y": 0, "w": item["width"], "h": item["height"]},
            "sourceSize": {"w": item["width"], "h": item["height"]},
        }

    atlas = {
        "frames": frames,
        "meta": {
            "app": GENERATOR,
            "version": METADATA_VERSION,
            "image": image_name,
            "format": "RGBA8888",
            "size": {"w": surface.width, "h": surface.height},
            "scale": "1",
        },
    }
    return json.dumps(atlas, indent=2)


def _atlas_xml(surface: Surface, image_name: str) -> str:
    lines = ['<?xml version="1.0" encoding="UTF-8"?>',
             f'<TextureAtlas imagePath={quoteattr(image_name)}>']
    for placement in surface.placements:
        item = placement.to_dict()
        lines.append(
            f'  <SubTexture name={quoteattr(item["name"])} x="{item["x"]}" y="{item["y"]}" '
            f'width="{item["width"]}" height="{item["height"]}"/>'
        )
    lines.append('</TextureAtlas>')
    return "\n".join(lines)


def _atlas_txt(surface: Surface, image_name: str) -> str:
    lines = []
    for placement in surface.placements:
        item = placement.to_dict()
        lines.append(f'{item["name"]} {item["x"]} {item["y"]} {item["width"]} {item["height"]}\n')
    return "".join(lines)


ATLAS_FORMATS: Dict[str, Callable[[Surface, str], str]] = {
    'json': _atlas_json,
    'xml': _atlas_xml,
    'txt': _atlas_txt,
}
DEFAULT_ATLAS_FORMAT = 'json'


def atlas_metadata(surface: Surface, metadata_format: str = DEFAULT_ATLAS_FORMAT,
                   image_name: str = "atlas.png") -> str:
    """Serialize an atlas as TexturePacker JSON, Starling-style XML or plain text."""
    serializer = ATLAS_FORMATS.get(metadata_format)
    if serializer is None:
        log.warning("Unsupported atlas metadata format %r, using %r", metadata_format, DEFAULT_ATLAS_FORMAT)
        serializer = ATLAS_FORMATS[DEFAULT_ATLAS_FORMAT]
    return serializer(surface, image_name)


# ---------------------------------------------------------------------------
# Animations
# ---------------------------------------------------------------------------

FrameSource = Union[Sprite, Placement, tuple]


def build_animation(frames: Iterable[FrameSource], fps: float = DEFAULT_FPS, loop: bool = True) -> Animation:
    """Build a timeline with one fixed-length frame per entry.

    Entries may be sprites (no bounds), placements (bounds taken from the
    sheet they were laid out on) or ``(sprite, bounds)`` pairs.
    """
    if fps <= 0:
        raise InvalidInputError(f"fps must be positive, got {fps}")

    duration = 1000 / fps
    timeline: List[AnimationFrame] = []
    for index, entry in enumerate(frames):
        if isinstance(entry, Placement):
            sprite = entry.sprite
            bounds = Rectangle(entry.x, entry.y, entry.sprite.width, entry.sprite.height)
        elif isinstance(entry, Sprite):
            sprite, bounds = entry, None
        else:
            sprite, bounds = entry
        if not sprite.name:
            sprite = Sprite(sprite.image, f"frame_{index}")
        timeline.append(AnimationFrame(index, duration, sprite, bounds))

    if not timeline:
        raise InvalidInputError("An animation needs at least one frame")
    return Animation(timeline, fps, loop)


def _animation_json(animation: Animation) -> str:
    return json.dumps({
        "frames": [
            {
                "index": frame.index,
                "duration": frame.duration,
                "sprite": frame.sprite.name,
                "bounds": frame.bounds.to_dict() if frame.bounds is not None else None,
            }
            for frame in animation.frames
        ],
        "fps": animation.fps,
        "loop": animation.loop,
        "totalDuration": animation.total_duration,
    }, indent=2)


def _animation_spine(animation: Animation) -> str:
    # Attachment keys are in seconds
    attachments = [
        {"time": frame.index * frame.duration / 1000, "name": frame.sprite.name}
        for frame in animation.frames
    ]
    return json.dumps({
        "skeleton": {"hash": "procedural", "spine": "4.0", "width": 0, "height": 0},
        "bones": [{"name": "root"}],
        "slots": [{"name": "sprite", "bone": "root"}],
        "animations": {
            "default": {
                "slots": {
                    "sprite": {"attachment": attachments},
                },
            },
        },
    }, indent=2)


ANIMATION_FORMATS: Dict[str, Callable[[Animation], str]] = {
    'json': _animation_json,
    'spine': _animation_spine,
}
DEFAULT_ANIMATION_FORMAT = 'json'


def animation_metadata(animation: Animation, animation_format: str = DEFAULT_ANIMATION_FORMAT) -> str:
    """Serialize a timeline as generic JSON or as a Spine skeleton with one slot."""
    serializer = ANIMATION_FORMATS.get(animation_format)
    if serializer is None:
        log.warning("Unsupported animation format %r, using %r", animation_format, DEFAULT_ANIMATION_FORMAT)
        serializer = ANIMATION_FORMATS[DEFAULT_ANIMATION_FORMAT]
    return serializer(animation)
