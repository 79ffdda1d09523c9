"""
Export entry points: sprite sheets, atlases, animation timelines and
engine-specific bundles for Phaser, Godot, Unity 2D and Unreal Paper2D.
"""

import json
import logging
from typing import Callable, Dict, NamedTuple, Optional, Sequence

from .atlas import DEFAULT_ALGORITHM, DEFAULT_MAX_SIZE, DEFAULT_PADDING, pack_atlas
from .metadata import (DEFAULT_ANIMATION_FORMAT, DEFAULT_ATLAS_FORMAT, DEFAULT_FPS,
                       animation_metadata, atlas_metadata, build_animation, sheet_metadata)
from .sheet import DEFAULT_LAYOUT, layout_sheet
from .sprites import Sprite

log = logging.getLogger(__name__)


def export_sprite_sheet(sprites: Sequence[Sprite], layout: str = DEFAULT_LAYOUT,
                        padding: int = DEFAULT_PADDING, power_of_two: bool = True,
                        image_format: str = 'png') -> Dict:
    """Lay sprites out as a sheet; returns the encoded image and a metadata dict."""
    surface = layout_sheet(sprites, layout, padding, power_of_two)
    return {
        "image": surface.encode(image_format),
        "metadata": sheet_metadata(surface.placements),
    }


def export_atlas(sprites: Sequence[Sprite], algorithm: str = DEFAULT_ALGORITHM,
                 padding: int = DEFAULT_PADDING, max_size: int = DEFAULT_MAX_SIZE,
                 power_of_two: bool = True, image_format: str = 'png',
                 metadata_format: str = DEFAULT_ATLAS_FORMAT, image_name: str = "atlas.png") -> Dict:
    """Pack sprites into an atlas; returns the encoded image and serialized metadata.

    Raises :class:`PackingInfeasibleError` when the sprites do not fit.
    """
    surface = pack_atlas(sprites, algorithm, padding, max_size, power_of_two)
    return {
        "image": surface.encode(image_format),
        "metadata": atlas_metadata(surface, metadata_format, image_name),
    }


def export_animation(frames, fps: float = DEFAULT_FPS, loop: bool = True,
                     animation_format: str = DEFAULT_ANIMATION_FORMAT) -> str:
    return animation_metadata(build_animation(frames, fps, loop), animation_format)


# ---------------------------------------------------------------------------
# Engine targets
# ---------------------------------------------------------------------------

PHASER_LOADER = """\
// Phaser 3 loader code
this.load.atlas('sprites', 'atlas.png', 'atlas.json');"""

GODOT_IMPORT = """\
[remap]

importer="texture"
type="CompressedTexture2D"
path="res://.godot/imported/atlas.png"

[deps]

source_file="res://atlas.png"
dest_files=["res://.godot/imported/atlas.png"]"""


class EngineTarget(NamedTuple):
    """How to export for one engine.

    ``export`` is ``'atlas'`` or ``'sheet'``; ``overrides`` are forced on top
    of the caller's parameters; the metadata lands under ``metadata_key``,
    parsed from JSON when ``parse_json`` is set; ``snippet`` is an optional
    ``(key, text)`` pair of engine glue.
    """
    name: str
    export: str
    metadata_format: Optional[str]
    overrides: Dict
    metadata_key: str
    parse_json: bool = False
    snippet: Optional[tuple] = None


ENGINE_TARGETS: Dict[str, EngineTarget] = {
    'phaser': EngineTarget('phaser', 'atlas', 'json', {}, 'json', parse_json=True,
                           snippet=('loader', PHASER_LOADER)),
    'godot': EngineTarget('godot', 'atlas', 'txt', {}, 'atlas',
                          snippet=('resource', GODOT_IMPORT)),
    'unity': EngineTarget('unity', 'atlas', 'json', {'power_of_two': True}, 'meta', parse_json=True),
    'unreal': EngineTarget('unreal', 'sheet', None, {'power_of_two': True}, 'metadata'),
}

_EXPORTERS: Dict[str, Callable[..., Dict]] = {
    'atlas': export_atlas,
    'sheet': export_sprite_sheet,
}

_EXPORT_PARAMS = {
    'atlas': ('algorithm', 'padding', 'max_size', 'power_of_two', 'image_format',
              'metadata_format', 'image_name'),
    'sheet': ('layout', 'padding', 'power_of_two', 'image_format'),
}


def _select_params(export: str, params: Dict) -> Dict:
    """Keep only the parameters the given exporter understands."""
    accepted = _EXPORT_PARAMS[export]
    return {key: value for key, value in params.items() if key in accepted}


def export_for_engine(sprites: Sequence[Sprite], engine: Optional[str] = None, **params) -> Dict:
    """Export sprites the way *engine* expects them.

    Unknown or missing engines get a plain :func:`export_atlas` result.
    """
    target = ENGINE_TARGETS.get((engine or '').lower())
    if target is None:
        if engine:
            log.warning("Unknown engine %r, exporting a generic atlas", engine)
        return export_atlas(sprites, **_select_params('atlas', params))

    params = dict(params, **target.overrides)
    if target.export == 'atlas':
        params['metadata_format'] = target.metadata_format
    params = _select_params(target.export, params)

    result = _EXPORTERS[target.export](sprites, **params)
    metadata = result["metadata"]
    if target.parse_json:
        metadata = json.loads(metadata)

    bundle = {"image": result["image"], target.metadata_key: metadata}
    if target.snippet is not None:
        key, text = target.snippet
        bundle[key] = text
    log.debug("Built %s export bundle with keys %s", target.name, sorted(bundle))
    return bundle
