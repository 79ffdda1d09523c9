import argparse
import json
import logging
import os
import sys
from typing import List

from PIL import Image

from .atlas import ALGORITHMS, DEFAULT_MAX_SIZE, DEFAULT_PADDING
from .errors import SpritePackerError
from .exporter import ENGINE_TARGETS, export_atlas, export_for_engine, export_sprite_sheet
from .metadata import ATLAS_FORMATS
from .pixelart import DEFAULT_PALETTE_SIZE, PIXELATE_RESOLUTION, pixelate
from .sheet import LAYOUTS
from .sprites import Sprite

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.gif')
METADATA_EXTENSIONS = {'json': 'json', 'xml': 'xml', 'txt': 'txt'}


def load_sprites(input_dir: str) -> List[Sprite]:
    """Load every image file in *input_dir* (not recursive), sorted by file name."""
    sprites = []
    for file in sorted(os.listdir(input_dir)):
        full_path = os.path.join(input_dir, file)
        if os.path.isfile(full_path) and file.lower().endswith(IMAGE_EXTENSIONS):
            sprites.append(Sprite.open(full_path))
    return sprites


def _write_bytes(path: str, data: bytes):
    with open(path, 'wb') as f:
        f.write(data)


def _write_text(path: str, text: str):
    with open(path, 'w') as f:
        f.write(text)


def _efficiency(metadata_sprites, width: int, height: int) -> float:
    sprite_pixels = sum(item["width"] * item["height"] for item in metadata_sprites)
    return (sprite_pixels / (width * height)) * 100


def run_sheet(args, sprites: List[Sprite]) -> int:
    result = export_sprite_sheet(sprites, args.layout, args.padding, not args.no_pot)
    sheet_path = os.path.join(args.output_dir, f"{args.prefix}.png")
    meta_path = os.path.join(args.output_dir, f"{args.prefix}.json")

    _write_bytes(sheet_path, result["image"])
    with open(meta_path, 'w') as f:
        json.dump(result["metadata"], f, indent=2)

    with Image.open(sheet_path) as sheet:
        width, height = sheet.size
    print(f"Saved sheet {sheet_path} ({width}×{height}) with {len(sprites)} sprites")
    print(f"Sheet efficiency: {_efficiency(result['metadata']['sprites'], width, height):.2f}%")
    return 0


def run_atlas(args, sprites: List[Sprite]) -> int:
    image_name = f"{args.prefix}.png"
    sheet_path = os.path.join(args.output_dir, image_name)

    if args.engine:
        bundle = export_for_engine(sprites, args.engine, algorithm=args.algorithm,
                                   padding=args.padding, max_size=args.max_size,
                                   power_of_two=not args.no_pot)
        _write_bytes(sheet_path, bundle.pop("image"))
        for key, value in bundle.items():
            if isinstance(value, str):
                path = os.path.join(args.output_dir, f"{args.prefix}.{key}.txt")
                _write_text(path, value)
            else:
                path = os.path.join(args.output_dir, f"{args.prefix}.{key}.json")
                with open(path, 'w') as f:
                    json.dump(value, f, indent=2)
            print(f"Saved {args.engine} {key}: {path}")
        print(f"Saved atlas {sheet_path}")
        return 0

    result = export_atlas(sprites, args.algorithm, args.padding, args.max_size,
                          not args.no_pot, metadata_format=args.metadata_format,
                          image_name=image_name)
    extension = METADATA_EXTENSIONS.get(args.metadata_format, 'json')
    meta_path = os.path.join(args.output_dir, f"{args.prefix}.{extension}")
    _write_bytes(sheet_path, result["image"])
    _write_text(meta_path, result["metadata"])

    with Image.open(sheet_path) as sheet:
        print(f"Saved atlas {sheet_path} ({sheet.width}×{sheet.height}) with {len(sprites)} sprites")
    print(f"Saved metadata {meta_path}")
    return 0


def run_pixelate(args) -> int:
    with Image.open(args.input) as source:
        size = tuple(args.size) if args.size else None
        result = pixelate(source, size, args.resolution, args.palette_size)
    result.save(args.output)
    print(f"Saved pixel art {args.output} ({result.width}×{result.height})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='spritepacker',
                                     description='Pack sprites into sheets and atlases, and stylize them as pixel art')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    sheet = subparsers.add_parser('sheet', help='Lay sprites out as a row, column or grid')
    sheet.add_argument('input_dir', help='Directory containing sprite frames')
    sheet.add_argument('output_dir', help='Directory to save the sheet and its metadata')
    sheet.add_argument('--layout', default='horizontal', choices=LAYOUTS, help='Sheet layout')
    sheet.add_argument('--padding', type=int, default=DEFAULT_PADDING, help='Padding between sprites')
    sheet.add_argument('--no-pot', action='store_true', help='Do not round the sheet to powers of two')
    sheet.add_argument('--prefix', default='sheet', help='Prefix for output files')

    atlas = subparsers.add_parser('atlas', help='Pack sprites into a texture atlas')
    atlas.add_argument('input_dir', help='Directory containing sprite frames')
    atlas.add_argument('output_dir', help='Directory to save the atlas and its metadata')
    atlas.add_argument('--algorithm', default='maxrects', choices=sorted(ALGORITHMS),
                       help='Placement heuristic to use')
    atlas.add_argument('--padding', type=int, default=DEFAULT_PADDING, help='Padding between sprites')
    atlas.add_argument('--max-size', type=int, default=DEFAULT_MAX_SIZE, help='Maximum atlas width and height')
    atlas.add_argument('--no-pot', action='store_true', help='Do not round the atlas to powers of two')
    atlas.add_argument('--metadata-format', default='json', choices=sorted(ATLAS_FORMATS),
                       help='Atlas metadata format')
    atlas.add_argument('--engine', choices=sorted(ENGINE_TARGETS), help='Export a bundle for a game engine')
    atlas.add_argument('--prefix', default='atlas', help='Prefix for output files')

    pixel = subparsers.add_parser('pixelate', help='Render an image as low resolution pixel art')
    pixel.add_argument('input', help='Source image')
    pixel.add_argument('output', help='Destination image')
    pixel.add_argument('--resolution', type=int, default=PIXELATE_RESOLUTION, help='Intermediate resolution')
    pixel.add_argument('--palette-size', type=int, default=DEFAULT_PALETTE_SIZE, help='Colour levels per channel')
    pixel.add_argument('--size', type=int, nargs=2, metavar=('WIDTH', 'HEIGHT'),
                       help='Output size (defaults to the source size)')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        if args.command == 'pixelate':
            return run_pixelate(args)

        print(f"Scanning directory: {args.input_dir}")
        try:
            sprites = load_sprites(args.input_dir)
        except OSError as e:
            print(f"Error scanning directory: {e}")
            return 1
        if not sprites:
            print(f"No sprite files found in {args.input_dir}")
            return 1
        print(f"Found {len(sprites)} sprite files")

        os.makedirs(args.output_dir, exist_ok=True)
        if args.command == 'sheet':
            return run_sheet(args, sprites)
        return run_atlas(args, sprites)
    except SpritePackerError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
