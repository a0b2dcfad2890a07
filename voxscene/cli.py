"""Convert a MagicaVoxel .vox file into a scene description.

Usage:
    voxscene -vi <model.vox> [-o <output dir>] [-v] [--log-dir <dir>]

The scene is written as JSON to <output dir>/<model stem>.json.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from voxscene import __version__
from voxscene.errors import VoxError
from voxscene.log import setup_logging, shutdown_logging
from voxscene.materials import convert_properties, describe_material
from voxscene.model import load_model
from voxscene.palette import resolve
from voxscene.scene import SceneOptions, build_scene
from voxscene.voxfile import MAX_CHUNK_DEPTH

logger = logging.getLogger(__name__)

LICENSE_TEXT = """\
voxscene

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voxscene", description="Convert a MagicaVoxel .vox file into a scene description"
    )
    parser.add_argument("-vi", "--voxin", help="Input .vox file")
    parser.add_argument(
        "-o", "--output",
        default=".",
        help="Output directory for the scene file (default: current directory)",
    )
    parser.add_argument(
        "-li", "--licenseinfo",
        action="store_true",
        help="Print license info and exit",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--max-depth",
        type=int,
        default=MAX_CHUNK_DEPTH,
        help=f"Deepest chunk nesting to follow (default: {MAX_CHUNK_DEPTH})",
    )
    parser.add_argument(
        "--material-type",
        default=SceneOptions.material_type,
        help=f"Material node type (default: {SceneOptions.material_type})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument("--log-dir", help="Also write a log file to this directory")
    return parser


def output_path(input_path: Path, output_dir: str) -> Path:
    """Scene file path: the input's base name with a .json extension."""
    return Path(output_dir) / f"{input_path.stem}.json"


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.licenseinfo:
        print(LICENSE_TEXT)
        return 0

    setup_logging(args.log_dir, logging.DEBUG if args.verbose else logging.INFO)
    try:
        return convert(args)
    finally:
        shutdown_logging()


def convert(args: argparse.Namespace) -> int:
    """Decode the input named by the parsed arguments and write its scene."""
    if not args.voxin:
        logger.error("Mandatory -vi .vox input missing")
        return 1

    input_path = Path(args.voxin)
    if input_path.suffix != ".vox":
        logger.error("Input file must have a .vox extension: %s", input_path)
        return 1
    if not input_path.is_file():
        logger.error("Input file does not exist: %s", input_path)
        return 1

    try:
        model = load_model(str(input_path), args.max_depth)
    except VoxError as err:
        logger.error("Could not decode %s: %s", input_path, err)
        return 1
    except OSError as err:
        logger.error("Could not read %s: %s", input_path, err)
        return 1

    for material_id, material in model.materials.items():
        logger.debug(describe_material(material_id, convert_properties(material.properties)))

    resolved = resolve(model)
    options = SceneOptions(material_type=args.material_type)
    scene = build_scene(resolved, options=options)

    out = output_path(input_path, args.output)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        scene.write(str(out))
    except OSError as err:
        logger.error("Could not write %s: %s", out, err)
        return 1

    logger.info("Wrote %d voxels to %s", len(resolved.voxels), out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
