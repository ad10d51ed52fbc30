"""Command line entry point: resolve a texture set onto a USD stage."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .core.exceptions import TexLinkError, USDStageError
from .core.filesystem import DefaultFileSystem, FileSystem
from .core.models import TextureAsset
from .core.resolver import TextureResolver, format_mapping_summary, outcomes_to_report
from .core.settings import DEFAULT_SETTINGS, load_settings
from .core.asset_source import load_textures
from .logging_utils import configure_logging, parse_log_level
from .version import get_version

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="texlink",
        description="Match loosely named textures to the materials of a USD stage.",
    )
    parser.add_argument("stage", help="USD file to update.")
    parser.add_argument(
        "--textures",
        required=True,
        help=(
            "ZIP archive or directory holding the texture files. Textures from a "
            "directory are authored as absolute paths; textures from a ZIP are "
            "authored as archive entry paths, so extract the archive next to the "
            "written stage for them to resolve."
        ),
    )
    parser.add_argument(
        "--output",
        default="",
        help="Write the result to this file instead of saving the stage in place.",
    )
    parser.add_argument(
        "--config",
        default="",
        help="Optional JSON file with resolver settings.",
    )
    parser.add_argument(
        "--root",
        default="",
        help="Only resolve meshes below this prim path.",
    )
    parser.add_argument(
        "--report",
        default="",
        help="Optional JSON file receiving the per-material mapping.",
    )
    parser.add_argument("--log-level", default="info", type=parse_log_level)
    parser.add_argument("--version", action="version", version=get_version())
    return parser


def _asset_path_resolver(
    source: Path, fs: FileSystem
) -> Callable[[TextureAsset], str]:
    if fs.is_directory(source):
        root = source.resolve()
        return lambda asset: (root / asset.key).as_posix()
    return lambda asset: asset.key


def run(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level)

    # pxr is imported lazily so the pure resolver works without usd-core.
    from pxr import Tf, Usd

    from .usd.usd_scene import collect_material_targets

    fs = DefaultFileSystem()
    settings = load_settings(Path(args.config), fs) if args.config else DEFAULT_SETTINGS
    source = Path(args.textures)
    assets = load_textures(source, settings=settings, fs=fs)

    stage_path = Path(args.stage)
    try:
        stage = Usd.Stage.Open(str(stage_path))
    except Tf.ErrorException as exc:
        raise USDStageError(
            "Failed to open USD stage.",
            details={"stage": str(stage_path), "error": str(exc)},
        ) from exc
    if not stage:
        raise USDStageError(
            "Failed to open USD stage.", details={"stage": str(stage_path)}
        )

    targets = collect_material_targets(
        stage,
        root_path=args.root or None,
        asset_path_resolver=_asset_path_resolver(source, fs),
    )
    resolver = TextureResolver(assets, settings)
    outcomes = resolver.resolve(targets)
    if args.log_level > logging.INFO:
        # The resolver logs the summary at INFO; keep it visible when quieter.
        print(format_mapping_summary(outcomes, resolver.index))

    if args.output:
        output = Path(args.output)
        fs.ensure_directory(output.parent)
        if not stage.GetRootLayer().Export(str(output)):
            raise USDStageError("Failed to export stage.", details={"output": str(output)})
        logger.info("Wrote %s", output)
    else:
        stage.GetRootLayer().Save()
        logger.info("Saved %s", stage_path)

    if args.report:
        fs.write_json(Path(args.report), {"materials": outcomes_to_report(outcomes)})
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    try:
        return run(argv)
    except TexLinkError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
