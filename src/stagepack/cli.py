"""Command-line front end: stage a binary and package it as an AppImage.

Usage:
    stagepack build --output dist --binary build/myapp --product-file-name MyApp
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from stagepack.builders import AppImageBuilder, appimage_builder
from stagepack.errors import StagepackError, ValidationError
from stagepack.models import BuildResult, DirectoryMapping, PackageOptions, SymlinkMapping, Target
from stagepack.observability import StructuredLogger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stagepack", description="AppImage packager plugin")
    sub = parser.add_subparsers(dest="command", required=True)

    build_p = sub.add_parser("build", help="Stage a binary and run app-builder")
    build_p.add_argument("--output", required=True, type=Path, help="Output directory")
    build_p.add_argument("--binary", required=True, type=Path, help="Compiled binary to package")
    build_p.add_argument("--product-file-name", required=True, help="AppImage file name stem")
    build_p.add_argument("--product-name", default="")
    build_p.add_argument("--executable-name", default="")
    build_p.add_argument("--system-integration", default="")
    build_p.add_argument("--desktop-entry", default="")
    build_p.add_argument("--license", type=Path, default=None, help="License file shown on first run")
    build_p.add_argument(
        "--directory",
        action="append",
        default=[],
        metavar="FROM[:TO]",
        help="Extra directory to mirror into the app directory (repeatable)",
    )
    build_p.add_argument(
        "--symlink",
        action="append",
        default=[],
        metavar="FROM:TO",
        help="Symlink to create inside the app directory (repeatable)",
    )
    build_p.add_argument("--debug", action="store_true", help="Keep working directories")
    build_p.add_argument("--log-file", type=Path, default=None, help="Write JSON-lines logs here")
    return parser


def cmd_build(args: argparse.Namespace, logger: StructuredLogger) -> BuildResult | None:
    target = Target(
        output=args.output,
        binary=args.binary,
        directories=tuple(_parse_directory(value) for value in args.directory),
        symlinks=tuple(_parse_symlink(value) for value in args.symlink),
    )
    options = PackageOptions(
        product_name=args.product_name,
        product_file_name=args.product_file_name,
        executable_name=args.executable_name,
        system_integration=args.system_integration,
        desktop_entry=args.desktop_entry,
        license=args.license,
        debug=args.debug,
    )
    builder = appimage_builder(target, options, logger=logger)
    return asyncio.run(_package(builder))


async def _package(builder: AppImageBuilder) -> BuildResult | None:
    try:
        await builder.init()
        return await builder.build()
    finally:
        await builder.cleanup()


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = StructuredLogger()
    try:
        if args.command == "build":
            result = cmd_build(args, logger)
            print(json.dumps(result.to_dict() if result else None, sort_keys=True))
    except StagepackError as exc:
        print(json.dumps(exc.to_dict(), sort_keys=True), file=sys.stderr)
        return 1
    finally:
        if args.log_file is not None:
            logger.to_json_lines(args.log_file)
    return 0


def _parse_directory(value: str) -> DirectoryMapping:
    source, _, destination = value.partition(":")
    if not source:
        raise ValidationError(
            f"Invalid --directory value `{value}`.",
            hint="Use FROM or FROM:TO.",
            context={"operation": "cli", "option": "--directory"},
        )
    return DirectoryMapping(
        source=Path(source),
        destination=Path(destination) if destination else None,
    )


def _parse_symlink(value: str) -> SymlinkMapping:
    source, _, destination = value.partition(":")
    if not source or not destination:
        raise ValidationError(
            f"Invalid --symlink value `{value}`.",
            hint="Use FROM:TO.",
            context={"operation": "cli", "option": "--symlink"},
        )
    return SymlinkMapping(source=Path(source), destination=Path(destination))


if __name__ == "__main__":
    raise SystemExit(main())
