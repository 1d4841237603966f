#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import os
import pathlib
import sys
from typing import Any, Sequence

from xui_packager.config import METADATA_PREFIX, parse_config
from xui_packager.errors import StageFailed
from xui_packager.pipeline import run_pipeline


logger = logging.getLogger("xui_packager")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
RAW_FLAGS = ("name", "id", "vue_src", "xui_src", "output", "exclude", "icon")


def split_metadata_args(argv: Sequence[str]) -> tuple[dict[str, Any], list[str]]:
    """Pull ``--met_<key> [value]`` flags out of ``argv``.

    Metadata keys are free-form, so they are handled before argparse sees the
    rest. A flag without a value is recorded as ``True``.
    """
    metadata: dict[str, Any] = {}
    remaining: list[str] = []
    index = 0
    while index < len(argv):
        token = argv[index]
        index += 1
        if not token.startswith(f"--{METADATA_PREFIX}"):
            remaining.append(token)
            continue
        key, sep, value = token[2:].partition("=")
        if sep:
            metadata[key] = value
        elif index < len(argv) and not argv[index].startswith("--"):
            metadata[key] = argv[index]
            index += 1
        else:
            metadata[key] = True
    return metadata, remaining


def build_parser() -> argparse.ArgumentParser:
    default_level = os.environ.get("XUI_LOG_LEVEL", "INFO").upper()
    if default_level not in LOG_LEVELS:
        default_level = "INFO"

    parser = argparse.ArgumentParser(
        prog="xui",
        description="Package a built front-end into an XUI content library archive.",
        epilog="Any --met_<key> <value> flag is added to the package metadata as <key>.",
        allow_abbrev=False,
    )
    parser.add_argument("--name", help="XUI name, also the folder name inside the archive")
    parser.add_argument("--id", help='Global id in the format "XXX-xxxxxxxx"')
    parser.add_argument("--vue_src", help="Built front-end directory (default: dist)")
    parser.add_argument("--xui_src", help="XUI source directory (default: xui/src)")
    parser.add_argument("--output", help="Output directory (default: xui/dist)")
    parser.add_argument("--exclude", action="append", help="Pattern to exclude when copying (repeatable)")
    parser.add_argument("--icon", help="Icon file to bundle with the package")
    parser.add_argument("--descriptor", type=pathlib.Path,
                        help="Project descriptor (default: nearest package.json)")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=default_level,
                        help="Logging level (default: $XUI_LOG_LEVEL or INFO)")
    return parser


def parse_args(argv: Sequence[str]) -> tuple[dict[str, Any], argparse.Namespace]:
    metadata, remaining = split_metadata_args(argv)
    options = build_parser().parse_args(remaining)
    raw = {flag: getattr(options, flag) for flag in RAW_FLAGS}
    raw.update(metadata)
    return parse_config(raw), options


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format="[xui] %(levelname)s %(message)s")
    logger.setLevel(level)


def main(argv: Sequence[str] | None = None) -> int:
    cli_config, options = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(options.log_level)

    try:
        package_path = run_pipeline(cli_config, options.descriptor)
    except StageFailed as exc:
        logger.debug("Stage failure details", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Wrote {package_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
