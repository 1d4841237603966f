from __future__ import annotations

import enum
import logging
import pathlib
from typing import Any, Callable, Mapping, TypeVar

from xui_packager.archive import assemble_archive, remove_stale_archives
from xui_packager.config import DEFAULT_CONFIG, PackagerConfig, resolve_config, validate_config
from xui_packager.descriptor import config_from_descriptor
from xui_packager.errors import PackagerError, StageFailed
from xui_packager.listing import list_dir_contents
from xui_packager.manifest import build_manifest, manifest_path, write_manifest
from xui_packager.mirror import mirror_tree


logger = logging.getLogger(__name__)

T = TypeVar("T")


class Stage(str, enum.Enum):
    RESOLVE_CONFIG = "ResolveConfig"
    VALIDATE_CONFIG = "ValidateConfig"
    PREPARE_OUTPUT_DIR = "PrepareOutputDir"
    CLEANUP_STALE_ARCHIVES = "CleanupStaleArchives"
    MIRROR_CONTENT = "MirrorContent"
    BUILD_MANIFEST = "BuildManifest"
    ASSEMBLE_ARCHIVE = "AssembleArchive"
    DONE = "Done"


def _run_stage(stage: Stage, func: Callable[..., T], *args: Any) -> T:
    logger.debug("Entering stage %s", stage.value)
    try:
        return func(*args)
    except (PackagerError, OSError) as exc:
        raise StageFailed(stage.value, exc) from exc


def resolve(
    cli_config: Mapping[str, Any],
    descriptor_path: pathlib.Path | None = None,
    default: Mapping[str, Any] = DEFAULT_CONFIG,
) -> PackagerConfig:
    def _resolve() -> PackagerConfig:
        return resolve_config(default, config_from_descriptor(descriptor_path), cli_config)

    config = _run_stage(Stage.RESOLVE_CONFIG, _resolve)
    logger.info("Creating XUI using the following config: %s", config)
    return config


def _write_manifest(config: PackagerConfig) -> pathlib.Path:
    listing = list_dir_contents(config.static_source_dir)
    manifest = build_manifest(config, listing)
    return write_manifest(manifest, manifest_path(config))


def build_package(config: PackagerConfig) -> pathlib.Path:
    """Run every stage after config resolution and return the package path.

    Stages run strictly in order and the first failure stops the run with
    ``StageFailed``. Cleaning up archives from earlier runs is best-effort.
    """
    _run_stage(Stage.VALIDATE_CONFIG, validate_config, config)

    output_dir = pathlib.Path(config.output_dir)
    _run_stage(Stage.PREPARE_OUTPUT_DIR, lambda: output_dir.mkdir(parents=True, exist_ok=True))

    try:
        removed = remove_stale_archives(config.output_dir)
    except (PackagerError, OSError) as exc:
        logger.warning("Unable to clean up previous zip archives. Continuing. (%s)", exc)
    else:
        for path in removed:
            logger.info("Removed previous archive %s", path)

    _run_stage(
        Stage.MIRROR_CONTENT,
        mirror_tree,
        pathlib.Path(config.content_source_dir),
        pathlib.Path(f"{config.static_source_dir}/static"),
        config.exclude_patterns,
    )
    logger.info("Successfully copied files from %s.", config.content_source_dir)

    manifest_file = _run_stage(Stage.BUILD_MANIFEST, _write_manifest, config)
    logger.info("Successfully created XUI metadata JSON file %s.", manifest_file)

    package_path = _run_stage(Stage.ASSEMBLE_ARCHIVE, assemble_archive, config, manifest_file)
    logger.debug("Entering stage %s", Stage.DONE.value)
    return package_path


def run_pipeline(
    cli_config: Mapping[str, Any],
    descriptor_path: pathlib.Path | None = None,
    default: Mapping[str, Any] = DEFAULT_CONFIG,
) -> pathlib.Path:
    return build_package(resolve(cli_config, descriptor_path, default))
