from __future__ import annotations

import datetime as dt
import json
import pathlib
from typing import Any, Sequence

from xui_packager.config import PackagerConfig


def manifest_path(config: PackagerConfig) -> pathlib.Path:
    return pathlib.Path(f"{config.output_dir}/{config.name}.json")


def relative_contents(static_source_dir: str, listing: Sequence[str]) -> list[str]:
    prefix = f"{static_source_dir.rstrip('/')}/"
    return [path[len(prefix):] if path.startswith(prefix) else path for path in listing]


def build_manifest(
    config: PackagerConfig,
    content_listing: Sequence[str],
    today: dt.date | None = None,
) -> dict[str, Any]:
    """Describe the package for the content library.

    Extra metadata is spread after the fixed fields, so a metadata key such as
    ``last_updated`` replaces the generated value.
    """
    today = today or dt.datetime.now(dt.timezone.utc).date()
    manifest: dict[str, Any] = {
        "name": config.name,
        "id": config.id,
        "last_updated": today.isoformat(),
        "package_contents": relative_contents(config.static_source_dir, content_listing),
        **config.extra_metadata,
    }
    if config.icon_filename:
        manifest["icon"] = config.icon_filename
    return manifest


def write_manifest(manifest: dict[str, Any], path: pathlib.Path) -> pathlib.Path:
    path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    return path
