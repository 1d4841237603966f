from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from xui_packager.errors import InvalidFormatError, MissingFieldError


ID_RE = re.compile(r"[A-Za-z]{3}-[0-9a-zA-Z]{8}")
REQUIRED_FIELDS = ("id", "name")
METADATA_PREFIX = "met_"

# raw flag name -> config field
SCALAR_FLAGS = {
    "name": "name",
    "id": "id",
    "vue_src": "content_source_dir",
    "xui_src": "static_source_dir",
    "output": "output_dir",
}

DEFAULT_CONFIG: dict[str, Any] = {
    "content_source_dir": "dist",
    "static_source_dir": "xui/src",
    "output_dir": "xui/dist",
    "extra_metadata": {"enabled": True},
}


@dataclass(frozen=True)
class PackagerConfig:
    name: str = ""
    id: str = ""
    content_source_dir: str = "dist"
    static_source_dir: str = "xui/src"
    output_dir: str = "xui/dist"
    exclude_patterns: tuple[str, ...] = ()
    extra_metadata: dict[str, Any] = field(default_factory=dict)
    icon_path: str | None = None
    icon_filename: str | None = None


def _is_absent(value: Any) -> bool:
    return value is None or value == "" or value == []


def _as_list(value: Any) -> list[str]:
    if _is_absent(value):
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def parse_config(args: Mapping[str, Any]) -> dict[str, Any]:
    """Build a partial config from raw flag values (CLI or descriptor).

    Only fields present in ``args`` are emitted so partials can be combined
    without clobbering each other.
    """
    config: dict[str, Any] = {}

    for flag, key in SCALAR_FLAGS.items():
        value = args.get(flag)
        if not _is_absent(value):
            config[key] = str(value)

    # Exclude patterns are relative to the content source dir.
    exclude = _as_list(args.get("exclude"))
    if exclude:
        config["exclude_patterns"] = exclude

    icon = args.get("icon")
    if not _is_absent(icon):
        config["icon_path"] = str(icon)
        config["icon_filename"] = os.path.basename(str(icon))

    extra_metadata = {
        key[len(METADATA_PREFIX):]: value
        for key, value in args.items()
        if key.startswith(METADATA_PREFIX) and len(key) > len(METADATA_PREFIX)
    }
    if extra_metadata:
        config["extra_metadata"] = extra_metadata

    return config


def combine_configs(*configs: Mapping[str, Any]) -> dict[str, Any]:
    combined: dict[str, Any] = {}
    for config in configs:
        merged = {
            **combined,
            **{key: value for key, value in config.items() if not _is_absent(value)},
        }
        merged["exclude_patterns"] = [
            *combined.get("exclude_patterns", []),
            *_as_list(config.get("exclude_patterns")),
        ]
        merged["extra_metadata"] = {
            **combined.get("extra_metadata", {}),
            **(config.get("extra_metadata") or {}),
        }
        combined = merged

    if combined.get("icon_path"):
        combined["icon_filename"] = os.path.basename(combined["icon_path"])
    return combined


def resolve_config(
    default: Mapping[str, Any],
    descriptor: Mapping[str, Any],
    cli: Mapping[str, Any],
) -> PackagerConfig:
    combined = combine_configs(default, descriptor, cli)
    known = {item.name for item in fields(PackagerConfig)}
    values = {key: value for key, value in combined.items() if key in known}
    values["exclude_patterns"] = tuple(values.get("exclude_patterns", ()))
    values["extra_metadata"] = dict(values.get("extra_metadata", {}))
    return PackagerConfig(**values)


def validate_config(config: PackagerConfig) -> None:
    for key in REQUIRED_FIELDS:
        if not getattr(config, key):
            raise MissingFieldError(key)

    if not ID_RE.fullmatch(config.id):
        raise InvalidFormatError(
            "id",
            config.id,
            'id must be in the format "XXX-xxxxxxxx" where "XXX" is any 3 letters '
            '(generally XUI or APL) and "x" is any number or letter. '
            f'Received "{config.id}"',
        )
