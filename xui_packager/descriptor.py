from __future__ import annotations

import json
import logging
import pathlib
from typing import Any

from xui_packager.config import parse_config
from xui_packager.errors import ConfigError


logger = logging.getLogger(__name__)

DESCRIPTOR_NAME = "package.json"
CONFIG_FIELDS = ("xuiConfig", "configXui")


def find_descriptor(start: pathlib.Path | None = None) -> pathlib.Path | None:
    """Return the nearest ``package.json`` at or above ``start``."""
    start = (start or pathlib.Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / DESCRIPTOR_NAME
        if candidate.is_file():
            return candidate
    return None


def load_descriptor(path: pathlib.Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(f"{path} is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {path}")
    return data


def descriptor_args(descriptor: dict[str, Any]) -> dict[str, Any]:
    args: dict[str, Any] = {}
    for field in CONFIG_FIELDS:
        if field in descriptor:
            value = descriptor[field]
            if not isinstance(value, dict):
                raise ConfigError(f"{field} must be an object")
            args = dict(value)
            break

    if not args.get("met_version") and descriptor.get("version"):
        args["met_version"] = descriptor["version"]
    return args


def config_from_descriptor(path: pathlib.Path | None = None) -> dict[str, Any]:
    """Partial config from the project descriptor, ``{}`` when there is none."""
    path = path or find_descriptor()
    if path is None:
        logger.debug("No %s found, skipping descriptor config", DESCRIPTOR_NAME)
        return {}
    logger.debug("Reading descriptor config from %s", path)
    return parse_config(descriptor_args(load_descriptor(path)))
