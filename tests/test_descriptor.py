from __future__ import annotations

import json
import pathlib

import pytest

from xui_packager.descriptor import config_from_descriptor, descriptor_args, find_descriptor
from xui_packager.errors import ConfigError


def _write(path: pathlib.Path, payload: object) -> pathlib.Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_descriptor_config_and_version_fallback(tmp_path):
    path = _write(
        tmp_path / "package.json",
        {
            "name": "demo-app",
            "version": "1.4.0",
            "xuiConfig": {
                "name": "demo",
                "id": "XUI-abcd1234",
                "exclude": ["*.map"],
                "icon": "public/logo.png",
                "met_author": "ops",
            },
        },
    )
    assert config_from_descriptor(path) == {
        "name": "demo",
        "id": "XUI-abcd1234",
        "exclude_patterns": ["*.map"],
        "icon_path": "public/logo.png",
        "icon_filename": "logo.png",
        "extra_metadata": {"author": "ops", "version": "1.4.0"},
    }


def test_explicit_met_version_is_kept():
    args = descriptor_args({"version": "1.4.0", "xuiConfig": {"met_version": "9.9.9"}})
    assert args["met_version"] == "9.9.9"


def test_config_xui_field_is_accepted():
    args = descriptor_args({"configXui": {"name": "demo"}})
    assert args == {"name": "demo"}


def test_descriptor_without_version_adds_nothing():
    assert descriptor_args({"name": "demo-app"}) == {}


def test_non_object_config_field_is_rejected():
    with pytest.raises(ConfigError):
        descriptor_args({"xuiConfig": ["name", "demo"]})


def test_malformed_descriptor_is_a_config_error(tmp_path):
    path = tmp_path / "package.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid JSON"):
        config_from_descriptor(path)


def test_non_utf8_descriptor_is_a_config_error(tmp_path):
    path = tmp_path / "package.json"
    path.write_bytes(b'{"version": "\xff"}')
    with pytest.raises(ConfigError, match="not valid UTF-8"):
        config_from_descriptor(path)


def test_missing_explicit_descriptor_is_a_config_error(tmp_path):
    with pytest.raises(ConfigError, match="Unable to read"):
        config_from_descriptor(tmp_path / "nope.json")


def test_find_descriptor_walks_up(tmp_path):
    path = _write(tmp_path / "package.json", {"name": "demo-app"})
    nested = tmp_path / "xui" / "src"
    nested.mkdir(parents=True)
    assert find_descriptor(nested) == path.resolve()
