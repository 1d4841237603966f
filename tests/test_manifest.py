from __future__ import annotations

import datetime as dt
import json
import types

from xui_packager import manifest as manifest_module
from xui_packager.config import PackagerConfig
from xui_packager.manifest import build_manifest, manifest_path, write_manifest


TODAY = dt.date(2024, 5, 17)


def _config(**overrides) -> PackagerConfig:
    values = {"name": "demo", "id": "XUI-abcd1234", "extra_metadata": {"enabled": True}}
    values.update(overrides)
    return PackagerConfig(**values)


def test_package_contents_are_relative_to_static_source_dir():
    manifest = build_manifest(_config(), ["xui/src/a.txt", "xui/src/sub/b.txt"], today=TODAY)
    assert manifest["package_contents"] == ["a.txt", "sub/b.txt"]


def test_fixed_fields_then_metadata():
    manifest = build_manifest(_config(extra_metadata={"enabled": True, "version": "1.0.0"}), [], today=TODAY)
    assert manifest == {
        "name": "demo",
        "id": "XUI-abcd1234",
        "last_updated": "2024-05-17",
        "package_contents": [],
        "enabled": True,
        "version": "1.0.0",
    }
    assert "icon" not in manifest


def test_last_updated_defaults_to_utc_date(monkeypatch):
    class _LateEvening(dt.datetime):
        @classmethod
        def now(cls, tz=None):
            return dt.datetime(2024, 5, 17, 23, 30, tzinfo=dt.timezone.utc).astimezone(tz)

    clock = types.SimpleNamespace(datetime=_LateEvening, timezone=dt.timezone, date=dt.date)
    monkeypatch.setattr(manifest_module, "dt", clock)
    manifest = build_manifest(_config(), [])
    assert manifest["last_updated"] == "2024-05-17"


def test_metadata_can_override_last_updated():
    config = _config(extra_metadata={"last_updated": "2020-01-01"})
    manifest = build_manifest(config, [], today=TODAY)
    assert manifest["last_updated"] == "2020-01-01"


def test_icon_is_added_last():
    config = _config(icon_path="path/to/logo.png", icon_filename="logo.png", extra_metadata={"icon": "ignored.png"})
    manifest = build_manifest(config, [], today=TODAY)
    assert manifest["icon"] == "logo.png"
    assert list(manifest)[-1] == "icon"


def test_custom_static_source_dir_prefix():
    config = _config(static_source_dir="packages/xui/")
    manifest = build_manifest(config, ["packages/xui/static/index.html"], today=TODAY)
    assert manifest["package_contents"] == ["static/index.html"]


def test_write_manifest(tmp_path):
    config = _config(output_dir=str(tmp_path))
    path = write_manifest(build_manifest(config, [], today=TODAY), manifest_path(config))
    assert path == tmp_path / "demo.json"
    text = path.read_text(encoding="utf-8")
    assert text.startswith('{\n  "name": "demo"')
    assert json.loads(text)["id"] == "XUI-abcd1234"
