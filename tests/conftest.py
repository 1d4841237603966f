from __future__ import annotations

import json
import pathlib

import pytest


@pytest.fixture()
def project(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """
    A front-end project checkout: built output in dist/, an empty xui/src and
    a package.json without XUI config. The cwd is switched to it.
    """
    (tmp_path / "dist").mkdir()
    (tmp_path / "dist" / "index.html").write_text("<html></html>\n", encoding="utf-8")
    (tmp_path / "dist" / "assets").mkdir()
    (tmp_path / "dist" / "assets" / "app.js").write_text("console.log('xui')\n", encoding="utf-8")
    (tmp_path / "xui" / "src").mkdir(parents=True)
    (tmp_path / "package.json").write_text(
        json.dumps({"name": "demo-app", "version": "0.3.1"}), encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path
