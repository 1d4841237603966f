from __future__ import annotations

import os

from xui_packager.errors import DirectoryReadError


def list_dir_contents(directory: str, recursive: bool = True) -> list[str]:
    """List ``directory`` as ``"<directory>/<entry>"`` path strings.

    With ``recursive`` set, every file at any depth is returned and directories
    only contribute their contents. Without it, the immediate entries (files
    and directories alike) are returned. Entries are sorted by name within each
    directory.
    """
    directory = directory.rstrip("/") or directory
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        raise DirectoryReadError(directory, exc) from exc

    paths: list[str] = []
    for entry in entries:
        path = f"{directory}/{entry.name}"
        if not recursive:
            paths.append(path)
        elif entry.is_dir(follow_symlinks=False):
            paths.extend(list_dir_contents(path))
        elif entry.is_file():
            paths.append(path)
    return paths
