from __future__ import annotations

import fnmatch
import logging
import os
import pathlib
import shutil
from dataclasses import dataclass
from typing import Sequence

from xui_packager.errors import MirrorError


logger = logging.getLogger(__name__)


@dataclass
class MirrorStats:
    copied: int = 0
    unchanged: int = 0
    deleted: int = 0


def is_excluded(rel_path: str, is_dir: bool, patterns: Sequence[str]) -> bool:
    """Match ``rel_path`` against rsync-style exclude patterns.

    Patterns with a slash match the whole path relative to the mirror root,
    bare patterns match the entry name at any depth, a trailing slash only
    matches directories and a leading slash anchors to the root.
    """
    name = rel_path.rsplit("/", 1)[-1]
    for raw in patterns:
        pattern = raw
        if pattern.endswith("/"):
            if not is_dir:
                continue
            pattern = pattern.rstrip("/")
        if not pattern:
            continue
        if pattern.startswith("/") or "/" in pattern:
            if fnmatch.fnmatch(rel_path, pattern.lstrip("/")):
                return True
        elif fnmatch.fnmatch(name, pattern):
            return True
    return False


def _needs_copy(source: os.DirEntry, target: pathlib.Path) -> bool:
    if not target.is_file() or target.is_symlink():
        return True
    src_stat = source.stat()
    dst_stat = target.stat()
    return src_stat.st_size != dst_stat.st_size or src_stat.st_mtime_ns != dst_stat.st_mtime_ns


def _remove(path: pathlib.Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _sync_dir(
    source: pathlib.Path,
    destination: pathlib.Path,
    prefix: str,
    patterns: Sequence[str],
    stats: MirrorStats,
) -> None:
    kept: set[str] = set()
    with os.scandir(source) as it:
        entries = sorted(it, key=lambda entry: entry.name)

    for entry in entries:
        rel_path = f"{prefix}{entry.name}"
        if entry.is_symlink() and entry.is_dir():
            logger.warning("Skipping symlinked directory %s", entry.path)
            continue
        is_dir = entry.is_dir()
        if is_excluded(rel_path, is_dir, patterns):
            continue
        kept.add(entry.name)
        target = destination / entry.name
        if is_dir:
            if target.exists() and not target.is_dir():
                target.unlink()
            target.mkdir(exist_ok=True)
            _sync_dir(pathlib.Path(entry.path), target, f"{rel_path}/", patterns, stats)
            continue
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        if _needs_copy(entry, target):
            shutil.copy2(entry.path, target)
            stats.copied += 1
        else:
            stats.unchanged += 1

    for existing in sorted(destination.iterdir()):
        if existing.name in kept:
            continue
        # excluded entries on the receiving side are left alone
        if is_excluded(f"{prefix}{existing.name}", existing.is_dir(), patterns):
            continue
        _remove(existing)
        stats.deleted += 1


def mirror_tree(
    source: pathlib.Path,
    destination: pathlib.Path,
    exclude: Sequence[str] = (),
) -> MirrorStats:
    """Make ``destination`` an exact copy of ``source`` minus ``exclude``."""
    if not source.is_dir():
        raise MirrorError(f"Source directory not found: {source}")

    stats = MirrorStats()
    try:
        destination.mkdir(parents=True, exist_ok=True)
        _sync_dir(source, destination, "", list(exclude), stats)
    except OSError as exc:
        raise MirrorError(f"Unable to mirror {source} into {destination}: {exc}") from exc

    logger.info(
        "Mirrored %s -> %s (%d copied, %d unchanged, %d deleted)",
        source,
        destination,
        stats.copied,
        stats.unchanged,
        stats.deleted,
    )
    return stats
