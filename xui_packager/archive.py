from __future__ import annotations

import contextlib
import hashlib
import io
import logging
import os
import pathlib
import stat
import time
import warnings
import zipfile
from dataclasses import dataclass
from typing import Iterator, Sequence

from xui_packager.config import PackagerConfig
from xui_packager.errors import ArchiveError, DirectoryReadError
from xui_packager.listing import list_dir_contents


logger = logging.getLogger(__name__)

# ZIP timestamps cannot predate 1980.
FIXED_TIMESTAMP = (1980, 1, 1, 0, 0, 0)
SHORT_DIGEST_LENGTH = 7


@dataclass(frozen=True)
class ArchiveEntry:
    path: str
    data: bytes = b""
    date_time: tuple[int, int, int, int, int, int] = FIXED_TIMESTAMP
    mode: int = 0o644
    is_dir: bool = False


def _zip_timestamp(mtime: float) -> tuple[int, int, int, int, int, int]:
    date_time = tuple(time.localtime(mtime)[:6])
    if date_time[0] < 1980:
        return FIXED_TIMESTAMP
    return date_time  # type: ignore[return-value]


def _file_info(arcname: str, date_time: tuple[int, ...], mode: int = 0o644) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(arcname, date_time=date_time)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = (stat.S_IFREG | mode) << 16
    return info


def _dir_info(arcname: str, date_time: tuple[int, ...] = FIXED_TIMESTAMP) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(f"{arcname.rstrip('/')}/", date_time=date_time)
    info.compress_type = zipfile.ZIP_STORED
    info.external_attr = ((stat.S_IFDIR | 0o755) << 16) | 0x10
    return info


@contextlib.contextmanager
def _archive_errors(stage: str) -> Iterator[None]:
    # zipfile reports problems such as duplicate names as warnings
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        try:
            yield
        except (Warning, zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, OSError) as exc:
            raise ArchiveError(f"Error writing {stage}: {exc}") from exc


def collect_tree(root: pathlib.Path) -> list[ArchiveEntry]:
    """Read every directory and file below ``root`` in a stable order."""
    if not root.is_dir():
        raise DirectoryReadError(str(root), FileNotFoundError(2, "No such directory", str(root)))

    entries: list[ArchiveEntry] = []
    try:
        paths = sorted(root.rglob("*"), key=lambda path: path.relative_to(root).as_posix())
        for path in paths:
            rel_path = path.relative_to(root).as_posix()
            if path.is_symlink() and path.is_dir():
                continue
            if path.is_dir():
                entries.append(ArchiveEntry(rel_path, is_dir=True))
            elif path.is_file():
                info = path.stat()
                entries.append(
                    ArchiveEntry(
                        rel_path,
                        data=path.read_bytes(),
                        date_time=_zip_timestamp(info.st_mtime),
                        mode=info.st_mode & 0o777,
                    )
                )
    except OSError as exc:
        raise DirectoryReadError(str(root), exc) from exc
    return entries


def build_content_archive(name: str, entries: Sequence[ArchiveEntry]) -> bytes:
    """Zip ``entries`` under a top-level ``<name>/`` folder (stage 1).

    The result only depends on the entries, so an unchanged tree always yields
    the same bytes.
    """
    buffer = io.BytesIO()
    with _archive_errors(f"{name}.zip"):
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(_dir_info(name), b"")
            for entry in entries:
                arcname = f"{name}/{entry.path}"
                if entry.is_dir:
                    archive.writestr(_dir_info(arcname, entry.date_time), b"")
                else:
                    archive.writestr(_file_info(arcname, entry.date_time, entry.mode), entry.data)
    return buffer.getvalue()


def short_digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:SHORT_DIGEST_LENGTH]


def build_outer_archive(
    name: str,
    content_archive: bytes,
    manifest: bytes,
    icon: tuple[str, bytes] | None = None,
    date_time: tuple[int, int, int, int, int, int] = FIXED_TIMESTAMP,
) -> bytes:
    """Bundle the content archive, manifest and optional icon (stage 2).

    All entries are top-level: ``<name>.zip``, ``<name>.json`` and the icon
    under its own filename, each stamped with ``date_time``.
    """
    members = [(f"{name}.zip", content_archive), (f"{name}.json", manifest)]
    if icon is not None:
        members.append(icon)

    buffer = io.BytesIO()
    with _archive_errors(f"{name} package"):
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for arcname, data in members:
                archive.writestr(_file_info(arcname, date_time), data)
    return buffer.getvalue()


def assemble_archive(config: PackagerConfig, manifest_file: pathlib.Path) -> pathlib.Path:
    """Write the distributable ``<output>/<name>-<digest>.zip``.

    The intermediate content archive and the manifest are removed once the
    package is written. A failure leaves whatever was already written in place.
    """
    output_dir = pathlib.Path(config.output_dir)
    content_path = output_dir / f"{config.name}.zip"

    entries = collect_tree(pathlib.Path(config.static_source_dir))
    content = build_content_archive(config.name, entries)
    try:
        content_path.write_bytes(content)
    except OSError as exc:
        raise ArchiveError(f"Unable to write {content_path}: {exc}") from exc
    logger.info("Wrote content archive %s (%d entries)", content_path, len(entries))

    try:
        manifest = manifest_file.read_bytes()
        icon = None
        if config.icon_path:
            icon_name = config.icon_filename or os.path.basename(config.icon_path)
            icon = (icon_name, pathlib.Path(config.icon_path).read_bytes())
    except OSError as exc:
        raise ArchiveError(f"Unable to read package member: {exc}") from exc

    package = build_outer_archive(config.name, content, manifest, icon, _zip_timestamp(time.time()))
    package_path = output_dir / f"{config.name}-{short_digest(content)}.zip"
    try:
        package_path.write_bytes(package)
        content_path.unlink()
        manifest_file.unlink()
    except OSError as exc:
        raise ArchiveError(f"Unable to finalize {package_path}: {exc}") from exc
    return package_path


def remove_stale_archives(output_dir: str) -> list[str]:
    removed: list[str] = []
    for path in list_dir_contents(output_dir, recursive=False):
        if path.endswith(".zip") and os.path.isfile(path):
            os.remove(path)
            removed.append(path)
    return removed
