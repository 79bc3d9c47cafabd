"""Safe in-place zip extraction.

Existing files are overwritten. Guards against:
- Zip Slip (../ traversal) and absolute member paths
- Oversized members (basic cap)
"""

from __future__ import annotations

import os
import shutil
import stat
import zipfile
from pathlib import Path

from kotaemon_installer.errors import ArchiveError
from kotaemon_installer.logging import get_logger

log = get_logger(__name__)

MAX_MEMBER_BYTES = 256 * 1024 * 1024  # 256 MiB per member


def _is_within(base: Path, target: Path) -> bool:
    try:
        target.relative_to(base)
        return True
    except ValueError:
        return False


def _member_target(dest: Path, name: str) -> Path:
    fn = Path(name)
    if fn.is_absolute() or ".." in fn.parts:
        raise ArchiveError(f"Unsafe member path: {name}")
    target = (dest / fn).resolve()
    if not _is_within(dest, target):
        raise ArchiveError(f"Member escapes destination: {name}")
    return target


def safe_extract_zip(zip_path: Path, dest: Path) -> list[Path]:
    """Extract *zip_path* into *dest*, overwriting conflicts.

    Every member is validated before anything is written. Returns the
    extracted file paths.
    """
    dest.mkdir(parents=True, exist_ok=True)
    base = dest.resolve()
    try:
        z = zipfile.ZipFile(zip_path)
    except zipfile.BadZipFile as exc:
        raise ArchiveError(f"Failed to unzip {zip_path.name}: {exc}") from exc

    written: list[Path] = []
    with z:
        members = z.infolist()
        plan: list[tuple[zipfile.ZipInfo, Path]] = []
        for m in members:
            target = _member_target(base, m.filename)
            if m.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            if m.file_size > MAX_MEMBER_BYTES:
                raise ArchiveError(f"Member too large: {m.filename} ({m.file_size} bytes)")
            plan.append((m, target))

        for m, target in plan:
            target.parent.mkdir(parents=True, exist_ok=True)
            with z.open(m) as src, open(target, "wb") as out:
                shutil.copyfileobj(src, out)
            mode = stat.S_IMODE(m.external_attr >> 16)
            if mode:
                try:
                    os.chmod(target, mode & ~stat.S_ISUID & ~stat.S_ISGID)
                except OSError as exc:
                    log.warning("could not set mode on %s: %s", target, exc)
            written.append(target)
    return written
