"""Integrity helpers: size and SHA-256 checks for downloaded artifacts."""

from __future__ import annotations

import hashlib
from pathlib import Path

from kotaemon_installer.errors import IntegrityError


def sha256(path: Path) -> str:
    """Return the hex SHA-256 of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def normalize_digest(expected: str) -> str:
    exp = expected.strip()
    if exp.startswith("sha256:"):
        exp = exp.split(":", 1)[1]
    return exp.lower()


def is_nonempty(path: Path) -> bool:
    return path.is_file() and path.stat().st_size > 0


def verify_sha256(path: Path, expected: str) -> None:
    """Raise IntegrityError if *path*'s sha256 does not match *expected*.

    *expected* may be either plain hex or `sha256:<hex>`.
    """
    if not path.is_file():
        raise IntegrityError(f"Cannot verify {path}: no such file")
    got = sha256(path)
    exp = normalize_digest(expected)
    if got != exp:
        raise IntegrityError(
            f"SHA-256 mismatch for {path.name}: got {got}, expected {exp}",
            hint="The download may be corrupted or tampered with; rerun the installer.",
        )
