"""Preflight guard: reject working directories that contain whitespace."""

from __future__ import annotations

import re
from pathlib import Path

from kotaemon_installer.errors import PreflightError

_WHITESPACE = re.compile(r"\s")


def check_path_for_spaces(path: Path | str | None = None) -> Path:
    """Return the resolved path, or raise PreflightError if it has whitespace."""
    target = (Path(path) if path is not None else Path.cwd()).resolve()
    if _WHITESPACE.search(str(target)):
        raise PreflightError(
            f"The working directory {str(target)!r} contains whitespace, "
            "which can lead to unintended behaviour.",
            hint="Move the project to a path without spaces and retry.",
        )
    return target
