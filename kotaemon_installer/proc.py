"""Subprocess wrapper used by every installer step.

Commands never raise on a non-zero exit; callers inspect ``returncode``.
A missing or non-executable program is reported as exit code 127.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from kotaemon_installer.logging import get_logger

log = get_logger(__name__)

NOT_FOUND = 127


def run(
    cmd: Sequence[str | Path],
    *,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    input: str | None = None,
    capture: bool = False,
) -> subprocess.CompletedProcess:
    argv = [str(c) for c in cmd]
    log.info("exec: %s", " ".join(argv))
    try:
        return subprocess.run(
            argv,
            env=dict(env) if env is not None else None,
            cwd=cwd,
            input=input,
            capture_output=capture,
            text=True,
            check=False,
        )
    except (FileNotFoundError, PermissionError) as exc:
        log.warning("cannot execute %s: %s", argv[0], exc)
        return subprocess.CompletedProcess(argv, NOT_FOUND, "", str(exc))
