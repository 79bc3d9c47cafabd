"""Isolated conda environment: create, activate, deactivate.

Activation is an explicit ``EnvHandle`` rather than shell state. Steps that
need the environment receive the handle and run their subprocesses with
``handle.environ()``.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from kotaemon_installer import proc
from kotaemon_installer.errors import EnvironmentSetupError
from kotaemon_installer.logging import get_logger
from kotaemon_installer.types import InstallConfig

log = get_logger(__name__)


@dataclass
class EnvHandle:
    prefix: Path
    conda_root: Path
    active: bool = False
    _base_env: dict[str, str] = field(default_factory=lambda: dict(os.environ), repr=False)

    @property
    def bin_dir(self) -> Path:
        return self.prefix / "bin"

    @property
    def python(self) -> Path:
        return self.bin_dir / "python"

    @property
    def conda(self) -> Path:
        return self.conda_root / "bin" / "conda"

    def environ(self, **extra: str) -> dict[str, str]:
        """Child-process environment with this prefix activated."""
        if not self.active:
            raise EnvironmentSetupError(f"Environment {self.prefix} is not active")
        env = dict(self._base_env)
        path = env.get("PATH", "")
        env["PATH"] = os.pathsep.join(p for p in (str(self.bin_dir), path) if p)
        env["CONDA_PREFIX"] = str(self.prefix)
        env["CONDA_DEFAULT_ENV"] = str(self.prefix)
        env.pop("PYTHONHOME", None)
        env.update(extra)
        return env

    def deactivate(self) -> None:
        if not self.active:
            return
        self.active = False
        log.info("Deactivated Conda environment at %s", self.prefix)


def create_env(config: InstallConfig) -> bool:
    """Create the environment unless its directory exists.

    Returns True when a new environment was created. A failed create leaves
    no directory behind.
    """
    env_dir = config.env_dir
    if env_dir.exists():
        log.info("Conda environment already exists at %s", env_dir)
        return False

    log.info("Creating Conda environment with Python %s", config.python_version)
    res = proc.run(
        [
            config.conda_exe,
            "create",
            "-y",
            "-k",
            "--prefix",
            env_dir,
            f"python={config.python_version}",
        ]
    )
    if res.returncode != 0:
        shutil.rmtree(env_dir, ignore_errors=True)
        raise EnvironmentSetupError(
            f"Failed to create Conda environment (exit {res.returncode}).",
            hint=f"{env_dir} was removed; fix the error above and rerun the installer.",
        )
    return True


def activate(config: InstallConfig) -> EnvHandle:
    """Return an active handle after checking the interpreter runs in it."""
    handle = EnvHandle(prefix=config.env_dir, conda_root=config.conda_root, active=True)
    res = proc.run(
        [handle.python, "-c", "import sys; print(sys.prefix)"],
        env=handle.environ(),
        capture=True,
    )
    if res.returncode != 0:
        handle.active = False
        raise EnvironmentSetupError(
            "Failed to activate Conda environment.",
            hint=f"Please delete {config.env_dir} and rerun the installer.",
        )
    log.info("Activated Conda environment at %s", handle.prefix)
    return handle


@contextmanager
def activated(config: InstallConfig) -> Iterator[EnvHandle]:
    handle = activate(config)
    try:
        yield handle
    finally:
        handle.deactivate()
