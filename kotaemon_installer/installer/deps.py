"""Dependency installation into the active environment.

Two modes:
- ``requirements``: ``pip install -r requirements.txt`` when the file exists
- ``local``: editable installs of the bundled libraries, then the top-level
  package without re-resolving its dependencies

Each mode gets a bounded number of full cycles. Exhaustion is an explicit
failure; a successful cycle is additionally checked against the installed
package listing. Package caches are purged afterwards either way.
"""

from __future__ import annotations

import json
import re
from typing import Literal

from pydantic import TypeAdapter, ValidationError

from kotaemon_installer import proc
from kotaemon_installer.errors import DependencyError
from kotaemon_installer.installer.env_python import EnvHandle
from kotaemon_installer.logging import get_logger
from kotaemon_installer.retry import RetryOutcome, with_retries
from kotaemon_installer.types import InstallConfig, InstalledPackage

log = get_logger(__name__)

Mode = Literal["requirements", "local"]

_PACKAGES = TypeAdapter(list[InstalledPackage])


def select_mode(config: InstallConfig) -> Mode:
    return "requirements" if config.requirements_file.is_file() else "local"


def install_commands(handle: EnvHandle, config: InstallConfig) -> list[list[str]]:
    """Commands making up one installation cycle, in order."""
    pip = [str(handle.python), "-m", "pip", "install"]
    if select_mode(config) == "requirements":
        return [pip + ["-r", str(config.requirements_file)]]
    *libs, top = config.local_packages
    cmds = [pip + ["-e", str(lib)] for lib in libs]
    cmds.append(pip + ["--no-deps", "-e", str(top)])
    return cmds


def _run_cycle(handle: EnvHandle, commands: list[list[str]]) -> bool:
    for cmd in commands:
        if proc.run(cmd, env=handle.environ()).returncode != 0:
            return False
    return True


def _normalize(name: str) -> str:
    return re.sub(r"[-_.]+", "-", name).lower()


def installed_packages(handle: EnvHandle) -> list[InstalledPackage]:
    res = proc.run(
        [handle.python, "-m", "pip", "list", "--format=json"],
        env=handle.environ(),
        capture=True,
    )
    if res.returncode != 0:
        log.error("pip list exited with %d", res.returncode)
        return []
    try:
        return _PACKAGES.validate_python(json.loads(res.stdout or "[]"))
    except (json.JSONDecodeError, ValidationError) as exc:
        log.error("unreadable pip list output: %s", exc)
        return []


def is_installed(handle: EnvHandle, package: str) -> bool:
    wanted = _normalize(package)
    return any(_normalize(p.name) == wanted for p in installed_packages(handle))


def purge_caches(handle: EnvHandle) -> None:
    """Drop conda and pip caches. Failures are logged, never raised."""
    for cmd in (
        [handle.conda, "clean", "--all", "-y"],
        [handle.python, "-m", "pip", "cache", "purge"],
    ):
        res = proc.run(cmd, env=handle.environ())
        if res.returncode != 0:
            log.warning("cache cleanup %s exited with %d", cmd[1:3], res.returncode)


def install_dependencies(handle: EnvHandle, config: InstallConfig) -> RetryOutcome:
    """Install project dependencies into *handle*'s environment.

    On failure the handle is deactivated before DependencyError is raised.
    """
    mode = select_mode(config)
    if mode == "requirements":
        log.info("Installing dependencies from %s", config.requirements_file)
    else:
        log.info("Installing dependencies manually")
    commands = install_commands(handle, config)

    try:
        outcome = with_retries(
            lambda: _run_cycle(handle, commands),
            attempts=config.max_attempts,
            label="Installation",
        )
        verified = outcome.succeeded and is_installed(handle, config.marker_package)
    finally:
        purge_caches(handle)

    if not outcome.succeeded:
        handle.deactivate()
        raise DependencyError(
            f"Failed to install dependencies after {outcome.attempts} attempts.",
            hint="Check the pip output above, then rerun the installer.",
        )
    if not verified:
        handle.deactivate()
        raise DependencyError(
            f"Failed to install dependencies: {config.marker_package} is not installed.",
            hint=f"Delete {config.env_dir} and rerun the installer.",
        )
    return outcome
