"""Miniconda bootstrap.

Installs Miniconda non-interactively under ``install_dir/conda`` when the
``conda`` executable there does not answer a version query. An existing,
working install is left untouched.
"""

from __future__ import annotations

import os
import platform
import stat

import httpx

from kotaemon_installer import proc
from kotaemon_installer.config import MINICONDA_URL
from kotaemon_installer.errors import BootstrapError, UnsupportedArch
from kotaemon_installer.installer.fetch import client_scope, download
from kotaemon_installer.logging import get_logger
from kotaemon_installer.types import InstallConfig

log = get_logger(__name__)

INSTALLER_NAME = "miniconda_installer.sh"

_ARCH_PREFIXES = {
    "x86_64": ("x86_64", "amd64"),
    "aarch64": ("arm64", "aarch64"),
}


def detect_arch(machine: str | None = None) -> str:
    """Map the CPU architecture onto ``x86_64`` or ``aarch64``."""
    raw = machine if machine is not None else platform.machine()
    lowered = raw.lower()
    for arch, prefixes in _ARCH_PREFIXES.items():
        if lowered.startswith(prefixes):
            return arch
    raise UnsupportedArch(
        f"Unknown architecture: {raw}. Only x86_64 or arm64 are supported.",
    )


def miniconda_url(arch: str) -> str:
    return MINICONDA_URL.format(arch=arch)


def conda_version(config: InstallConfig) -> str | None:
    """Return ``conda --version`` output, or None when conda is unusable."""
    res = proc.run([config.conda_exe, "--version"], capture=True)
    if res.returncode != 0:
        return None
    return (res.stdout or "").strip() or "conda"


def ensure_conda(
    config: InstallConfig,
    *,
    client: httpx.Client | None = None,
    machine: str | None = None,
) -> str:
    """Make sure a working conda lives under ``config.conda_root``.

    Returns the version string. Raises BootstrapError when conda still does
    not respond after installation.
    """
    arch = detect_arch(machine)

    if conda_version(config) is None:
        url = miniconda_url(arch)
        installer = config.install_dir / INSTALLER_NAME
        log.info("Downloading Miniconda from %s", url)
        try:
            with client_scope(client) as http:
                download(url, installer, http)
            os.chmod(installer, installer.stat().st_mode | stat.S_IXUSR)
            log.info("Installing Miniconda to %s", config.conda_root)
            res = proc.run(["bash", installer, "-b", "-p", config.conda_root])
            if res.returncode != 0:
                log.error("Miniconda installer exited with %d", res.returncode)
        except httpx.HTTPError as exc:
            raise BootstrapError(
                f"Failed to download Miniconda from {url}: {exc}",
                hint="Check your network connection and rerun the installer.",
            ) from exc
        except OSError as exc:
            raise BootstrapError(
                f"Cannot write the Miniconda installer to {installer}: {exc}",
                hint=f"Make sure {config.install_dir} is writable and has free space.",
            ) from exc
        finally:
            if installer.is_file():
                installer.unlink()

    version = conda_version(config)
    if version is None:
        raise BootstrapError(
            f"Conda not found at {config.conda_exe}.",
            hint=f"Delete {config.conda_root} and rerun the installer.",
        )
    log.info("Miniconda is installed at %s (%s)", config.conda_root, version)
    return version
