"""Embedded constants and the frozen ``InstallConfig`` builder."""

from __future__ import annotations

from pathlib import Path

from kotaemon_installer.types import InstallConfig

PYTHON_VERSION = "3.10"

PDFJS_VERSION = "4.0.379"
PDFJS_RELEASES = "https://github.com/mozilla/pdf.js/releases/download"
PDFJS_ENV_VAR = "PDFJS_PREBUILT_DIR"

MARKER_PACKAGE = "kotaemon"
MAX_ATTEMPTS = 3

MINICONDA_URL = "https://repo.anaconda.com/miniconda/Miniconda3-latest-Linux-{arch}.sh"
OLLAMA_INSTALL_URL = "https://ollama.com/install.sh"

# Relative to the working directory
INSTALL_DIRNAME = "install_dir"
PREBUILT_ASSETS = Path("libs/ktem/ktem/assets/prebuilt")
LOCAL_PACKAGES = (Path("libs/kotaemon"), Path("libs/ktem"), Path("."))
SETUP_SCRIPT = Path("scripts/serve_local.py")
APP_ENTRY = Path("app.py")


def pdfjs_dist_name(version: str) -> str:
    return f"pdfjs-{version}-dist"


def pdfjs_url(version: str) -> str:
    return f"{PDFJS_RELEASES}/v{version}/{pdfjs_dist_name(version)}.zip"


def build_config(
    workdir: Path | None = None,
    *,
    python_version: str = PYTHON_VERSION,
    pdfjs_version: str = PDFJS_VERSION,
    pdfjs_sha256: str | None = None,
) -> InstallConfig:
    """Resolve every installer path from *workdir* (defaults to the CWD)."""
    root = (workdir or Path.cwd()).resolve()
    install_dir = root / INSTALL_DIRNAME
    dist = pdfjs_dist_name(pdfjs_version)
    return InstallConfig(
        workdir=root,
        install_dir=install_dir,
        conda_root=install_dir / "conda",
        env_dir=install_dir / "env",
        python_version=python_version,
        pdfjs_version=pdfjs_version,
        pdfjs_dist_name=dist,
        pdfjs_url=pdfjs_url(pdfjs_version),
        pdfjs_dir=root / PREBUILT_ASSETS / dist,
        pdfjs_sha256=pdfjs_sha256,
        requirements_file=root / "requirements.txt",
        local_packages=tuple((root / p).resolve() for p in LOCAL_PACKAGES),
        marker_package=MARKER_PACKAGE,
        setup_script=root / SETUP_SCRIPT,
        app_entry=root / APP_ENTRY,
        asset_env_var=PDFJS_ENV_VAR,
        max_attempts=MAX_ATTEMPTS,
    )
