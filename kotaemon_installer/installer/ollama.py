"""Ollama install via its official install script."""

from __future__ import annotations

import shutil

import httpx

from kotaemon_installer import proc
from kotaemon_installer.config import OLLAMA_INSTALL_URL
from kotaemon_installer.errors import ModelRuntimeError
from kotaemon_installer.installer.fetch import client_scope, fetch_text
from kotaemon_installer.logging import get_logger

log = get_logger(__name__)

HINT = "Check your connection and try again."


def ensure_ollama(*, client: httpx.Client | None = None, skip: bool = False) -> bool:
    """Install Ollama unless it is already on PATH. Returns True if installed now."""
    if skip:
        log.info("Skipping Ollama installation")
        return False
    if shutil.which("ollama"):
        log.info("Ollama is already installed.")
        return False

    log.info("Installing Ollama...")
    try:
        with client_scope(client) as http:
            script = fetch_text(OLLAMA_INSTALL_URL, http)
    except httpx.HTTPError as exc:
        raise ModelRuntimeError(
            f"Failed to download the Ollama installer: {exc}", hint=HINT
        ) from exc

    res = proc.run(["sh"], input=script)
    if res.returncode != 0:
        raise ModelRuntimeError(f"Failed to install Ollama (exit {res.returncode}).", hint=HINT)
    log.info("Ollama installation complete.")
    return True
