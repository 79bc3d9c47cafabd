"""Hand-off to the local model setup script and the application."""

from __future__ import annotations

from kotaemon_installer import proc
from kotaemon_installer.errors import LaunchError
from kotaemon_installer.installer.env_python import EnvHandle
from kotaemon_installer.logging import get_logger
from kotaemon_installer.types import InstallConfig

log = get_logger(__name__)


def setup_local_model(handle: EnvHandle, config: InstallConfig) -> int:
    # A failing setup script does not stop the launch.
    res = proc.run(
        [handle.python, config.setup_script], env=handle.environ(), cwd=config.workdir
    )
    if res.returncode != 0:
        log.warning("%s exited with %d", config.setup_script.name, res.returncode)
    return res.returncode


def launch_app(handle: EnvHandle, config: InstallConfig) -> None:
    """Run the application with the asset directory exported."""
    env = handle.environ(**{config.asset_env_var: str(config.pdfjs_dir)})
    log.info("Launching Kotaemon web UI (%s=%s)", config.asset_env_var, config.pdfjs_dir)
    res = proc.run([handle.python, config.app_entry], env=env, cwd=config.workdir)
    if res.returncode != 0:
        raise LaunchError(f"Failed to launch the web UI (exit {res.returncode}).")
