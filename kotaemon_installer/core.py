"""Install pipeline: preflight → conda → env → ollama → deps → pdf.js → model → app.

Steps run strictly in order. The environment handle produced by the
``create_env`` step is threaded through the context to every later step and
is deactivated when the pipeline ends, however it ends.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

from kotaemon_installer.errors import EnvironmentSetupError
from kotaemon_installer.installer import conda, deps, env_python, ollama
from kotaemon_installer.installer.env_python import EnvHandle
from kotaemon_installer.installer.fetch import fetch_and_extract
from kotaemon_installer.launch import launch_app, setup_local_model
from kotaemon_installer.logging import get_logger, print_highlight
from kotaemon_installer.types import InstallConfig

log = get_logger(__name__)


@dataclass
class PipelineOptions:
    skip_ollama: bool = False
    launch: bool = True


@dataclass
class PipelineContext:
    config: InstallConfig
    client: httpx.Client
    options: PipelineOptions = field(default_factory=PipelineOptions)
    env: EnvHandle | None = None

    def require_env(self) -> EnvHandle:
        if self.env is None or not self.env.active:
            raise EnvironmentSetupError("Conda environment is not active")
        return self.env


@dataclass(frozen=True)
class Step:
    name: str
    title: str
    action: Callable[[PipelineContext], None]


def _install_conda(ctx: PipelineContext) -> None:
    conda.ensure_conda(ctx.config, client=ctx.client)


def _create_env(ctx: PipelineContext) -> None:
    env_python.create_env(ctx.config)
    ctx.env = env_python.activate(ctx.config)


def _install_ollama(ctx: PipelineContext) -> None:
    ollama.ensure_ollama(client=ctx.client, skip=ctx.options.skip_ollama)


def _install_deps(ctx: PipelineContext) -> None:
    deps.install_dependencies(ctx.require_env(), ctx.config)


def _fetch_pdfjs(ctx: PipelineContext) -> None:
    cfg = ctx.config
    fetch_and_extract(
        cfg.pdfjs_url,
        cfg.pdfjs_dir,
        client=ctx.client,
        expected_sha256=cfg.pdfjs_sha256,
        retries=cfg.max_attempts,
    )


def _setup_model(ctx: PipelineContext) -> None:
    setup_local_model(ctx.require_env(), ctx.config)


def _launch(ctx: PipelineContext) -> None:
    if not ctx.options.launch:
        log.info("Launch disabled; installation finished")
        return
    launch_app(ctx.require_env(), ctx.config)


def build_steps() -> list[Step]:
    return [
        Step("conda", "Installing Miniconda", _install_conda),
        Step("env", "Creating Conda environment", _create_env),
        Step("ollama", "Installing Ollama", _install_ollama),
        Step("deps", "Installing dependencies", _install_deps),
        Step("pdfjs", "Downloading and setting up PDF.js", _fetch_pdfjs),
        Step("model", "Setting up local model", _setup_model),
        Step("launch", "Launching web UI", _launch),
    ]


def run_pipeline(
    config: InstallConfig,
    client: httpx.Client,
    options: PipelineOptions | None = None,
    steps: list[Step] | None = None,
) -> PipelineContext:
    ctx = PipelineContext(config=config, client=client, options=options or PipelineOptions())
    try:
        for step in steps if steps is not None else build_steps():
            print_highlight(step.title)
            log.info("step started", extra={"step": step.name})
            step.action(ctx)
    finally:
        if ctx.env is not None:
            ctx.env.deactivate()
    return ctx
