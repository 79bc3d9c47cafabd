"""Dry-run plan: resolved config and step order as validated JSON."""

from __future__ import annotations

import json

from kotaemon_installer.core import build_steps
from kotaemon_installer.installer.deps import select_mode
from kotaemon_installer.types import InstallConfig, PlanModel, PlanStep
from kotaemon_installer.validator import validate_plan


def emit_install_plan(config: InstallConfig) -> str:
    """Describe what a run would do for *config*, without doing it."""
    plan = PlanModel(
        id=f"kotaemon-install@{config.workdir.name or 'root'}",
        mode=select_mode(config),
        config=config.model_dump(mode="json"),
        steps=[PlanStep(name=s.name, title=s.title) for s in build_steps()],
    )
    data = plan.model_dump(mode="json")
    validate_plan(data)
    return json.dumps(data, indent=2)
