"""Shared Pydantic models."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InstallConfig(BaseModel):
    """Resolved paths and versions for one installer run. Never mutated."""

    model_config = ConfigDict(frozen=True)

    workdir: Path
    install_dir: Path
    conda_root: Path
    env_dir: Path
    python_version: str

    pdfjs_version: str
    pdfjs_dist_name: str
    pdfjs_url: str
    pdfjs_dir: Path
    pdfjs_sha256: str | None = None

    requirements_file: Path
    local_packages: tuple[Path, ...]
    marker_package: str
    setup_script: Path
    app_entry: Path
    asset_env_var: str
    max_attempts: int = Field(default=3, ge=1)

    @field_validator(
        "workdir",
        "install_dir",
        "conda_root",
        "env_dir",
        "pdfjs_dir",
        "requirements_file",
        "setup_script",
        "app_entry",
    )
    @classmethod
    def _absolute(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"path must be absolute: {value}")
        return value

    @field_validator("local_packages")
    @classmethod
    def _absolute_packages(cls, value: tuple[Path, ...]) -> tuple[Path, ...]:
        for p in value:
            if not p.is_absolute():
                raise ValueError(f"path must be absolute: {p}")
        return value

    @property
    def conda_exe(self) -> Path:
        return self.conda_root / "bin" / "conda"


class InstalledPackage(BaseModel):
    """One row of ``pip list --format=json``."""

    name: str
    version: str


class PlanStep(BaseModel):
    name: str
    title: str


class PlanModel(BaseModel):
    id: str
    mode: Literal["requirements", "local"]
    config: dict
    steps: list[PlanStep]
