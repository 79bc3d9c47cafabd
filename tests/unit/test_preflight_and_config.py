from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError
from typer.testing import CliRunner

from kotaemon_installer.cli import app
from kotaemon_installer.config import build_config
from kotaemon_installer.errors import PreflightError
from kotaemon_installer.preflight import check_path_for_spaces
from kotaemon_installer.types import InstallConfig


@pytest.mark.parametrize("name", ["with space", "tab\there", "trailing "])
def test_whitespace_paths_are_rejected(tmp_path: Path, name: str) -> None:
    target = tmp_path / name
    with pytest.raises(PreflightError) as err:
        check_path_for_spaces(target)
    assert err.value.hint
    assert not target.exists()


def test_clean_path_is_returned(tmp_path: Path) -> None:
    assert check_path_for_spaces(tmp_path) == tmp_path.resolve()


def test_cli_rejects_whitespace_before_any_side_effect(tmp_path: Path, fake_proc) -> None:
    root = tmp_path / "my project"
    root.mkdir()

    result = CliRunner().invoke(app, ["--workdir", str(root), "--no-launch"])

    assert result.exit_code == 1
    assert "whitespace" in result.output
    assert fake_proc.calls == []
    assert list(root.iterdir()) == []


def test_build_config_derives_every_path_from_workdir(tmp_path: Path) -> None:
    cfg = build_config(tmp_path)

    assert cfg.install_dir == tmp_path / "install_dir"
    assert cfg.conda_root == tmp_path / "install_dir" / "conda"
    assert cfg.env_dir == tmp_path / "install_dir" / "env"
    assert cfg.conda_exe == cfg.conda_root / "bin" / "conda"
    assert cfg.python_version == "3.10"
    assert cfg.pdfjs_dist_name == "pdfjs-4.0.379-dist"
    assert cfg.pdfjs_url == (
        "https://github.com/mozilla/pdf.js/releases/download/v4.0.379/pdfjs-4.0.379-dist.zip"
    )
    assert cfg.pdfjs_dir == tmp_path / "libs/ktem/ktem/assets/prebuilt/pdfjs-4.0.379-dist"
    assert cfg.local_packages == (
        tmp_path / "libs" / "kotaemon",
        tmp_path / "libs" / "ktem",
        tmp_path,
    )
    assert cfg.asset_env_var == "PDFJS_PREBUILT_DIR"
    assert cfg.marker_package == "kotaemon"
    assert cfg.max_attempts == 3


def test_config_is_frozen(tmp_path: Path) -> None:
    cfg = build_config(tmp_path)
    with pytest.raises(ValidationError):
        cfg.env_dir = tmp_path / "elsewhere"


def test_config_rejects_relative_paths(tmp_path: Path) -> None:
    data = build_config(tmp_path).model_dump()
    data["env_dir"] = Path("install_dir/env")
    with pytest.raises(ValidationError):
        InstallConfig(**data)


def test_custom_versions_flow_into_paths(tmp_path: Path) -> None:
    cfg = build_config(tmp_path, python_version="3.11", pdfjs_version="4.1.0")
    assert cfg.python_version == "3.11"
    assert cfg.pdfjs_dir.name == "pdfjs-4.1.0-dist"
    assert "/v4.1.0/" in cfg.pdfjs_url


def test_relative_path_is_checked_after_resolution(tmp_path: Path, monkeypatch) -> None:
    spaced = tmp_path / "my project"
    spaced.mkdir()
    monkeypatch.chdir(spaced)

    with pytest.raises(PreflightError):
        check_path_for_spaces(".")
    with pytest.raises(PreflightError):
        check_path_for_spaces()


def test_cli_rejects_relative_workdir_inside_spaced_directory(
    tmp_path: Path, monkeypatch, fake_proc
) -> None:
    spaced = tmp_path / "my project"
    spaced.mkdir()
    monkeypatch.chdir(spaced)

    result = CliRunner().invoke(app, ["--workdir", ".", "--no-launch", "--skip-ollama"])

    assert result.exit_code == 1
    assert fake_proc.calls == []
    assert list(spaced.iterdir()) == []


def test_returned_path_is_absolute(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    assert check_path_for_spaces(".") == tmp_path.resolve()


def test_unknown_log_level_is_a_usage_error(tmp_path: Path, fake_proc) -> None:
    result = CliRunner().invoke(app, ["--log-level", "verbose", "--workdir", str(tmp_path)])

    assert result.exit_code == 2
    assert fake_proc.calls == []
