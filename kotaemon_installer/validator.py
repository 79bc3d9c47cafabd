"""Schema validation for emitted documents."""

from __future__ import annotations

import json
from importlib import resources

from jsonschema import Draft202012Validator


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _plan_schema() -> dict:
    return _load_schema("kotaemon_installer.schema", "plan.schema.json")


def validate_plan(data: dict) -> None:
    Draft202012Validator(_plan_schema()).validate(data)
