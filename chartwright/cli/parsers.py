"""CLI argument parsers and validators."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from ..core.models import TargetFormat
from ..descriptor.loader import DescriptorError, parse_set_value


def parse_render(value: str) -> tuple[str, Path]:
    """Parse a render argument in format TEMPLATE=OUTPUT."""
    if "=" not in value:
        raise typer.BadParameter(f"Must be TEMPLATE=OUTPUT, got: {value!r}")
    tpl, out = value.split("=", 1)
    if not tpl or not out:
        raise typer.BadParameter(f"Must be TEMPLATE=OUTPUT, got: {value!r}")
    return tpl, Path(out)


def parse_file_mode(value: str) -> int:
    """Parse octal file mode string."""
    try:
        return int(value, 8)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid octal mode: {value!r}") from e


def parse_target_format(value: str | None) -> TargetFormat | None:
    """Parse a --format value; ``auto`` (or unset) means infer from file names."""
    if value is None or value.lower() == "auto":
        return None
    try:
        return TargetFormat(value.lower())
    except ValueError as e:
        choices = ", ".join(f.value for f in TargetFormat)
        raise typer.BadParameter(f"Unknown format {value!r}; use auto, {choices}") from e


def check_set_values(values: list[str]) -> list[str]:
    """Validate --set expressions early so typos fail before rendering."""
    for value in values:
        try:
            parse_set_value(value)
        except DescriptorError as e:
            raise typer.BadParameter(str(e)) from e
    return values


def parse_group_config(value: str, strategy_name: str) -> dict:
    """Parse JSON group configuration (without name field)."""
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise typer.BadParameter("Group configuration must be a JSON object")

    if "name" in data:
        raise typer.BadParameter(
            f"Do not include 'name' in JSON - use --{strategy_name} flag instead"
        )

    required_fields = ["prefix", "required_keys"]
    for field in required_fields:
        if field not in data:
            raise typer.BadParameter(f"Missing required field: {field}")

    return data
