"""Service descriptor construction from values files, overrides and environment."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from ..core.errors import TypeMismatch
from .validation import validate_descriptor

logger = logging.getLogger(__name__)

_INT_PATTERN = re.compile(r"^-?\d+$")
_FLOAT_PATTERN = re.compile(r"^-?\d+(?:\.\d+)?$")
_FIELD_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DescriptorError(ValueError):
    """Raised when descriptor inputs cannot be loaded or merged."""


def coerce_value(value: str) -> bool | int | float | str | None:
    """Coerce a string value to its appropriate type.

    Args:
        value: String value to coerce

    Returns:
        Coerced value (bool, int, float, None for ``null``, or str)
    """
    value_lower = value.lower()

    if value_lower in ("true", "false"):
        return value_lower == "true"

    if value_lower in ("null", "~"):
        return None

    if _INT_PATTERN.match(value):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return value

    if _FLOAT_PATTERN.match(value):
        try:
            return float(value)
        except (ValueError, OverflowError):
            return value

    return value


def load_values_file(path: Path) -> dict[str, Any]:
    """Load a YAML or JSON values file.

    Args:
        path: Values file path; ``.json`` is read as JSON, anything else as YAML

    Returns:
        The mapping stored in the file (empty for an empty file)
    """
    if not path.exists():
        raise FileNotFoundError(f"Values file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DescriptorError(f"Cannot parse values file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DescriptorError(
            f"Values file {path} must contain a mapping, got {type(data).__name__}"
        )
    logger.debug(f"Loaded {len(data)} field(s) from {path}")
    return data


def parse_set_value(expression: str) -> dict[str, Any]:
    """Parse a ``dotted.path=value`` override into a nested mapping.

    Example:
        ``service.min_instances=2`` → ``{"service": {"min_instances": 2}}``
    """
    if "=" not in expression:
        raise DescriptorError(f"Must be KEY=VALUE, got: {expression!r}")
    path, raw = expression.split("=", 1)
    keys = path.strip().split(".")
    for key in keys:
        if not _FIELD_PATTERN.match(key):
            raise DescriptorError(f"Invalid field name {key!r} in {expression!r}")

    result: dict[str, Any] = {keys[-1]: coerce_value(raw)}
    for key in reversed(keys[:-1]):
        result = {key: result}
    return result


def from_environment(
    prefix: str, environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Collect prefixed environment variables as descriptor fields.

    The prefix is removed and names are lower-cased:
    ``APP_MIN_INSTANCES=2`` with prefix ``APP_`` → ``{"min_instances": 2}``.
    """
    environ = os.environ if environ is None else environ
    fields = {
        key[len(prefix) :].lower(): coerce_value(value)
        for key, value in environ.items()
        if key.startswith(prefix) and len(key) > len(prefix)
    }
    logger.debug(f"Collected {len(fields)} field(s) from environment prefix {prefix}")
    return dict(sorted(fields.items()))


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into ``base``; nested mappings merge, other values replace."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def build_descriptor(
    values_files: Iterable[Path] = (),
    set_values: Iterable[str] = (),
    env_prefix: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Build a service descriptor.

    Sources are merged in order, later ones winning: values files, then
    environment fields, then ``--set`` overrides.

    Returns:
        Validated descriptor mapping
    """
    descriptor: dict[str, Any] = {}
    for path in values_files:
        descriptor = deep_merge(descriptor, load_values_file(path))
    if env_prefix:
        descriptor = deep_merge(descriptor, from_environment(env_prefix, environ))
    for expression in set_values:
        descriptor = deep_merge(descriptor, parse_set_value(expression))

    try:
        validate_descriptor(descriptor)
    except TypeMismatch as e:
        raise DescriptorError(e.message) from e

    logger.debug(f"Descriptor built with {len(descriptor)} top-level field(s)")
    return descriptor
