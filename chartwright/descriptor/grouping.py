"""Group ``PREFIX_KEY_N`` environment variables into descriptor sequences.

Used to feed ordered list fields such as ``environment_variables``::

    ENV_KEY_0=DATABASE_URL  ENV_VALUE_0=...
    ENV_KEY_1=REDIS_URL     ENV_VALUE_1=...

becomes ``[{"key": "DATABASE_URL", ...}, {"key": "REDIS_URL", ...}]``.
Order follows the numeric index, never the environment's own ordering.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from typing import Any

from .loader import DescriptorError

logger = logging.getLogger(__name__)

STRATEGIES = ("indexed", "sequential")


class GroupingValidationError(DescriptorError):
    """Raised when grouped environment variables fail validation."""


def _index_pattern(prefix: str, keys: list[str]) -> re.Pattern[str]:
    key_pattern = "|".join(map(re.escape, keys))
    return re.compile(rf"^{re.escape(prefix)}({key_pattern})_(\d+)$")


def collect_indexed_groups(
    prefix: str,
    keys: list[str],
    environ: Mapping[str, str],
) -> dict[int, dict[str, str]]:
    """Collect variables matching ``PREFIX_KEY_N`` keyed by their index N.

    Returns:
        Mapping of index to ``{key: value}``, sorted by index
    """
    pattern = _index_pattern(prefix, keys)
    groups: dict[int, dict[str, str]] = {}
    for env_key, env_value in environ.items():
        match = pattern.match(env_key)
        if match is None:
            continue
        key_name, index = match.group(1), int(match.group(2))
        groups.setdefault(index, {})[key_name] = env_value
    return dict(sorted(groups.items()))


def _validate_required(
    groups: dict[int, dict[str, str]], strategy: str, prefix: str, required_keys: list[str]
) -> None:
    for index, values in groups.items():
        missing = [key for key in required_keys if key not in values]
        if missing:
            present = ", ".join(sorted(values)) or "none"
            raise GroupingValidationError(
                f"{strategy.capitalize()} group '{prefix}' index {index} is missing "
                f"required key(s): {', '.join(missing)}. Present keys: {present}."
            )


def _validate_contiguous(groups: dict[int, dict[str, str]], prefix: str) -> None:
    if not groups:
        return
    if 0 not in groups:
        raise GroupingValidationError(
            f"Sequential group '{prefix}' must start at index 0. Found indices: {sorted(groups)}."
        )
    gaps = [index for index in range(max(groups) + 1) if index not in groups]
    if gaps:
        raise GroupingValidationError(
            f"Sequential group '{prefix}' has gaps at indices {gaps}. "
            "Sequential groups must be contiguous."
        )


def apply_grouping_strategy(
    descriptor: dict[str, Any],
    strategy_name: str,
    prefix: str,
    required_keys: list[str],
    optional_keys: list[str] | None = None,
    field: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Collect a group of variables and store it as a descriptor list field.

    Args:
        descriptor: Descriptor to update in place
        strategy_name: "indexed" (gaps allowed) or "sequential" (contiguous from 0)
        prefix: Environment variable prefix
        required_keys: Keys every entry must have
        optional_keys: Keys collected when present
        field: Descriptor field name; defaults to ``<prefix>_groups``
        environ: Variables to read, ``os.environ`` by default
    """
    if strategy_name not in STRATEGIES:
        raise ValueError(f"Unknown strategy: {strategy_name}")
    environ = os.environ if environ is None else environ

    logger.debug(f"Applying {strategy_name} strategy for prefix: {prefix}")

    all_keys = required_keys + (optional_keys or [])
    groups = collect_indexed_groups(prefix, all_keys, environ)
    if strategy_name == "sequential":
        _validate_contiguous(groups, prefix)
    _validate_required(groups, strategy_name, prefix, required_keys)

    key = field or f"{prefix.lower().rstrip('_')}_groups"
    descriptor[key] = [
        {name.lower(): group[name] for name in all_keys if name in group}
        for group in groups.values()
    ]
    logger.debug(f"Added {len(groups)} group(s) to descriptor under key: {key}")
