"""Shape checks for service descriptors."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..core.errors import TypeMismatch

_SCALARS = (str, int, float, bool, type(None))


def _check(value: Any, path: str) -> None:
    if isinstance(value, _SCALARS):
        return
    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _check(item, f"{path}[{index}]")
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeMismatch(
                    f"descriptor field {path!r} has non-string key {key!r}"
                )
            _check(item, f"{path}.{key}")
        return
    raise TypeMismatch(
        f"descriptor field {path!r} has unsupported type {type(value).__name__}"
    )


def validate_descriptor(descriptor: Mapping[str, Any]) -> None:
    """Ensure a descriptor only holds scalars, sequences and string-keyed mappings.

    Raises:
        TypeMismatch: On the first offending field
    """
    if not isinstance(descriptor, Mapping):
        raise TypeMismatch(
            f"descriptor must be a mapping, got {type(descriptor).__name__}"
        )
    for key, value in descriptor.items():
        if not isinstance(key, str):
            raise TypeMismatch(f"descriptor has non-string field name {key!r}")
        _check(value, key)
