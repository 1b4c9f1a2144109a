"""Jinja2 environment configured for descriptor rendering."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from jinja2 import ChainableUndefined, Environment, StrictUndefined, Undefined, nodes
from jinja2.exceptions import UndefinedError

from ..core.models import RenderOptions

LOOP_SOURCE_FILTER = "loop_source"


class MissingFieldError(UndefinedError):
    """Undefined error that remembers which field was missing."""

    def __init__(self, message: str | None, field: str | None) -> None:
        super().__init__(message)
        self.field = field


class DescriptorUndefined(ChainableUndefined, StrictUndefined):
    """Value of a field that is not in the descriptor or loop scope.

    Falsy in conditions, so ``{% if registry %}`` guards an absent field, and
    field access on it stays undefined. Printing, comparing, iterating or
    doing arithmetic with it raises :class:`MissingFieldError`.
    """

    __slots__ = ()

    def _fail_with_undefined_error(self, *args: Any, **kwargs: Any) -> Any:
        raise MissingFieldError(self._undefined_message, self._undefined_name)

    def __bool__(self) -> bool:
        return False

    __iter__ = __str__ = __len__ = __contains__ = _fail_with_undefined_error
    __eq__ = __ne__ = __hash__ = _fail_with_undefined_error
    __lt__ = __le__ = __gt__ = __ge__ = _fail_with_undefined_error
    __add__ = __radd__ = __sub__ = __rsub__ = _fail_with_undefined_error
    __mul__ = __rmul__ = __truediv__ = __rtruediv__ = _fail_with_undefined_error
    __floordiv__ = __rfloordiv__ = __mod__ = __rmod__ = _fail_with_undefined_error
    __pos__ = __neg__ = __pow__ = __rpow__ = __call__ = _fail_with_undefined_error
    __int__ = __float__ = __complex__ = _fail_with_undefined_error


def to_text(value: Any) -> Any:
    """String form of an interpolated value.

    Booleans are written ``true``/``false`` and ``None`` as an empty string,
    matching YAML and HCL spelling. Lists and mappings are written as JSON.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (list, tuple, Mapping)):
        return json.dumps(value, ensure_ascii=False)
    return value


def loop_source(value: Any, description: str = "<expression>") -> Any:
    """Check that a ``for`` loop iterates over a sequence."""
    if isinstance(value, Undefined):
        value._fail_with_undefined_error()
    if not isinstance(value, (list, tuple)):
        raise TypeError(
            f"cannot loop over {type(value).__name__} '{description}', expected a sequence"
        )
    return value


def describe(node: nodes.Node) -> str:
    """Render a reference expression back to its dotted source form."""
    if isinstance(node, nodes.Name):
        return node.name
    if isinstance(node, nodes.Getattr):
        return f"{describe(node.node)}.{node.attr}"
    if isinstance(node, nodes.Getitem) and isinstance(node.arg, nodes.Const):
        return f"{describe(node.node)}[{node.arg.value!r}]"
    return "<expression>"


def guard_loops(tree: nodes.Template, environment: Environment) -> None:
    """Wrap every ``for`` loop source in :func:`loop_source`.

    Jinja iterates strings and mappings; descriptor loops only accept lists.
    """
    for loop in tree.find_all(nodes.For):
        source = loop.iter
        guarded = nodes.Filter(
            source,
            LOOP_SOURCE_FILTER,
            [nodes.Const(describe(source))],
            [],
            None,
            None,
            lineno=source.lineno,
        )
        guarded.set_environment(environment)
        loop.iter = guarded


def build_environment(options: RenderOptions) -> Environment:
    env = Environment(
        undefined=DescriptorUndefined,
        autoescape=False,
        trim_blocks=options.trim_blocks,
        lstrip_blocks=options.lstrip_blocks,
        keep_trailing_newline=options.keep_trailing_newline,
        finalize=to_text,
    )
    env.filters[LOOP_SOURCE_FILTER] = loop_source
    return env
