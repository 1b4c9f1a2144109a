"""Template parsing and rendering on top of Jinja2."""

from __future__ import annotations

import logging
import re
import traceback
from collections.abc import Mapping
from typing import Any

import jinja2
from jinja2.exceptions import UndefinedError

from ..core.errors import (
    TemplateError,
    TemplateSyntaxError,
    TypeMismatch,
    UndefinedReference,
    UnterminatedBlock,
)
from ..core.models import RenderOptions
from .environment import MissingFieldError, build_environment, guard_loops

logger = logging.getLogger(__name__)

_UNTERMINATED_MARKERS = ("unexpected end of template", "missing end of")


def _syntax_error(exc: jinja2.TemplateSyntaxError, name: str | None) -> TemplateError:
    message = exc.message or str(exc)
    unterminated = any(marker in message.lower() for marker in _UNTERMINATED_MARKERS)
    cls = UnterminatedBlock if unterminated else TemplateSyntaxError
    return cls(message, template_name=name, line=exc.lineno)


class Template:
    """A parsed template document.

    Templates are immutable once parsed and can be rendered any number of
    times, concurrently, against different descriptors.
    """

    def __init__(self, template: jinja2.Template, source: str, name: str | None = None) -> None:
        self.name = name
        self._template = template
        self._lines = source.splitlines()

    @classmethod
    def from_string(
        cls,
        source: str,
        name: str | None = None,
        options: RenderOptions | None = None,
    ) -> "Template":
        environment = build_environment(options or RenderOptions())
        filename = name or "<template>"
        try:
            tree = environment.parse(source, name, filename)
            guard_loops(tree, environment)
            code = environment.compile(tree, name, filename)
        except jinja2.TemplateSyntaxError as exc:
            raise _syntax_error(exc, name) from exc

        logger.debug(f"Compiled template {filename}")
        template = environment.template_class.from_code(
            environment, code, environment.make_globals(None)
        )
        return cls(template, source, name)

    def render(self, descriptor: Mapping[str, Any]) -> str:
        try:
            return self._template.render(descriptor)
        except UndefinedError as exc:
            field = exc.field if isinstance(exc, MissingFieldError) else None
            line = self._line_of(exc)
            raise UndefinedReference(
                field or exc.message or "<unknown>",
                template_name=self.name,
                line=line,
                column=self._column_of(line, field),
            ) from exc
        except TypeError as exc:
            raise TypeMismatch(
                str(exc), template_name=self.name, line=self._line_of(exc)
            ) from exc
        except jinja2.TemplateError as exc:
            raise TemplateError(
                exc.message or str(exc), template_name=self.name, line=self._line_of(exc)
            ) from exc

    def _line_of(self, exc: BaseException) -> int | None:
        """Template line of the innermost template frame in the traceback."""
        filename = self._template.filename
        line = None
        for frame, lineno in traceback.walk_tb(exc.__traceback__):
            if frame.f_code.co_filename == filename:
                line = lineno
        return line

    def _column_of(self, line: int | None, field: str | None) -> int | None:
        if line is None or field is None or not 0 < line <= len(self._lines):
            return None
        match = re.search(rf"\b{re.escape(field)}\b", self._lines[line - 1])
        return match.start() + 1 if match else None

    def __repr__(self) -> str:
        return f"<Template {self.name or '<string>'!r}>"


def parse(
    source: str, name: str | None = None, options: RenderOptions | None = None
) -> Template:
    """Parse template source into a :class:`Template`."""
    return Template.from_string(source, name, options)


__all__ = ["Template", "parse"]
