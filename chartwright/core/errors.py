"""Render error taxonomy.

Every error is fatal to the render call that raised it. Errors carry the
template name and the 1-based line/column of the offending marker when the
location is known.
"""

from __future__ import annotations


class TemplateError(Exception):
    """Base class for all rendering failures."""

    def __init__(
        self,
        message: str,
        *,
        template_name: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.template_name = template_name
        self.line = line
        self.column = column

    @property
    def location(self) -> str:
        name = self.template_name or "<template>"
        if self.line is None:
            return name
        if self.column is None:
            return f"{name}:{self.line}"
        return f"{name}:{self.line}:{self.column}"

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


class TemplateSyntaxError(TemplateError):
    """Raised for malformed tags, unknown directives and stray block ends."""


class UndefinedReference(TemplateError):
    """Raised when a name or field is not present in the active scope."""

    def __init__(self, name: str, **kwargs) -> None:
        super().__init__(f"undefined reference '{name}'", **kwargs)
        self.name = name


class TypeMismatch(TemplateError):
    """Raised when a value does not have the shape a directive requires."""


class UnterminatedBlock(TemplateError):
    """Raised when an opening marker has no matching closing marker."""


class OutputIntegrityError(TemplateError):
    """Raised when rendered text does not parse as its target format."""

    def __init__(self, message: str, *, target_format: str, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.target_format = target_format
