"""Chartwright - Manifest renderer for Kubernetes and Terraform templates.

Renders ``{{ }}``/``{% %}`` templates against a service descriptor into
YAML manifests, HCL fragments or plain text, failing with a located
diagnostic rather than emitting partial or malformed output.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .core.errors import (  # noqa: E402
    OutputIntegrityError,
    TemplateError,
    TemplateSyntaxError,
    TypeMismatch,
    UndefinedReference,
    UnterminatedBlock,
)
from .core.models import RenderedArtifact, RenderOptions, TargetFormat  # noqa: E402
from .rendering.engine import load_template, render  # noqa: E402
from .template import Template, parse  # noqa: E402

__all__ = [
    "OutputIntegrityError",
    "RenderOptions",
    "RenderedArtifact",
    "TargetFormat",
    "Template",
    "TemplateError",
    "TemplateSyntaxError",
    "TypeMismatch",
    "UndefinedReference",
    "UnterminatedBlock",
    "load_template",
    "parse",
    "render",
]
