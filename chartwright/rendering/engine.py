"""Template rendering engine."""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..core.models import (
    RenderConfig,
    RenderedArtifact,
    RenderOptions,
    RenderTask,
    TargetFormat,
)
from ..descriptor.validation import validate_descriptor
from ..template import Template
from .integrity import check_output
from .io import atomic_write_text

logger = logging.getLogger(__name__)


def load_template(template_path: Path, options: RenderOptions | None = None) -> Template:
    """Load and parse a template from a file path.

    Args:
        template_path: Path to the template file
        options: Whitespace handling options

    Returns:
        Parsed template named after the file
    """
    if not template_path.exists():
        raise FileNotFoundError(f"Template not found: {template_path}")

    source = template_path.read_text(encoding="utf-8")
    return Template.from_string(source, name=str(template_path), options=options)


def render(
    template: Template,
    descriptor: Mapping[str, Any],
    target_format: TargetFormat = TargetFormat.TEXT,
    *,
    validate: bool = True,
) -> RenderedArtifact:
    """Render a template against a service descriptor.

    Rendering is a pure function of its inputs: identical template and
    descriptor always produce byte-identical text.

    Args:
        template: Parsed template
        descriptor: Service descriptor providing the template's fields
        target_format: Format the output must satisfy
        validate: Parse the output as ``target_format`` before returning

    Returns:
        The rendered artifact

    Raises:
        TemplateError: If any reference, type or output check fails. No
            partial output is produced.
    """
    validate_descriptor(descriptor)
    text = template.render(descriptor)
    if validate:
        check_output(text, target_format, template.name)

    artifact = RenderedArtifact(
        text=text, target_format=target_format, template_name=template.name
    )
    logger.debug(f"Rendered {template.name or '<template>'} (sha256={artifact.checksum})")
    return artifact


def _output_path(task: RenderTask, dest_root: Path) -> Path:
    output_path = task.output_path
    if not output_path.is_absolute():
        output_path = dest_root / output_path
    return output_path


def render_task(
    task: RenderTask,
    descriptor: Mapping[str, Any],
    options: RenderOptions | None = None,
    *,
    validate: bool = True,
) -> RenderedArtifact:
    """Render a single template task in memory.

    Args:
        task: Render task to execute
        descriptor: Service descriptor
        options: Whitespace handling options
        validate: Check output integrity

    Returns:
        Rendered artifact for the task
    """
    logger.debug(f"Rendering template: {task.template_path}")

    template = load_template(task.template_path, options)
    return render(template, descriptor, task.resolved_format(), validate=validate)


def write_artifact(
    task: RenderTask, artifact: RenderedArtifact, dest_root: Path, file_mode: int
) -> Path | None:
    """Write an artifact to the task's output, or stdout for ``-``.

    Returns:
        Output file path, ``None`` when written to stdout
    """
    if task.writes_stdout:
        sys.stdout.write(artifact.text)
        sys.stdout.flush()
        logger.info(f"Rendered {task.template_path} → <stdout>")
        return None

    output_path = _output_path(task, dest_root)
    atomic_write_text(output_path, artifact.text, mode=file_mode)
    logger.info(f"Rendered {task.template_path} → {output_path}")
    return output_path


def render_all(
    config: RenderConfig, descriptor: Mapping[str, Any]
) -> list[RenderedArtifact]:
    """Render all configured templates.

    Every template is rendered before anything is written, so a failing
    template leaves no output files behind.

    Args:
        config: Render configuration
        descriptor: Service descriptor

    Returns:
        Rendered artifacts in task order
    """
    logger.info(f"Rendering {len(config.tasks)} template(s)")

    artifacts = [
        render_task(task, descriptor, config.options, validate=config.validate_output)
        for task in config.tasks
    ]
    for task, artifact in zip(config.tasks, artifacts):
        write_artifact(task, artifact, config.dest_root, config.file_mode)

    logger.info(f"Successfully rendered {len(artifacts)} file(s)")
    return artifacts
