"""Render a chart directory into a workspace.

Files with a ``.j2`` infix (``deployment.j2.yaml``) are rendered and written
without it; every other file is copied verbatim. Files under a chart's
``templates/`` directory are Helm templates that Helm renders again, so they
are only checked as plain text.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..core.models import RenderedArtifact, RenderOptions, TargetFormat
from .engine import load_template, render
from .io import atomic_copy, atomic_write_text

logger = logging.getLogger(__name__)

TEMPLATE_INFIX = "j2"
HELM_TEMPLATES_DIR = "templates"


def is_template(path: Path) -> bool:
    return TEMPLATE_INFIX in path.name.split(".")[1:]


def rendered_name(name: str) -> str:
    """Strip the ``.j2`` infix: ``deployment.j2.yaml`` → ``deployment.yaml``."""
    head, *suffixes = name.split(".")
    return ".".join([head, *(s for s in suffixes if s != TEMPLATE_INFIX)])


def chart_file_format(relative: Path) -> TargetFormat:
    if HELM_TEMPLATES_DIR in relative.parts[:-1]:
        return TargetFormat.TEXT
    return TargetFormat.infer(rendered_name(relative.name))


def render_chart(
    source_dir: Path,
    dest_dir: Path,
    descriptor: Mapping[str, Any],
    options: RenderOptions | None = None,
    *,
    validate: bool = True,
    file_mode: int = 0o644,
) -> list[Path]:
    """Render every template of a chart directory into ``dest_dir``.

    Nothing is written until every template has rendered successfully.

    Args:
        source_dir: Chart source directory
        dest_dir: Destination directory (created if missing)
        descriptor: Service descriptor
        options: Whitespace handling options
        validate: Check output integrity of rendered files
        file_mode: Permissions of rendered files

    Returns:
        Written file paths, sorted
    """
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Chart directory not found: {source_dir}")

    files = sorted(p for p in source_dir.rglob("*") if p.is_file())
    logger.info(f"Rendering chart {source_dir} ({len(files)} file(s)) → {dest_dir}")

    rendered: list[tuple[Path, RenderedArtifact]] = []
    copied: list[tuple[Path, Path]] = []
    for path in files:
        relative = path.relative_to(source_dir)
        if is_template(path):
            template = load_template(path, options)
            artifact = render(
                template, descriptor, chart_file_format(relative), validate=validate
            )
            target = dest_dir / relative.parent / rendered_name(path.name)
            rendered.append((target, artifact))
        else:
            copied.append((path, dest_dir / relative))

    written: list[Path] = []
    for target, artifact in rendered:
        atomic_write_text(target, artifact.text, mode=file_mode)
        logger.debug(f"Rendered {target} (sha256={artifact.checksum})")
        written.append(target)
    for source, target in copied:
        atomic_copy(source, target)
        written.append(target)

    logger.info(f"Chart rendered: {len(rendered)} template(s), {len(copied)} copied file(s)")
    return sorted(written)
