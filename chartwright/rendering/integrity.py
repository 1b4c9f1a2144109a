"""Post-render syntax checks for YAML and HCL artifacts."""

from __future__ import annotations

import logging

import hcl2  # type: ignore[import-untyped]
import yaml
from lark.exceptions import LarkError

from ..core.errors import OutputIntegrityError
from ..core.models import TargetFormat

logger = logging.getLogger(__name__)


def _check_yaml(text: str, template_name: str | None) -> None:
    try:
        for _ in yaml.safe_load_all(text):
            pass
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        problem = getattr(exc, "problem", None) or str(exc)
        raise OutputIntegrityError(
            f"rendered output is not valid YAML: {problem}",
            target_format=TargetFormat.YAML.value,
            template_name=template_name,
            line=mark.line + 1 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
        ) from exc


def _check_hcl(text: str, template_name: str | None) -> None:
    try:
        hcl2.loads(text)
    except (LarkError, ValueError) as exc:
        line = getattr(exc, "line", None)
        column = getattr(exc, "column", None)
        raise OutputIntegrityError(
            f"rendered output is not valid HCL: {exc}",
            target_format=TargetFormat.HCL.value,
            template_name=template_name,
            line=line if isinstance(line, int) and line > 0 else None,
            column=column if isinstance(column, int) and column > 0 else None,
        ) from exc


def check_output(
    text: str, target_format: TargetFormat, template_name: str | None = None
) -> None:
    """Verify rendered text parses as its declared target format.

    Args:
        text: Rendered text
        target_format: Declared format of the artifact
        template_name: Template name used in error messages

    Raises:
        OutputIntegrityError: If the text does not parse
    """
    if target_format is TargetFormat.YAML:
        _check_yaml(text, template_name)
    elif target_format is TargetFormat.HCL:
        _check_hcl(text, template_name)
    else:
        return
    logger.debug(f"Output of {template_name or '<template>'} is valid {target_format.value}")
