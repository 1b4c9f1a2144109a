"""Domain models for render configuration and rendered output."""

from __future__ import annotations

import hashlib
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field


class TargetFormat(str, Enum):
    """Syntax a rendered artifact must satisfy."""

    YAML = "yaml"
    HCL = "hcl"
    TEXT = "text"

    @classmethod
    def infer(cls, path: Path | str) -> "TargetFormat":
        """Infer the target format from a file name.

        A ``.j2`` infix is ignored, so ``deployment.j2.yaml`` is YAML.

        Args:
            path: Template or output file name

        Returns:
            Inferred target format (TEXT when the suffix is unknown)
        """
        suffixes = [s.lower() for s in Path(path).suffixes if s.lower() != ".j2"]
        if not suffixes:
            return cls.TEXT
        return _SUFFIX_FORMATS.get(suffixes[-1], cls.TEXT)


_SUFFIX_FORMATS = {
    ".yaml": TargetFormat.YAML,
    ".yml": TargetFormat.YAML,
    ".tf": TargetFormat.HCL,
    ".tfvars": TargetFormat.HCL,
    ".hcl": TargetFormat.HCL,
}


class RenderOptions(BaseModel):
    """Whitespace handling applied while tokenising templates."""

    model_config = ConfigDict(frozen=True)

    trim_blocks: bool = Field(
        default=False, description="Drop the first newline after a block tag"
    )
    lstrip_blocks: bool = Field(
        default=False, description="Strip leading spaces/tabs before a block tag"
    )
    keep_trailing_newline: bool = Field(
        default=True, description="Keep a single trailing newline of the source"
    )


class RenderTask(BaseModel):
    """A single template rendering task."""

    template_path: Path = Field(..., description="Template file path")
    output_path: Path = Field(..., description="Output file path, '-' for stdout")
    target_format: TargetFormat | None = Field(
        default=None, description="Declared format; inferred from output when unset"
    )

    @property
    def writes_stdout(self) -> bool:
        return str(self.output_path) == "-"

    def resolved_format(self) -> TargetFormat:
        if self.target_format is not None:
            return self.target_format
        if self.writes_stdout:
            return TargetFormat.infer(self.template_path)
        return TargetFormat.infer(self.output_path)


class RenderConfig(BaseModel):
    """Configuration for the rendering process."""

    tasks: list[RenderTask] = Field(..., min_length=1, description="Render tasks")
    dest_root: Path = Field(
        default_factory=Path.cwd, description="Base output directory"
    )
    file_mode: int = Field(default=0o644, description="File permissions (octal)")
    options: RenderOptions = Field(default_factory=RenderOptions)
    validate_output: bool = Field(
        default=True, description="Parse rendered text as its target format"
    )


class RenderedArtifact(BaseModel):
    """Fully resolved output of one render."""

    model_config = ConfigDict(frozen=True)

    text: str
    target_format: TargetFormat = TargetFormat.TEXT
    template_name: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def checksum(self) -> str:
        """SHA-256 hex digest of the rendered text."""
        return hashlib.sha256(self.text.encode("utf-8")).hexdigest()
