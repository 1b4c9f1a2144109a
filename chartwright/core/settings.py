"""Renderer settings read from ``CHARTWRIGHT_*`` environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import RenderOptions


class RendererSettings(BaseSettings):
    """Defaults for whitespace handling, output validation and file modes.

    Command-line flags take precedence over these values.
    """

    model_config = SettingsConfigDict(env_prefix="CHARTWRIGHT_", case_sensitive=False)

    trim_blocks: bool = False
    lstrip_blocks: bool = False
    keep_trailing_newline: bool = True
    validate_output: bool = True
    file_mode: str = "0644"

    def render_options(self, **overrides: bool | None) -> RenderOptions:
        """Build :class:`RenderOptions`, applying overrides that are not ``None``."""
        values = {
            "trim_blocks": self.trim_blocks,
            "lstrip_blocks": self.lstrip_blocks,
            "keep_trailing_newline": self.keep_trailing_newline,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return RenderOptions(**values)
