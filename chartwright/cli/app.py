"""Main CLI application."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from ..core.errors import TemplateError
from ..core.models import RenderConfig, RenderOptions, RenderTask
from ..core.settings import RendererSettings
from ..descriptor import grouping
from ..descriptor.loader import (
    DescriptorError,
    build_descriptor,
    deep_merge,
    parse_set_value,
)
from ..rendering import chart, engine
from .parsers import (
    check_set_values,
    parse_file_mode,
    parse_group_config,
    parse_render,
    parse_target_format,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="chartwright",
    help="Render Kubernetes manifests and Terraform fragments from service descriptors.",
)

ValuesOption = Annotated[
    list[Path],
    typer.Option(
        "--values",
        "-f",
        help="YAML or JSON values file merged into the descriptor. Repeatable.",
        metavar="FILE",
    ),
]
SetOption = Annotated[
    list[str],
    typer.Option(
        "--set",
        help="Override a descriptor field (format: dotted.key=VALUE). Repeatable.",
        metavar="KEY=VALUE",
        callback=check_set_values,
    ),
]
EnvPrefixOption = Annotated[
    str,
    typer.Option(
        "--env-prefix",
        help="Add environment variables starting with PREFIX as descriptor fields.",
        metavar="PREFIX",
    ),
]
IndexedOption = Annotated[
    list[str],
    typer.Option(
        "--indexed",
        help='Indexed grouping: collects PREFIX_KEY_N variables (gaps allowed). JSON format: {"prefix":"PREFIX_","required_keys":[...],"optional_keys":[...],"field":"name"}. Repeatable.',
        metavar="JSON",
    ),
]
SequentialOption = Annotated[
    list[str],
    typer.Option(
        "--sequential",
        help='Sequential grouping: collects PREFIX_KEY_0, PREFIX_KEY_1... (no gaps). JSON format: {"prefix":"PREFIX_","required_keys":[...],"optional_keys":[...],"field":"name"}. Repeatable.',
        metavar="JSON",
    ),
]
TrimBlocksOption = Annotated[
    Optional[bool],
    typer.Option(
        "--trim-blocks/--no-trim-blocks",
        help="Remove the first newline after a block tag.",
        show_default=False,
    ),
]
LstripBlocksOption = Annotated[
    Optional[bool],
    typer.Option(
        "--lstrip-blocks/--no-lstrip-blocks",
        help="Strip spaces and tabs before a block tag at line start.",
        show_default=False,
    ),
]
ValidateOption = Annotated[
    Optional[bool],
    typer.Option(
        "--validate/--no-validate",
        help="Check that YAML/HCL output parses.",
        show_default=False,
    ),
]
ModeOption = Annotated[
    Optional[str],
    typer.Option(
        "--mode",
        help="File permissions in octal (default: 0644).",
        metavar="OCTAL",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def _descriptor(
    values: list[Path],
    set_values: list[str],
    env_prefix: str,
    indexed_groups: list[str],
    sequential_groups: list[str],
) -> dict:
    descriptor = build_descriptor(values, [], env_prefix or None)

    for strategy, configs in (("indexed", indexed_groups), ("sequential", sequential_groups)):
        for group_config_json in configs:
            group_config = parse_group_config(group_config_json, strategy)
            grouping.apply_grouping_strategy(
                descriptor,
                strategy,
                group_config["prefix"],
                group_config["required_keys"],
                group_config.get("optional_keys"),
                field=group_config.get("field"),
            )

    # --set overrides win over grouped fields
    for expression in set_values:
        descriptor = deep_merge(descriptor, parse_set_value(expression))
    return descriptor


def _options(
    settings: RendererSettings, trim_blocks: bool | None, lstrip_blocks: bool | None
) -> RenderOptions:
    return settings.render_options(trim_blocks=trim_blocks, lstrip_blocks=lstrip_blocks)


@app.command()
def render(
    renders: Annotated[
        list[str],
        typer.Option(
            "--render",
            help="Render TEMPLATE to OUTPUT (format: TEMPLATE=OUTPUT, OUTPUT '-' for stdout). Repeatable.",
            metavar="TEMPLATE=OUTPUT",
        ),
    ],
    values: ValuesOption = [],
    set_values: SetOption = [],
    env_prefix: EnvPrefixOption = "",
    indexed_groups: IndexedOption = [],
    sequential_groups: SequentialOption = [],
    target_format: Annotated[
        Optional[str],
        typer.Option(
            "--format",
            help="Output format for all templates: auto, yaml, hcl or text (default: auto).",
            metavar="FORMAT",
        ),
    ] = None,
    dest_root: Annotated[
        str,
        typer.Option(
            "--dest-root",
            help="Base directory for relative output paths (default: cwd).",
            metavar="DIR",
        ),
    ] = "",
    file_mode: ModeOption = None,
    trim_blocks: TrimBlocksOption = None,
    lstrip_blocks: LstripBlocksOption = None,
    validate: ValidateOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Render templates against a service descriptor."""
    _configure_logging(verbose)
    settings = RendererSettings()

    logger.debug("Starting chartwright render")

    fmt = parse_target_format(target_format)
    render_tasks = [
        RenderTask(template_path=Path(tpl), output_path=out, target_format=fmt)
        for tpl, out in map(parse_render, renders)
    ]
    mode = parse_file_mode(file_mode or settings.file_mode)

    try:
        config = RenderConfig(
            tasks=render_tasks,
            dest_root=Path(dest_root) if dest_root else Path.cwd(),
            file_mode=mode,
            options=_options(settings, trim_blocks, lstrip_blocks),
            validate_output=settings.validate_output if validate is None else validate,
        )
        descriptor = _descriptor(
            values, set_values, env_prefix, indexed_groups, sequential_groups
        )
        outputs = engine.render_all(config, descriptor)
    except (TemplateError, DescriptorError, FileNotFoundError) as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc

    logger.debug(f"Completed: {len(outputs)} file(s) rendered")


@app.command("chart")
def render_chart(
    source: Annotated[Path, typer.Argument(help="Chart source directory.")],
    dest: Annotated[Path, typer.Argument(help="Destination directory.")],
    values: ValuesOption = [],
    set_values: SetOption = [],
    env_prefix: EnvPrefixOption = "",
    indexed_groups: IndexedOption = [],
    sequential_groups: SequentialOption = [],
    file_mode: ModeOption = None,
    trim_blocks: TrimBlocksOption = None,
    lstrip_blocks: LstripBlocksOption = None,
    validate: ValidateOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Render every *.j2.* file of a chart directory and copy the rest."""
    _configure_logging(verbose)
    settings = RendererSettings()
    mode = parse_file_mode(file_mode or settings.file_mode)

    try:
        descriptor = _descriptor(
            values, set_values, env_prefix, indexed_groups, sequential_groups
        )
        written = chart.render_chart(
            source,
            dest,
            descriptor,
            _options(settings, trim_blocks, lstrip_blocks),
            validate=settings.validate_output if validate is None else validate,
            file_mode=mode,
        )
    except (TemplateError, DescriptorError, FileNotFoundError) as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc

    logger.debug(f"Completed: {len(written)} file(s) written")


@app.command()
def check(
    template_path: Annotated[Path, typer.Argument(help="Template to render.")],
    values: ValuesOption = [],
    set_values: SetOption = [],
    env_prefix: EnvPrefixOption = "",
    indexed_groups: IndexedOption = [],
    sequential_groups: SequentialOption = [],
    target_format: Annotated[
        Optional[str],
        typer.Option("--format", help="auto, yaml, hcl or text.", metavar="FORMAT"),
    ] = None,
    trim_blocks: TrimBlocksOption = None,
    lstrip_blocks: LstripBlocksOption = None,
    validate: ValidateOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Render a template in memory, validate it and print its SHA-256 checksum."""
    _configure_logging(verbose)
    settings = RendererSettings()

    task = RenderTask(
        template_path=template_path,
        output_path=Path("-"),
        target_format=parse_target_format(target_format),
    )
    try:
        descriptor = _descriptor(
            values, set_values, env_prefix, indexed_groups, sequential_groups
        )
        artifact = engine.render_task(
            task,
            descriptor,
            _options(settings, trim_blocks, lstrip_blocks),
            validate=settings.validate_output if validate is None else validate,
        )
    except (TemplateError, DescriptorError, FileNotFoundError) as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc

    typer.echo(f"{artifact.checksum}  {template_path}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
