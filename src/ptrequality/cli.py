"""CLI entry point for ptrequality."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from ptrequality import __version__
from ptrequality.analyzer.models import UnitReport
from ptrequality.analyzer.service import DOC, new_analyzer
from ptrequality.config import AnalyzerConfig, ConfigError, load_config
from ptrequality.ir.loader import UnitFormatError, load_unit
from ptrequality.ir.nodes import Unit

# Exit status when diagnostics were reported, as the host's checker uses.
EXIT_FINDINGS = 3


@click.command(help=DOC)
@click.argument(
    "units", nargs=-1, required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--check-is/--no-check-is", "check_is", default=None,
    help="Let custom Is / Unwrap methods on error chains decide errors.Is severity (default: enabled).",
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file (e.g. ptrequality.yaml).",
)
@click.option(
    "-c", "--context", type=int, default=-1, show_default=True,
    help="Display offending line with this many lines of context.",
)
@click.option(
    "-f", "--format", "fmt",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    help="Output format (default: text).",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose logging.")
@click.version_option(__version__, "-V", "--version")
def main(
    units: tuple[Path, ...],
    check_is: bool | None,
    config_path: Path | None,
    context: int,
    fmt: str,
    verbose: bool,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    try:
        config = load_config(config_path) if config_path else AnalyzerConfig()
    except ConfigError as exc:
        raise click.BadParameter(str(exc), param_hint="--config") from exc
    if check_is is not None:
        config = config.with_flag("check-is", check_is)

    analyzer = new_analyzer(config)
    results: list[tuple[Unit, UnitReport]] = []
    for path in units:
        try:
            unit = load_unit(path)
        except UnitFormatError as exc:
            raise click.ClickException(str(exc)) from exc
        results.append((unit, analyzer.report(unit)))

    if fmt == "json":
        _output_json(results)
    else:
        _output_text(results, context)

    if any(report.findings for _, report in results):
        sys.exit(EXIT_FINDINGS)


def _output_text(results: list[tuple[Unit, UnitReport]], context: int) -> None:
    from ptrequality.render.text import render_text
    for unit, report in results:
        if report.findings:
            click.echo(render_text(report, unit, context))


def _output_json(results: list[tuple[Unit, UnitReport]]) -> None:
    data = {report.unit: report.model_dump(mode="json") for _, report in results}
    click.echo(json.dumps(data, indent=2))


if __name__ == "__main__":
    main()
