"""
Analyze Command - scan a source tree, resolve imports and compute a layout.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Tuple

import click
from rich.console import Console
from rich.table import Table

from ...config import load_config
from ...core.errors import ConfigError
from ...layout.base import LayoutStrategy
from ...pipeline import AnalysisResult, analyze_project
from ..utils import configure_logging, echo_empty_tree_warning, echo_error, echo_success, echo_warning

logger = logging.getLogger(__name__)

console = Console()


def _summary_table(result: AnalysisResult) -> Table:
    diagnostics = result.diagnostics
    table = Table(title=f"codesphere: {result.root.name}", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Files", str(diagnostics.total_files))
    table.add_row("Directories", str(diagnostics.total_directories))
    table.add_row("Total size", f"{diagnostics.total_size:,} bytes")
    table.add_row("Avg complexity", f"{diagnostics.average_complexity:.2f}")
    table.add_row("Edges", str(result.graph.edge_count))
    table.add_row("Unresolved imports", str(diagnostics.unresolved_imports))
    table.add_row("Parse failures", str(diagnostics.parse_failures))
    table.add_row("Unreadable entries", str(len(diagnostics.unreadable_entries)))
    table.add_row("Import cycles", str(diagnostics.cyclic_components))
    table.add_row("Layout", f"{result.layout.strategy} ({result.layout.iterations} iterations)")
    return table


@click.command()
@click.argument("directory", default=".")
@click.option("-e", "--exclude", multiple=True, help="Extra exclusion pattern (name or *suffix)")
@click.option(
    "-s",
    "--strategy",
    type=click.Choice([s.value for s in LayoutStrategy]),
    help="Placement strategy",
)
@click.option("--iterations", type=int, help="Relaxation iterations")
@click.option("--seed", type=int, help="Seed for layout jitter")
@click.option("-c", "--config", "config_file", type=click.Path(exists=True, dir_okay=False), help="YAML config file")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write the full result as JSON")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output")
def analyze(
    directory: str,
    exclude: Tuple[str, ...],
    strategy: str | None,
    iterations: int | None,
    seed: int | None,
    config_file: str | None,
    output: str | None,
    as_json: bool,
    verbose: bool,
):
    """
    Analyze DIRECTORY and lay out its dependency graph in 3D.
    """
    configure_logging(verbose)

    try:
        config = load_config(config_file)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e

    if exclude:
        config.scan.exclude_patterns = tuple(config.scan.exclude_patterns) + tuple(exclude)
    if strategy:
        config.layout.strategy = strategy
    if iterations is not None:
        config.layout.iterations = iterations
    if seed is not None:
        config.layout.seed = seed

    if not as_json:
        click.echo(f"🔍 Analyzing {Path(directory).absolute()}")

    outcome = analyze_project(directory, config)
    if outcome.is_err():
        echo_error(outcome.error.message)
        sys.exit(1)

    result = outcome.unwrap()
    payload = result.to_dict()

    if output:
        Path(output).write_text(json.dumps(payload, indent=2))

    if as_json:
        click.echo(json.dumps(payload, indent=2))
        return

    if result.diagnostics.total_files == 0:
        echo_empty_tree_warning(directory)
    console.print(_summary_table(result))
    diagnostics = result.diagnostics
    if diagnostics.unreadable_entries:
        echo_warning(f"Skipped {len(diagnostics.unreadable_entries)} unreadable entries")
    if diagnostics.parse_failures:
        echo_warning(f"{diagnostics.parse_failures} files could not be parsed; their imports are missing")
    if output:
        echo_success(f"Wrote {output}")
    else:
        echo_success("Analysis complete")
