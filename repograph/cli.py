"""Command-line interface."""

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .builder import RepositoryAnalyzer
from .config import load_settings
from .errors import RepographError
from .exporters import FORMATS
from .log import configure_logging
from .mapper import write_text

console = Console()
err_console = Console(stderr=True)


def _fail(error: RepographError) -> None:
    err_console.print(f"[red]{escape(error.format())}[/red]", highlight=False)
    raise SystemExit(1)


@click.group()
@click.version_option(__version__, prog_name="repograph")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Only show errors.")
def cli(verbose: bool, quiet: bool):
    """Map a repository's files, their significance and their dependency graph."""
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    else:
        level = "WARNING"
    configure_logging(level)


@cli.command()
@click.argument("path", type=click.Path(path_type=Path), default=".")
@click.option("--max-files", type=int, default=None, help="Maximum number of files to analyze.")
@click.option("--exclude", "-e", multiple=True, help="Glob to exclude (repeatable).")
@click.option("--include", "-i", multiple=True, help="Glob files must match (repeatable).")
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None, help="Output directory.")
@click.option("--config", "config_file", type=click.Path(path_type=Path), default=None, help="Settings file.")
@click.option("--top", type=int, default=15, show_default=True, help="Rows in the top files table.")
def analyze(path, max_files, exclude, include, output, config_file, top):
    """Analyze PATH and write the repository map, graph and summary."""
    try:
        settings = load_settings(
            path,
            config_file=config_file,
            max_files=max_files,
            exclude_patterns=list(exclude) or None,
            include_patterns=list(include) or None,
        )
        analyzer = RepositoryAnalyzer(settings)
        with console.status("Analyzing repository..."):
            result = asyncio.run(analyzer.analyze(path))
        target = analyzer.write_output(result, output)
    except RepographError as e:
        _fail(e)

    table = Table(title="Most significant files")
    table.add_column("File", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Tags", style="dim")
    for f in result.scored_files[:top]:
        table.add_row(f.path, str(f.score), ", ".join(f.tags) or "-")
    console.print(table)

    stats = result.graph.statistics
    console.print(
        f"[bold]{stats.node_count}[/bold] files, [bold]{stats.edge_count}[/bold] edges, "
        f"{stats.cluster_count} clusters, {stats.cycle_count} cycles "
        f"(density {stats.density:.3f}, avg degree {stats.avg_degree:.2f})"
    )
    if result.walk.cancelled:
        console.print("[yellow]Walk was cancelled; results are partial.[/yellow]")
    console.print(f"Output written to [green]{target}[/green]")


@cli.command()
@click.argument("path", type=click.Path(path_type=Path), default=".")
@click.option("--format", "-f", "fmt", type=click.Choice(FORMATS), default="json", show_default=True)
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None, help="Write to a file.")
@click.option("--max-files", type=int, default=None, help="Maximum number of files to analyze.")
def graph(path, fmt, output, max_files):
    """Print or write the dependency graph of PATH."""
    try:
        settings = load_settings(path, max_files=max_files)
        result = asyncio.run(RepositoryAnalyzer(settings).analyze(path))
        text = result.graph.to_text(fmt)
        if output:
            write_text(output, text)
            console.print(f"Graph written to [green]{output}[/green]")
            return
    except RepographError as e:
        _fail(e)

    click.echo(text)


def main():
    cli()


if __name__ == "__main__":
    main()
