"""CLI interface for ProjectMap.

Builds a project's resource map and prints JSON reports on stdout.
Diagnostics go to stderr.
"""

import json
import sys

import click
from pydantic import ValidationError

from projectmap import __version__
from projectmap.config import ScanConfig


def _load_config(max_concurrency: int | None, require_resolution: str | None) -> ScanConfig:
    try:
        return ScanConfig.from_env(
            max_concurrency=max_concurrency,
            require_resolution=require_resolution,
        )
    except ValidationError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)


def _build(repo_path: str, config: ScanConfig):
    from projectmap.analyzers.project_map import build_project_map

    try:
        return build_project_map(repo_path, config=config)
    except OSError as e:
        click.echo(f"Build failed: {e}", err=True)
        sys.exit(1)


def _scan_options(func):
    func = click.option(
        "--require-resolution",
        type=click.Choice(["project", "containing"]),
        default=None,
        help="Resolve require() against the project root or the requiring file's directory",
    )(func)
    func = click.option(
        "--max-concurrency",
        type=click.IntRange(min=1),
        default=None,
        help="Maximum file reads in flight (default: 32)",
    )(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="projectmap")
def cli() -> None:
    """ProjectMap - map the style and script dependencies of a web project."""
    pass


@cli.command()
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@_scan_options
@click.option("--summary", is_flag=True, help="Print counts only, not the full map")
def build(
    repo_path: str,
    max_concurrency: int | None,
    require_resolution: str | None,
    summary: bool,
) -> None:
    """Build the project map and print it as JSON.

    REPO_PATH: Project root containing the markup documents.
    """
    from projectmap.models.graph import export_graph

    config = _load_config(max_concurrency, require_resolution)
    graph = _build(repo_path, config)
    export = export_graph(graph, version=__version__)

    if summary:
        click.echo(export.metadata.model_dump_json(indent=2))
    else:
        click.echo(export.model_dump_json(indent=2, by_alias=True))


@cli.command()
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.argument("file_path")
@click.option("--depth", type=click.IntRange(min=1), default=None, help="Traversal depth (default: all)")
@click.option(
    "--kind",
    type=click.Choice(["markup", "style", "script"]),
    default=None,
    help="Resource kind, when the path is mapped as more than one",
)
@_scan_options
def impact(
    repo_path: str,
    file_path: str,
    depth: int | None,
    kind: str | None,
    max_concurrency: int | None,
    require_resolution: str | None,
) -> None:
    """Show what depends on a file and what it depends on.

    REPO_PATH: Project root.
    FILE_PATH: Absolute, root-relative, or unique suffix path of the file.
    """
    from projectmap.analyzers.impact import AmbiguousMatchError, NoMatchError, get_impact

    config = _load_config(max_concurrency, require_resolution)
    graph = _build(repo_path, config)

    try:
        report = get_impact(graph, file_path, depth=depth, kind=kind)
    except AmbiguousMatchError as e:
        click.echo(f"{e}", err=True)
        for candidate in e.candidates:
            click.echo(f"  {candidate['node_id']}", err=True)
        sys.exit(1)
    except NoMatchError as e:
        click.echo(f"{e}", err=True)
        for suggestion in e.suggestions:
            click.echo(f"  did you mean {suggestion['file']}?", err=True)
        sys.exit(1)

    click.echo(report.model_dump_json(indent=2))


@cli.command()
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.argument("source")
@click.argument("target")
@_scan_options
def path(
    repo_path: str,
    source: str,
    target: str,
    max_concurrency: int | None,
    require_resolution: str | None,
) -> None:
    """Show the shortest reference chain from SOURCE to TARGET.

    REPO_PATH: Project root.
    SOURCE: Referencing file, usually a markup document.
    TARGET: Style sheet or script it ends up loading.
    """
    from projectmap.analyzers.impact import AmbiguousMatchError, NoMatchError, find_reference_chain

    config = _load_config(max_concurrency, require_resolution)
    graph = _build(repo_path, config)

    try:
        chain = find_reference_chain(graph, source, target)
    except (AmbiguousMatchError, NoMatchError) as e:
        click.echo(f"{e}", err=True)
        sys.exit(1)

    if chain is None:
        click.echo(f"{source} does not reference {target}", err=True)
        sys.exit(1)

    click.echo(json.dumps(chain, indent=2))


@cli.command()
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@_scan_options
def stale(repo_path: str, max_concurrency: int | None, require_resolution: str | None) -> None:
    """List references to files that could not be read.

    REPO_PATH: Project root.
    """
    from projectmap.analyzers.impact import find_stale_references

    config = _load_config(max_concurrency, require_resolution)
    graph = _build(repo_path, config)
    references = find_stale_references(graph)

    click.echo(json.dumps([r.model_dump() for r in references], indent=2))
    if references:
        click.echo(f"{len(references)} stale references", err=True)


@cli.command()
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@_scan_options
@click.option("--no-self-loops", is_flag=True, help="Ignore files that reference themselves")
def cycles(
    repo_path: str,
    max_concurrency: int | None,
    require_resolution: str | None,
    no_self_loops: bool,
) -> None:
    """List circular @import and require chains.

    REPO_PATH: Project root.
    """
    from projectmap.analyzers.impact import find_reference_cycles

    config = _load_config(max_concurrency, require_resolution)
    graph = _build(repo_path, config)
    found = find_reference_cycles(graph, include_self_loops=not no_self_loops)

    click.echo(json.dumps([{"length": len(c), "cycle": c} for c in found], indent=2))


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
