"""Click CLI with scan, graph, dirs, and serve subcommands."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import click

from filedep import __version__
from filedep.config import load_config
from filedep.engine import DependencyGraphEngine
from filedep.graph_data import build_graph_data, find_cycles

_ROOTS = click.argument(
    "roots",
    nargs=-1,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)


def _make_engine(roots: tuple[Path, ...], config_path: Path | None, extensions: tuple[str, ...]) -> DependencyGraphEngine:
    roots = roots or (Path("."),)
    config = load_config(config_path, workspace=roots[0])
    engine = DependencyGraphEngine(list(roots), config)
    if extensions:
        engine.set_target_extensions(list(extensions))
    return engine


def _rel(path: str, root: str) -> str:
    try:
        return os.path.relpath(path, root)
    except ValueError:
        return path


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", count=True, help="Log more (-v info, -vv debug)")
def cli(verbose: int):
    """filedep: Map the file-level dependencies of a workspace."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@_ROOTS
@click.option("--ext", "-e", "extensions", multiple=True, help="Target extension (repeatable)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="Settings file")
@click.option("--json", "as_json", is_flag=True, help="Print the mapping as JSON")
@click.option("--reverse", is_flag=True, help="Show dependents instead of dependencies")
def scan(roots, extensions, config_path, as_json: bool, reverse: bool):
    """Scan ROOTS and list each file with its resolved dependencies."""
    engine = _make_engine(roots, config_path, extensions)
    engine.build_graph()
    mapping = engine.get_dependents() if reverse else engine.get_dependencies()

    if as_json:
        click.echo(json.dumps(mapping, indent=2, sort_keys=True))
        return

    if not mapping:
        click.echo("No matching files found.")
        return

    base = engine.roots[0]
    arrow = "<-" if reverse else "->"
    for path in sorted(mapping):
        click.echo(click.style(_rel(path, base), fg="cyan"))
        for target in mapping[path]:
            click.echo(f"  {arrow} {_rel(target, base)}")

    edges = sum(len(t) for t in mapping.values())
    click.echo(f"\n{len(mapping)} file(s), {edges} dependency edge(s)")


@cli.command()
@_ROOTS
@click.option("--ext", "-e", "extensions", multiple=True, help="Target extension (repeatable)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="Settings file")
@click.option("-o", "--output", "output", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON here")
@click.option("--cycles", is_flag=True, help="Include dependency cycles")
def graph(roots, extensions, config_path, output: Path | None, cycles: bool):
    """Export the node/link graph of ROOTS as JSON."""
    engine = _make_engine(roots, config_path, extensions)
    engine.build_graph()
    mapping = engine.get_dependencies()

    payload = build_graph_data(mapping, engine.roots[0]).to_dict()
    payload["directories"] = [d.to_dict() for d in engine.get_directory_states()]
    payload["extensions"] = [e.to_dict() for e in engine.get_target_extensions()]
    if cycles:
        payload["cycles"] = find_cycles(mapping)

    text = json.dumps(payload, indent=2)
    if output:
        output.write_text(text, encoding="utf-8")
        click.echo(f"Wrote {len(payload['nodes'])} nodes and {len(payload['links'])} links to {output}")
    else:
        click.echo(text)


@cli.command()
@_ROOTS
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="Settings file")
def dirs(roots, config_path):
    """List the directories of ROOTS that hold scanned files."""
    engine = _make_engine(roots, config_path, ())
    engine.build_graph()
    for directory in engine.get_unique_directories():
        click.echo(directory or ".")


@cli.command()
@_ROOTS
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="Settings file")
@click.option("--port", "-p", default=8421, help="Port number")
@click.option("--host", default="127.0.0.1", help="Host address")
def serve(roots, config_path, port: int, host: str):
    """Serve the dependency API for ROOTS."""
    try:
        import uvicorn
    except ImportError:
        raise click.ClickException(
            "uvicorn is required for the API server. "
            "Install with: pip install 'filedep[web]'"
        )

    from filedep.web import create_app

    engine = _make_engine(roots, config_path, ())
    click.echo(f"Starting filedep API at http://{host}:{port}/api")
    uvicorn.run(create_app(engine), host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()
