"""Click commands: offline analysis of snapshots, live collection, serving."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from podplacement import __version__
from podplacement.analysis.analyzer import DisplacementAnalyzer
from podplacement.errors import PodPlacementError
from podplacement.observability.logging import setup_logging
from podplacement.report import render_json, render_text


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="warning",
    show_default=True,
    help="Log level for structured logs written to stderr.",
)
@click.version_option(version=__version__, prog_name="podplacement")
def cli(log_level: str) -> None:
    """Reconstruct pod displacement chains per owning controller."""
    setup_logging(log_level, fmt="console", stream=click.get_text_stream("stderr"))


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--min-length", type=click.IntRange(min=1), default=1, show_default=True,
              help="Only show chains with at least this many displacements.")
@click.option("--output", "output_format", type=click.Choice(["text", "json"]), default="text", show_default=True)
def analyze(snapshot: Path, min_length: int, output_format: str) -> None:
    """Import a SNAPSHOT file, recompute and print displacement chains."""
    analyzer = DisplacementAnalyzer()
    try:
        analyzer.import_snapshot(snapshot.read_bytes())
    except PodPlacementError as exc:
        raise click.ClickException(str(exc)) from exc
    result = analyzer.recompute()
    if output_format == "json":
        click.echo(render_json(result, min_length))
    else:
        click.echo(render_text(result, min_length))


@cli.command()
@click.option("--duration", type=click.FloatRange(min=1.0), default=60.0, show_default=True,
              help="Seconds to watch pods before writing the snapshot.")
@click.option("--namespace", default="", help="Watch a single namespace (default: all).")
@click.option("--output", "output_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write the snapshot to this file instead of stdout.")
def collect(duration: float, namespace: str, output_path: Path | None) -> None:
    """Watch the cluster for a while and export the observed records as a snapshot."""
    from podplacement.app import collect as collect_records

    analyzer = asyncio.run(collect_records(duration, namespace=namespace))
    try:
        data = analyzer.export_snapshot()
    except PodPlacementError as exc:
        raise click.ClickException(str(exc)) from exc
    if output_path is None:
        click.echo(data.decode())
    else:
        output_path.write_bytes(data)
        click.echo(f"wrote {len(analyzer.store)} records to {output_path}", err=True)


@cli.command()
def serve() -> None:
    """Run the watcher, the periodic recompute loop and the REST API."""
    from podplacement.app import main

    asyncio.run(main())
