"""RoadGraph CLI — command-line interface for road-network analysis.

Usage::

    roadgraph analyze area.geojson -o network.geojson --clip
    roadgraph image area.geojson --sensitivity 0.8 --seed 7
    roadgraph stats network.geojson
    roadgraph serve --port 8000
    roadgraph --version
"""

from __future__ import annotations

import json
import logging
import sys

import click

from roadgraph.core.advisor import classify_error
from roadgraph.core.config import DEFAULT_CONFIG
from roadgraph.core.exceptions import RoadGraphError


def _fail(exc: Exception) -> None:
    advice = classify_error(exc)
    click.secho(f"❌ {advice.title}: {exc}", fg="red")
    if advice.hint and advice.hint != str(exc):
        click.secho(f"   {advice.hint}", fg="yellow")
    sys.exit(1)


def _report(result, output: str | None) -> None:
    from roadgraph.api import save_result

    click.echo()
    click.echo(result.summary())
    if output:
        save_result(result, output)
        click.echo(f"\n💾 Saved to {output}")


@click.group(invoke_without_command=True)
@click.version_option(package_name="roadgraph")
@click.option("-v", "--verbose", is_flag=True, help="Log pipeline progress to stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """RoadGraph — road networks and intersections for a GeoJSON region."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("region", type=click.Path(exists=True))
@click.option("-o", "--output", type=click.Path(), help="Save the network to this file.")
@click.option("--clip", is_flag=True, help="Keep only features touching the region polygons.")
@click.option("--raw", is_flag=True, help="Skip intersection detection.")
def analyze(region: str, output: str | None, clip: bool, raw: bool) -> None:
    """Fetch roads for REGION from OpenStreetMap and find intersections."""
    from roadgraph.api import analyze as _analyze

    click.echo(f"🛰️  Fetching roads for {region}...")

    try:
        result = _analyze(region, clip=clip, mode="raw" if raw else "intersections")
        _report(result, output)
    except (RoadGraphError, OSError, ValueError) as exc:
        _fail(exc)


@cli.command()
@click.argument("region", type=click.Path(exists=True))
@click.option("-o", "--output", type=click.Path(), help="Save the network to this file.")
@click.option("--clip", is_flag=True, help="Keep only features touching the region polygons.")
@click.option("--sensitivity", type=click.FloatRange(0.1, 1.0), default=0.7, show_default=True)
@click.option("--min-road-width", type=int, default=3, show_default=True)
@click.option("--no-noise-reduction", is_flag=True, help="Skip the Gaussian blur.")
@click.option(
    "--edge-detection",
    type=click.Choice(["sobel", "canny", "laplacian"], case_sensitive=False),
    default="canny",
    show_default=True,
)
@click.option("--image", "image_path", type=click.Path(exists=True),
              help="Analyse this image instead of a synthetic scene.")
@click.option("--seed", type=int, help="Seed for the synthetic scene.")
def image(
    region: str,
    output: str | None,
    clip: bool,
    sensitivity: float,
    min_road_width: int,
    no_noise_reduction: bool,
    edge_detection: str,
    image_path: str | None,
    seed: int | None,
) -> None:
    """Extract roads for REGION from imagery."""
    from roadgraph.api import analyze_image
    from roadgraph.core.models import ImageAnalysisOptions
    from roadgraph.raster.source import FileImageSource, SyntheticImageSource

    click.echo(f"🖼️  Extracting roads from imagery for {region}...")

    try:
        options = ImageAnalysisOptions(
            sensitivity=sensitivity,
            min_road_width=min_road_width,
            noise_reduction=not no_noise_reduction,
            edge_detection=edge_detection,
        )
        if image_path:
            source = FileImageSource(image_path)
        else:
            raster = DEFAULT_CONFIG.raster
            source = SyntheticImageSource(raster.image_width, raster.image_height, seed=seed)
        result = analyze_image(region, options=options, clip=clip, image_source=source)
        _report(result, output)
    except (RoadGraphError, OSError, ValueError) as exc:
        _fail(exc)


@cli.command()
@click.argument("network", type=click.Path(exists=True))
def stats(network: str) -> None:
    """Count features, roads and intersections in a saved NETWORK."""
    from roadgraph.editing.session import network_stats

    try:
        with open(network, encoding="utf-8") as f:
            collection = json.load(f)
    except (OSError, ValueError) as exc:
        _fail(exc)
        return

    if not isinstance(collection, dict):
        _fail(RoadGraphError("Network file must contain a GeoJSON object"))
        return

    counts = network_stats(collection)
    click.echo(f"Features:       {counts['total']}")
    click.echo(f"Roads:          {counts['roads']}")
    click.echo(f"Intersections:  {counts['intersections']}")


@cli.command()
@click.option("--host", default=DEFAULT_CONFIG.server.host, show_default=True)
@click.option("--port", type=int, default=DEFAULT_CONFIG.server.port, show_default=True)
def serve(host: str, port: int) -> None:
    """Run the HTTP API server."""
    from roadgraph.web.server import run

    click.echo(f"🚀 Serving RoadGraph on http://{host}:{port}")
    run(host=host, port=port)


if __name__ == "__main__":
    cli()
