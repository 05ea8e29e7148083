"""Click CLI commands for SlopeView."""

import json
import logging

import click

from .builder import TerrainBuilder
from .config import TerrainConfig
from .constants import (DEFAULT_EPSILON, DEFAULT_HORIZONTAL_SCALE,
                        DEFAULT_TARGET_GRID_SIZE, DEFAULT_VERTICAL_SCALE,
                        SURVEY_GRID_SIZE, SURVEY_STEP_DEG)
from .errors import TerrainError

logger = logging.getLogger(__name__)


def _mesh_options(f):
    f = click.option('--epsilon', default=DEFAULT_EPSILON, type=float,
                     help='Minimum elevation range before flattening')(f)
    f = click.option('--vertical-scale', '-v', default=DEFAULT_VERTICAL_SCALE, type=float,
                     help='World units of height per normalized unit')(f)
    f = click.option('--horizontal-scale', '-h', default=DEFAULT_HORIZONTAL_SCALE, type=float,
                     help='World units per grid cell')(f)
    f = click.option('--target-size', '-t', default=DEFAULT_TARGET_GRID_SIZE, type=int,
                     help='Resample target grid size (N x N)')(f)
    return f


def _make_config(target_size, horizontal_scale, vertical_scale, epsilon) -> TerrainConfig:
    try:
        return TerrainConfig(target_grid_size=target_size,
                             horizontal_scale=horizontal_scale,
                             vertical_scale=vertical_scale,
                             epsilon=epsilon)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _load_grid(grid_file: str):
    """Read a 2-D elevation list, bare or under an ``elevation`` key."""
    try:
        with open(grid_file) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{grid_file} is not valid JSON: {e}")
    if isinstance(data, dict):
        if 'elevation' not in data:
            raise click.ClickException(f"{grid_file} has no 'elevation' key")
        return data['elevation']
    return data


def _progress(pct, msg):
    click.echo(f"[{pct:3.0f}%] {msg}")


def _report(builder: TerrainBuilder, output_path: str):
    mesh = builder.surface.mesh
    click.echo(f"Terrain: {mesh.rows}x{mesh.cols} grid, {mesh.vertex_count} vertices, "
               f"{mesh.triangle_count} triangles")
    click.echo(f"Height range: {mesh.height_range.min:.1f} to {mesh.height_range.max:.1f}"
               f"{' (clamped)' if mesh.height_range.clamped else ''}")
    click.echo(f"GLB: {output_path}")


@click.group()
def cli():
    """SlopeView CLI for turning elevation surveys into 3D terrain."""
    pass


@cli.command()
@click.argument('grid_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', default='terrain.glb', help='Output GLB file path')
@_mesh_options
def build(grid_file: str, output: str, target_size: int, horizontal_scale: float,
          vertical_scale: float, epsilon: float):
    """Build terrain from a JSON file holding a 2-D list of elevations."""
    config = _make_config(target_size, horizontal_scale, vertical_scale, epsilon)
    samples = _load_grid(grid_file)

    try:
        with TerrainBuilder(config=config) as builder:
            builder.refresh_from_samples(samples, progress_callback=_progress)
            path = builder.export_glb(output)
            _report(builder, path)
    except TerrainError as e:
        logger.error(f"Terrain unavailable: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.argument('lat', type=float)
@click.argument('lon', type=float)
@click.option('--output', '-o', default='terrain.glb', help='Output GLB file path')
@click.option('--grid-size', '-g', default=SURVEY_GRID_SIZE, type=int,
              help='Survey samples per side')
@click.option('--step', default=SURVEY_STEP_DEG, type=float,
              help='Survey spacing in degrees of latitude')
@_mesh_options
def fetch(lat: float, lon: float, output: str, grid_size: int, step: float,
          target_size: int, horizontal_scale: float, vertical_scale: float,
          epsilon: float):
    """Fetch an elevation survey around LAT LON and build terrain."""
    config = _make_config(target_size, horizontal_scale, vertical_scale, epsilon)
    try:
        with TerrainBuilder(config=config) as builder:
            builder.refresh_from_location(lat, lon, grid_size=grid_size,
                                          step_deg=step, progress_callback=_progress)
            path = builder.export_glb(output)
            _report(builder, path)
    except TerrainError as e:
        logger.error(f"Terrain unavailable: {e}")
        raise click.ClickException(str(e))


if __name__ == '__main__':
    cli()
