"""
Command-line interface for fractal generation.

This module provides a CLI for rendering fractals to image files, listing
presets, writing configuration files and timing the evaluation engine.
"""

import click
import sys
import json
from dataclasses import replace
from pathlib import Path
from typing import Tuple
import logging
import time

from .. import __version__
from ..api import FractalRenderer, default_render_config
from ..core.fractal_types import Field, IterationStyle, IteratorKind, JULIA_PRESETS
from ..acceleration.numba_backend import numba_version
from ..acceleration.parallel import ParallelGridScheduler, get_optimal_thread_count
from ..rendering.coloring import GRADIENT_PRESETS, get_gradient
from ..io.config import ConfigManager, load_config_from_args

logger = logging.getLogger(__name__)

STYLE_CHOICES = [s.name.lower() for s in IterationStyle]
ITERATOR_CHOICES = [k.name.lower() for k in IteratorKind]


def parse_pair(value: str, name: str) -> Tuple[float, float]:
    """Parse ``"re,im"`` into two floats."""
    try:
        parts = [float(x.strip()) for x in value.split(',')]
    except ValueError:
        raise ValueError(f"Invalid {name} '{value}'. Use 'real,imag'")
    if len(parts) != 2:
        raise ValueError(f"Invalid {name} '{value}'. Use 'real,imag'")
    return parts[0], parts[1]


def parse_julia_constant(value: str) -> Tuple[float, float]:
    """Julia constant from a preset name or ``"re,im"``."""
    if value.lower() in JULIA_PRESETS:
        return JULIA_PRESETS[value.lower()]
    return parse_pair(value, 'Julia constant')


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--config', type=click.Path(exists=True), help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, config, verbose, quiet):
    """
    Fractalisator - escape-time fractal renderer.

    Renders Julia and Mandelbrot style fractals of several step functions and
    colors them with multi-stop gradients.
    """
    # Setup logging
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"Fractalisator v{__version__}")
        click.echo(f"Python: {sys.version}")
        click.echo(f"Numba: {numba_version()}")
        click.echo(f"Worker threads: {get_optimal_thread_count()}")

        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['verbose'] = verbose


@main.command()
@click.argument('output', type=click.Path())
@click.option('--style', type=click.Choice(STYLE_CHOICES), help='Iteration style')
@click.option('--iterator', type=click.Choice(ITERATOR_CHOICES), help='Step function')
@click.option('--size', type=int, help='Compute resolution (pixels per side)')
@click.option('--center', type=str, help='Viewport center: "real,imag"')
@click.option('--radius', type=float, help='Viewport half side length')
@click.option('--julia-c', type=str, help='Julia constant "real,imag" or preset name')
@click.option('--steps', type=int, help='Maximum iterations')
@click.option('--bound', type=float, help='Escape threshold on |z|^2')
@click.option('--gradient', 'gradient_name', type=str, help='Gradient preset name')
@click.option('--smooth/--no-smooth', default=None, help='Smooth iteration counts')
@click.option('--display-size', type=int, help='Output resolution (pixels per side)')
@click.option('--threads', type=int, help='Worker threads for row computation')
@click.option('--quality', type=int, default=95, show_default=True, help='JPEG quality')
@click.pass_context
def render(ctx, output, style, iterator, size, center, radius, julia_c, steps, bound,
           gradient_name, smooth, display_size, threads, quality):
    """
    Render a fractal image.

    OUTPUT: Output image file path (.png, .tiff, .jpg)
    """
    try:
        config = load_config_from_args(ctx.obj.get('config_file'))
        args = config.fractal
        field = args.field

        # Viewport overrides
        field_overrides = {}
        if size is not None:
            field_overrides['pixel_size'] = size
        if center is not None:
            field_overrides['center_re'], field_overrides['center_im'] = parse_pair(center, 'center')
        if radius is not None:
            field_overrides['radius'] = radius
        if field_overrides:
            field = replace(field, **field_overrides)

        # Fractal overrides
        args_overrides = {'field': field}
        if style is not None:
            args_overrides['iteration_style'] = style
        if iterator is not None:
            args_overrides['iterator_kind'] = iterator
        if julia_c is not None:
            args_overrides['c_re'], args_overrides['c_im'] = parse_julia_constant(julia_c)
        if steps is not None:
            args_overrides['steps'] = steps
        if bound is not None:
            args_overrides['iter_bound'] = bound
        config.fractal = replace(args, **args_overrides)

        # Coloring overrides
        if gradient_name is not None:
            config.gradient = get_gradient(gradient_name)
        if smooth is not None:
            config.gradient = config.gradient.with_smooth(smooth)

        if display_size is not None:
            config.display_size = display_size
        if threads is not None:
            config.num_threads = threads

        renderer = FractalRenderer(config)

        click.echo(f"Rendering {config.fractal.iteration_style.name.lower()} fractal...")
        start_time = time.time()

        path = renderer.save(Path(output), quality)

        render_time = time.time() - start_time
        click.echo(f"Render complete: {render_time:.2f}s")
        click.echo(f"Saved: {path}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        if ctx.obj.get('verbose'):
            import traceback
            traceback.print_exc()
        sys.exit(1)


@main.command()
@click.option('--json', 'as_json', is_flag=True, help='Print presets as JSON')
def presets(as_json):
    """List gradient and Julia constant presets."""
    if as_json:
        data = {
            'gradients': {name: g.to_dict() for name, g in GRADIENT_PRESETS.items()},
            'julia': {name: list(c) for name, c in JULIA_PRESETS.items()},
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo("Gradients:")
    for name, gradient in GRADIENT_PRESETS.items():
        click.echo(f"  {name:<12} {len(gradient.peaks)} peaks")

    click.echo("Julia constants:")
    for name, (c_re, c_im) in JULIA_PRESETS.items():
        click.echo(f"  {name:<12} {c_re:+.6f} {c_im:+.6f}i")


@main.command('init-config')
@click.argument('path', type=click.Path())
@click.option('--force', is_flag=True, help='Overwrite an existing file')
@click.pass_context
def init_config(ctx, path, force):
    """
    Write a configuration file.

    PATH: Destination JSON file. Starts from --config when given, defaults otherwise.
    """
    try:
        target = Path(path)
        if target.exists() and not force:
            click.echo(f"Error: {target} exists (use --force to overwrite)", err=True)
            sys.exit(1)

        config = load_config_from_args(ctx.obj.get('config_file'))
        ConfigManager().save_render_config(config, target)
        click.echo(f"Saved: {target}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.option('--size', type=int, default=500, show_default=True, help='Compute resolution')
@click.option('--steps', type=int, default=256, show_default=True, help='Maximum iterations')
@click.option('--threads', type=int, help='Worker threads')
def benchmark(size, steps, threads):
    """Time the evaluation engine on the default Mandelbrot view."""
    args = replace(default_render_config().fractal,
                   field=Field(pixel_size=size, center_re=-0.5, center_im=0.0, radius=1.5),
                   steps=steps,
                   iteration_style=IterationStyle.MANDELBROT)

    scheduler = ParallelGridScheduler(threads)

    # First call compiles the kernels
    scheduler.compute(replace(args, field=replace(args.field, pixel_size=8)))

    results = scheduler.benchmark(args)
    click.echo(f"Resolution: {results['resolution']}")
    click.echo(f"Threads: {results['num_threads']}")
    click.echo(f"Time: {results['time']:.3f}s")
    click.echo(f"Pixels/second: {results['pixels_per_second']:,.0f}")


if __name__ == '__main__':
    main()
