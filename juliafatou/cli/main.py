"""
Command-line interface for Julia/Fatou rendering.

Renders a single image of two blended Julia sets; every parameter of the
render is available as an option.
"""

import click
import sys
from pathlib import Path
from typing import Optional, Tuple, Callable, TypeVar
import logging
import time

import numpy as np

from .. import __version__
from ..api import JuliaFatouRenderer
from ..core.fractal_types import ViewportConfig, JULIA_PRESETS
from ..rendering.coloring import ColorStyle, build_gradient
from ..rendering.image_output import ImageExporter
from ..exceptions import ConfigError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def parse_pair(s: str, separator: str, convert: Callable[[str], T]) -> Optional[Tuple[T, T]]:
    """
    Parse two values separated by ``separator``.

    Returns None if the separator is missing or a value does not convert.
    """
    index = s.find(separator)
    if index < 0:
        return None
    try:
        return convert(s[:index]), convert(s[index + 1:])
    except ValueError:
        return None


def parse_complex(s: str) -> Optional[complex]:
    """Parse a complex number written as 're,im' or a Julia preset name."""
    preset = JULIA_PRESETS.get(s.strip().lower())
    if preset is not None:
        return preset

    pair = parse_pair(s, ',', float)
    if pair is None:
        return None
    return complex(*pair)


def _dimensions_callback(ctx, param, value):
    pair = parse_pair(value, 'x', int)
    if pair is None or pair[0] <= 0 or pair[1] <= 0:
        raise click.BadParameter("use WIDTHxHEIGHT with positive integers, e.g. 1200x1200")
    return pair


def _offset_callback(ctx, param, value):
    pair = parse_pair(value, ':', float)
    if pair is None:
        raise click.BadParameter("use X:Y, e.g. 0.0:0.0")
    return pair


def _complex_callback(ctx, param, value):
    c = parse_complex(value)
    if c is None:
        presets = ', '.join(JULIA_PRESETS.keys())
        raise click.BadParameter(f"use RE,IM (e.g. -0.4,0.6) or a preset ({presets})")
    return c


def _setup_logging(verbose: bool, quiet: bool) -> None:
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')


@click.command(context_settings={'help_option_names': ['--help']})
@click.option('--dimensions', '-d', default='1200x1200', metavar='WxH',
              callback=_dimensions_callback, help='Image dimensions')
@click.option('--output-file', '-o', default='output.png', type=click.Path(dir_okay=False),
              metavar='FILE', help='Output file')
@click.option('--config', type=click.Path(dir_okay=False), metavar='FILE',
              help='Color file for the "config" color style (default: colors.csv)')
@click.option('--offset', '-s', default='0.0:0.0', metavar='X:Y',
              callback=_offset_callback, help='View offset')
@click.option('--scale', '-x', default=1.5, type=float, show_default=True,
              help='Half-span of the shorter image side')
@click.option('--blur', default=1.0, type=float, show_default=True, help='Blur (sigma)')
@click.option('--power', '-w', default=2, type=click.IntRange(1, 255), show_default=True,
              help="The 'x' in the equation z^x + c")
@click.option('--factor', '-f', default=-0.25, type=float, show_default=True,
              help='Multiplication factor of the secondary Julia set')
@click.option('--color-style', '-c', default=ColorStyle.GREYSCALE.value,
              type=click.Choice([style.value for style in ColorStyle], case_sensitive=False),
              show_default=True, help='Color gradient')
@click.option('--diverge', '-g', default=0.01, type=float, show_default=True,
              help='Difference between the two rendered Julia sets')
@click.option('--complex', '-p', 'complex_param', default='-0.4,0.6', metavar='RE,IM',
              callback=_complex_callback, help="The 'c' in the equation z^x + c, or a preset name")
@click.option('--intensity', '-i', default=3.0, type=float, show_default=True,
              help='Overall intensity multiplication factor')
@click.option('--inverse', is_flag=True, help='Invert color gradient')
@click.option('--threads', type=click.IntRange(min=0),
              help='Number of threads (default: available parallelism)')
@click.option('--take-time', is_flag=True, help='Measure render time')
@click.option('--seed', type=int, help='Seed for the "random" color style')
@click.option('--list-presets', is_flag=True, help='List Julia constant presets and exit')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.version_option(__version__, prog_name='juliafatou')
def main(dimensions, output_file, config, offset, scale, blur, power, factor, color_style,
         diverge, complex_param, intensity, inverse, threads, take_time, seed,
         list_presets, verbose, quiet):
    """
    Render Julia sets blazingly fast.

    Two Julia sets of z^x + c, the second one with its constant shifted by
    the diverge value, are blended into one image.
    """
    _setup_logging(verbose, quiet)

    if list_presets:
        for name, c in JULIA_PRESETS.items():
            click.echo(f"{name:12} {c.real},{c.imag}")
        return

    try:
        viewport = ViewportConfig(
            width=dimensions[0],
            height=dimensions[1],
            offset=offset,
            scale=scale,
            power=power,
            complex_param=complex_param,
            diverge=diverge,
            factor=factor,
            intensity=intensity,
            inverse=inverse,
            blur=blur,
            threads=threads,
        )
        renderer = JuliaFatouRenderer(viewport)

        output_path = Path(output_file)
        ImageExporter().check_format(output_path)

        gradient = build_gradient(color_style, rng=np.random.default_rng(seed), config_path=config)

        start_time = time.time()
        renderer.render(gradient, output_path=output_path)
        render_time = time.time() - start_time

        if not quiet:
            click.echo(f"Used {renderer.last_thread_count} threads.", err=True)

        if take_time:
            click.echo(f"time elapsed: {render_time:.3f}s", err=True)

    except (ConfigError, ValueError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
