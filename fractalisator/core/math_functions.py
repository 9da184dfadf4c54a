"""
Core mathematical functions for fractal iteration.

This module provides the pixel to complex-plane mapping, the complex step
functions and the escape-time loop. Everything numeric is compiled with
Numba so the same functions serve the Python API and the parallel row
kernels.
"""

import numpy as np
from typing import Tuple, Union
import logging

from numba import njit

from .fractal_types import Field, FracArgs, FracPoint, IterationStyle, IteratorKind

logger = logging.getLogger(__name__)

# Smallest positive normal float64, keeps the inverse map away from 0/0
MIN_POSITIVE = float(np.finfo(np.float64).tiny)

_SQUARE = int(IteratorKind.SQUARE)
_CUBE = int(IteratorKind.CUBE)
_INVERSE = int(IteratorKind.INVERSE)
_BURNING_SHIP = int(IteratorKind.BURNING_SHIP)

_JULIA = int(IterationStyle.JULIA)
_MANDELBROT = int(IterationStyle.MANDELBROT)

ComplexLike = Union[complex, Tuple[float, float]]


@njit(cache=True)
def complex_coordinate(pixel_size, center_re, center_im, radius, i, j):
    """Affine map of pixel ``(i, j)`` onto the square viewport."""
    size = 2.0 * radius

    x_rel = i / pixel_size
    re = (center_re - radius) + size * x_rel

    y_rel = j / pixel_size
    im = (center_im - radius) + size * y_rel

    return re, im


def point_to_complex(field: Field, i: int, j: int) -> Tuple[float, float]:
    """
    Convert pixel indices to the complex number they represent in ``field``.

    Indices are expected in ``[0, pixel_size)``; anything else extrapolates
    along the same affine map.

    Args:
        field: Viewport description
        i: Column index
        j: Row index

    Returns:
        Tuple of (re, im)
    """
    return complex_coordinate(int(field.pixel_size), float(field.center_re),
                              float(field.center_im), float(field.radius), int(i), int(j))


@njit(cache=True)
def square_iterator(re, im, c_re, c_im):
    """z -> z^2 + c"""
    new_re = re * re - im * im + c_re
    new_im = 2.0 * re * im + c_im
    return new_re, new_im


@njit(cache=True)
def cube_iterator(re, im, c_re, c_im):
    """z -> z^3 + c"""
    new_re = re * re * re - 3.0 * re * im * im + c_re
    new_im = 3.0 * re * re * im - im * im * im + c_im
    return new_re, new_im


@njit(cache=True)
def inverse_iterator(re, im, c_re, c_im):
    """Square map applied to z / |z|^2."""
    size = max(re * re + im * im, MIN_POSITIVE)
    return square_iterator(re / size, im / size, c_re, c_im)


@njit(cache=True)
def burning_ship_iterator(re, im, c_re, c_im):
    """Burning Ship: z -> (|Re(z)| + i|Im(z)|)^2 + c"""
    return square_iterator(abs(re), abs(im), c_re, c_im)


@njit(cache=True)
def step_point(kind, re, im, c_re, c_im):
    """Apply the step function selected by ``kind`` once."""
    if kind == _CUBE:
        return cube_iterator(re, im, c_re, c_im)
    elif kind == _INVERSE:
        return inverse_iterator(re, im, c_re, c_im)
    elif kind == _BURNING_SHIP:
        return burning_ship_iterator(re, im, c_re, c_im)
    else:
        return square_iterator(re, im, c_re, c_im)


@njit(cache=True)
def escape_time(z_re, z_im, c_re, c_im, max_steps, iter_bound, kind):
    """
    Iterate ``z = f(z, c)`` from ``z`` until ``max_steps`` is reached or
    ``|z|^2`` is no longer below ``iter_bound``.

    Returns:
        Tuple of (steps, final_re, final_im)
    """
    step = 0
    re = z_re
    im = z_im

    while step < max_steps and (re * re + im * im) < iter_bound:
        re, im = step_point(kind, re, im, c_re, c_im)
        step += 1

    return step, re, im


def _as_pair(value: ComplexLike) -> Tuple[float, float]:
    if isinstance(value, complex):
        return float(value.real), float(value.imag)
    re, im = value
    return float(re), float(im)


def iterate_point(z0: ComplexLike, c: ComplexLike, max_steps: int, bound: float,
                  kind: IteratorKind = IteratorKind.SQUARE) -> FracPoint:
    """
    Escape-time evaluation of a single starting point.

    Args:
        z0: Starting point, complex or (re, im)
        c: Iteration constant, complex or (re, im)
        max_steps: Step bound
        bound: Escape threshold on |z|^2
        kind: Step function to iterate

    Returns:
        FracPoint with the number of steps taken and the final iterate
    """
    z_re, z_im = _as_pair(z0)
    c_re, c_im = _as_pair(c)
    n, re, im = escape_time(z_re, z_im, c_re, c_im, int(max_steps), float(bound), int(kind))
    return FracPoint(int(n), float(re), float(im))


def julia_iterate(z: ComplexLike, kind: IteratorKind, args: FracArgs) -> FracPoint:
    """Julia style: the pixel is the starting point, ``c`` comes from ``args``."""
    return iterate_point(z, (args.c_re, args.c_im), args.steps, args.iter_bound, kind)


def mandelbrot_iterate(z: ComplexLike, kind: IteratorKind, args: FracArgs) -> FracPoint:
    """Mandelbrot style: iteration starts at 0 and the pixel is ``c``."""
    return iterate_point((0.0, 0.0), z, args.steps, args.iter_bound, kind)


def iterate_pixel(args: FracArgs, i: int, j: int) -> FracPoint:
    """Evaluate pixel ``(i, j)`` of ``args`` without rendering the whole grid."""
    z = point_to_complex(args.field, i, j)
    if args.iteration_style == IterationStyle.MANDELBROT:
        return mandelbrot_iterate(z, args.iterator_kind, args)
    return julia_iterate(z, args.iterator_kind, args)
