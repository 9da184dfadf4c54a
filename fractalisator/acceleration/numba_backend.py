"""
Numba JIT row kernel for the parallel grid scheduler.

The kernel fills one row of the raw fractal buffers. It is compiled with
``nogil=True`` so that rows dispatched from a thread pool run concurrently.
"""

import numpy as np
import logging

import numba
from numba import njit

from ..core.fractal_types import FracArgs
from ..core.math_functions import complex_coordinate, escape_time, _JULIA

logger = logging.getLogger(__name__)


@njit(nogil=True, cache=True)
def compute_row(out_steps, out_re, out_im, row_num, pixel_size,
                center_re, center_im, radius, c_re, c_im,
                max_steps, iter_bound, style, kind):
    """
    Fill the output slices of row ``row_num``.

    Args:
        out_steps, out_re, out_im: Row slices of length ``pixel_size``
        row_num: Index of the row (imaginary axis)
        pixel_size, center_re, center_im, radius: Viewport
        c_re, c_im: Julia constant
        max_steps: Step bound
        iter_bound: Escape threshold on |z|^2
        style: Iteration style tag
        kind: Step function tag
    """
    for col_num in range(pixel_size):
        re, im = complex_coordinate(pixel_size, center_re, center_im, radius, col_num, row_num)

        if style == _JULIA:
            n, final_re, final_im = escape_time(re, im, c_re, c_im, max_steps, iter_bound, kind)
        else:
            n, final_re, final_im = escape_time(0.0, 0.0, re, im, max_steps, iter_bound, kind)

        out_steps[col_num] = n
        out_re[col_num] = final_re
        out_im[col_num] = final_im


class RowKernel:
    """Binds validated fractal arguments to the compiled row kernel."""

    def __init__(self, args: FracArgs):
        """
        Initialize the kernel binding.

        Args:
            args: Fractal arguments; style and iterator are resolved here once
        """
        field = args.field
        self.pixel_size = int(field.pixel_size)
        self._params = (
            self.pixel_size,
            float(field.center_re), float(field.center_im), float(field.radius),
            float(args.c_re), float(args.c_im),
            int(args.steps), float(args.iter_bound),
            int(args.iteration_style), int(args.iterator_kind),
        )

    def __call__(self, steps: np.ndarray, final_re: np.ndarray, final_im: np.ndarray, row_num: int) -> int:
        """Compute row ``row_num`` into its slice of the flat output buffers."""
        start = row_num * self.pixel_size
        end = start + self.pixel_size
        compute_row(steps[start:end], final_re[start:end], final_im[start:end], row_num, *self._params)
        return row_num


def numba_version() -> str:
    """Version of the JIT compiler backing the kernels."""
    return numba.__version__
