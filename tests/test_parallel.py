"""
Tests for the row-parallel evaluation engine.
"""

import numpy as np
import pytest

from fractalisator.acceleration import parallel
from fractalisator.acceleration.parallel import (
    ParallelGridScheduler,
    allocate_raw_buffers,
    compute_fractal,
)
from fractalisator.core.fractal_types import (
    Field,
    FracArgs,
    FracPoint,
    IterationStyle,
    IteratorKind,
    RawFrac,
)
from fractalisator.core.math_functions import iterate_pixel
from fractalisator.rendering.coloring import color_fractal, default_gradient


def test_allocate_raw_buffers():
    steps, final_re, final_im = allocate_raw_buffers(5)
    assert steps.shape == final_re.shape == final_im.shape == (25,)
    assert steps.dtype == np.int64
    assert final_re.dtype == np.float64


def test_output_length(julia_args):
    raw = compute_fractal(julia_args)
    assert len(raw) == 16 * 16
    assert raw.shape == (16, 16)


def test_deterministic(julia_args):
    assert compute_fractal(julia_args) == compute_fractal(julia_args)


def test_independent_of_thread_count(julia_args):
    assert compute_fractal(julia_args, num_threads=1) == compute_fractal(julia_args, num_threads=7)


@pytest.mark.parametrize("style", list(IterationStyle))
@pytest.mark.parametrize("kind", list(IteratorKind))
def test_matches_per_pixel_evaluation(style, kind):
    args = FracArgs(field=Field(pixel_size=6, center_re=-0.3, center_im=0.1, radius=1.7),
                    c_re=-0.4, c_im=0.6, steps=40, iter_bound=4.0,
                    iteration_style=style, iterator_kind=kind)
    raw = compute_fractal(args, num_threads=3)

    for j in range(6):
        for i in range(6):
            expected = iterate_pixel(args, i, j)
            actual = raw.point(i, j)
            assert actual.steps == expected.steps
            assert actual.final_re == pytest.approx(expected.final_re, rel=1e-12, nan_ok=True)
            assert actual.final_im == pytest.approx(expected.final_im, rel=1e-12, nan_ok=True)


def test_steps_within_range(mandelbrot_args):
    raw = compute_fractal(mandelbrot_args)
    assert raw.steps.min() >= 0
    assert raw.steps.max() <= mandelbrot_args.steps


def test_corner_pixel_scenario():
    args = FracArgs(field=Field(pixel_size=4, center_re=0.0, center_im=0.0, radius=2.0),
                    steps=50, iter_bound=4.0,
                    iteration_style=IterationStyle.MANDELBROT,
                    iterator_kind=IteratorKind.SQUARE)
    raw = compute_fractal(args)

    # c = -2 - 2i escapes after one step
    assert raw[0] == FracPoint(1, -2.0, -2.0)
    # c = 0 stays bounded
    assert raw.point(2, 2).steps == 50

    pixels = color_fractal(raw, args.steps, default_gradient())
    start = np.array(default_gradient().start_color)
    assert np.all(np.abs(pixels[:4].astype(int) - start) <= 3)


def test_julia_uses_constant(small_field):
    # z -> z^2 with c = 0: the unit disc never escapes, its outside does
    args = FracArgs(field=small_field, c_re=0.0, c_im=0.0, steps=30, iter_bound=4.0)
    raw = compute_fractal(args)
    assert raw.point(8, 8).steps == 30
    assert raw.point(0, 0).steps == 0


@pytest.mark.parametrize("changes", [
    {'steps': 0},
    {'iter_bound': 0.0},
    {'iter_bound': float('inf')},
    {'c_re': float('nan')},
    {'field': Field(pixel_size=0)},
    {'field': Field(pixel_size=8, radius=-1.0)},
])
def test_invalid_arguments_rejected(changes):
    args = FracArgs(**{"field": Field(pixel_size=8), **changes})
    with pytest.raises(ValueError):
        compute_fractal(args)


def test_failing_row_aborts_render(monkeypatch, julia_args):
    class FailingKernel:
        def __init__(self, args):
            pass

        def __call__(self, steps, final_re, final_im, row_num):
            if row_num == 3:
                raise RuntimeError("row failed")

    monkeypatch.setattr(parallel, 'RowKernel', FailingKernel)
    with pytest.raises(RuntimeError, match="row failed"):
        compute_fractal(julia_args, num_threads=2)


def test_raw_frac_shape_checked():
    with pytest.raises(ValueError):
        RawFrac(2, np.zeros(3, dtype=np.int64), np.zeros(4), np.zeros(4))


def test_raw_frac_is_read_only(julia_args):
    raw = compute_fractal(julia_args)
    for array in (raw.steps, raw.final_re, raw.final_im):
        with pytest.raises(ValueError):
            array[0] = 1


def test_raw_frac_iteration(julia_args):
    raw = compute_fractal(julia_args)
    points = list(raw)
    assert len(points) == len(raw)
    assert points[17] == raw[17] == raw.point(1, 1)


def test_benchmark(mandelbrot_args):
    results = ParallelGridScheduler(2).benchmark(mandelbrot_args)
    assert results['resolution'] == "16x16"
    assert results['num_threads'] == 2
    assert results['pixels_per_second'] > 0
