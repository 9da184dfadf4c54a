"""
Shared fixtures for fractalisator tests.
"""

import pytest

from fractalisator.core.fractal_types import Field, FracArgs, IterationStyle, IteratorKind
from fractalisator.rendering.coloring import ColorPeak, Gradient


@pytest.fixture
def small_field():
    return Field(pixel_size=16, center_re=0.0, center_im=0.0, radius=2.0)


@pytest.fixture
def mandelbrot_args(small_field):
    return FracArgs(field=small_field, steps=50, iter_bound=4.0,
                    iteration_style=IterationStyle.MANDELBROT,
                    iterator_kind=IteratorKind.SQUARE)


@pytest.fixture
def julia_args(small_field):
    return FracArgs(field=small_field, c_re=-0.8, c_im=0.156, steps=64, iter_bound=4.0,
                    iteration_style=IterationStyle.JULIA,
                    iterator_kind=IteratorKind.SQUARE)


@pytest.fixture
def gray_gradient():
    return Gradient(start_color=(0, 0, 0, 255), end_color=(255, 255, 255, 255), smooth=False)


@pytest.fixture
def three_stop_gradient():
    return Gradient(
        start_color=(0, 0, 0, 255),
        peaks=(ColorPeak(0.75, (0, 0, 255, 255)), ColorPeak(0.25, (0, 255, 0, 255))),
        end_color=(255, 0, 0, 255),
        smooth=False,
    )
