"""
Tests for the complex-plane mapper, step functions and escape-time loop.
"""

import math

import pytest

from fractalisator.core.fractal_types import Field, FracArgs, IterationStyle, IteratorKind
from fractalisator.core.math_functions import (
    MIN_POSITIVE,
    burning_ship_iterator,
    cube_iterator,
    inverse_iterator,
    iterate_pixel,
    iterate_point,
    julia_iterate,
    mandelbrot_iterate,
    point_to_complex,
    square_iterator,
)


class TestPointToComplex:

    def test_origin_maps_to_lower_corner(self):
        field = Field(pixel_size=8, center_re=0.5, center_im=-0.25, radius=1.5)
        re, im = point_to_complex(field, 0, 0)
        assert re == pytest.approx(-1.0)
        assert im == pytest.approx(-1.75)

    def test_pixel_size_maps_to_upper_corner(self):
        field = Field(pixel_size=8, center_re=0.5, center_im=-0.25, radius=1.5)
        re, im = point_to_complex(field, 8, 8)
        assert re == pytest.approx(2.0)
        assert im == pytest.approx(1.25)

    def test_center_pixel(self):
        field = Field(pixel_size=4, center_re=0.0, center_im=0.0, radius=2.0)
        assert point_to_complex(field, 2, 2) == pytest.approx((0.0, 0.0))

    def test_columns_are_real_axis_rows_are_imaginary_axis(self):
        field = Field(pixel_size=4, center_re=0.0, center_im=0.0, radius=2.0)
        assert point_to_complex(field, 1, 0) == pytest.approx((-1.0, -2.0))
        assert point_to_complex(field, 0, 1) == pytest.approx((-2.0, -1.0))

    def test_out_of_range_indices_extrapolate(self):
        field = Field(pixel_size=4, center_re=1.0, center_im=1.0, radius=1.0)
        assert point_to_complex(field, 8, -4) == pytest.approx((4.0, -2.0))


class TestIterators:

    def test_square(self):
        assert square_iterator(1.0, 2.0, 0.5, -0.5) == pytest.approx((-2.5, 3.5))

    def test_cube(self):
        # (1 + i)^3 = -2 + 2i
        assert cube_iterator(1.0, 1.0, 0.0, 0.0) == pytest.approx((-2.0, 2.0))
        assert cube_iterator(2.0, 0.0, 1.0, 1.0) == pytest.approx((9.0, 1.0))

    def test_inverse(self):
        # 2 / |2|^2 = 0.5, squared 0.25
        assert inverse_iterator(2.0, 0.0, 0.0, 0.0) == pytest.approx((0.25, 0.0))
        assert inverse_iterator(0.0, 1.0, 0.0, 0.0) == pytest.approx((-1.0, 0.0))

    def test_inverse_at_zero_is_finite(self):
        re, im = inverse_iterator(0.0, 0.0, 0.3, -0.2)
        assert (re, im) == pytest.approx((0.3, -0.2))
        assert math.isfinite(re) and math.isfinite(im)

    def test_min_positive_is_smallest_normal(self):
        assert MIN_POSITIVE == pytest.approx(2.2250738585072014e-308)

    def test_burning_ship_takes_absolute_values(self):
        assert burning_ship_iterator(-1.0, -2.0, 0.0, 0.0) == pytest.approx((-3.0, 4.0))
        assert burning_ship_iterator(-1.0, -2.0, 0.0, 0.0) == pytest.approx(
            square_iterator(1.0, 2.0, 0.0, 0.0))


class TestIteratePoint:

    @pytest.mark.parametrize("kind", list(IteratorKind))
    def test_zero_steps_returns_start(self, kind):
        point = iterate_point((0.3, -0.7), (0.1, 0.2), 0, 4.0, kind)
        assert point.steps == 0
        assert point.final_re == 0.3
        assert point.final_im == -0.7

    @pytest.mark.parametrize("bound", [0.5, 4.0, 100.0])
    def test_origin_never_escapes_square_mandelbrot(self, bound):
        point = iterate_point(0j, 0j, 37, bound, IteratorKind.SQUARE)
        assert point.steps == 37
        assert (point.final_re, point.final_im) == (0.0, 0.0)

    def test_escapes_after_one_step(self):
        point = iterate_point((0.0, 0.0), (-2.0, -2.0), 50, 4.0)
        assert point.steps == 1
        assert (point.final_re, point.final_im) == pytest.approx((-2.0, -2.0))

    def test_start_outside_bound_takes_no_steps(self):
        point = iterate_point(complex(3.0, 0.0), 0j, 10, 4.0)
        assert point.steps == 0

    def test_bound_is_on_squared_magnitude(self):
        # |z|^2 == bound stops the loop
        point = iterate_point((2.0, 0.0), (0.0, 0.0), 10, 4.0)
        assert point.steps == 0

    def test_accepts_complex_and_tuples(self):
        a = iterate_point(complex(0.1, 0.2), complex(-0.5, 0.5), 30, 4.0, IteratorKind.CUBE)
        b = iterate_point((0.1, 0.2), (-0.5, 0.5), 30, 4.0, IteratorKind.CUBE)
        assert a == b

    def test_steps_never_exceed_bound(self):
        for c in (0.25 + 0.0j, -1.0 + 0.0j, 0.3 + 0.5j, 1.0 + 1.0j):
            assert 0 <= iterate_point(0j, c, 25, 4.0).steps <= 25


class TestIterationStyles:

    def test_julia_uses_pixel_as_start(self):
        args = FracArgs(c_re=0.1, c_im=-0.1, steps=20, iter_bound=4.0)
        assert julia_iterate((0.5, 0.5), IteratorKind.SQUARE, args) == \
            iterate_point((0.5, 0.5), (0.1, -0.1), 20, 4.0, IteratorKind.SQUARE)

    def test_mandelbrot_uses_pixel_as_constant(self):
        args = FracArgs(c_re=0.1, c_im=-0.1, steps=20, iter_bound=4.0)
        assert mandelbrot_iterate((0.5, 0.5), IteratorKind.SQUARE, args) == \
            iterate_point((0.0, 0.0), (0.5, 0.5), 20, 4.0, IteratorKind.SQUARE)

    def test_iterate_pixel_selects_style(self):
        field = Field(pixel_size=4, center_re=0.0, center_im=0.0, radius=2.0)
        args = FracArgs(field=field, steps=50, iter_bound=4.0,
                        iteration_style=IterationStyle.MANDELBROT)
        point = iterate_pixel(args, 0, 0)
        assert point.steps == 1
        assert (point.final_re, point.final_im) == pytest.approx((-2.0, -2.0))
