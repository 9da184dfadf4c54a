"""
Escape-time fractal rendering library.

This library computes Julia and Mandelbrot style fractals of several complex
step functions over a square viewport, colors the escape data with
multi-stop gradients and resamples the result for display.

Key Features:
- Square, cube, inverse and Burning Ship step functions
- Row-parallel evaluation with Numba-compiled, GIL-free kernels
- Smooth (continuous iteration count) gradient coloring in BGRA
- Lanczos resampling between compute and display resolution

Example usage:
    >>> from fractalisator import FracArgs, Field, compute_fractal, color_fractal, default_gradient
    >>> args = FracArgs(field=Field(pixel_size=256), iteration_style="mandelbrot")
    >>> raw = compute_fractal(args)
    >>> image = color_fractal(raw, args.steps, default_gradient())
"""

__version__ = "1.0.0"
__author__ = "Fractalisator Team"

from fractalisator.core.fractal_types import (
    Field, FracArgs, FracPoint, RawFrac, IterationStyle, IteratorKind,
    default_field, default_frac_args, JULIA_PRESETS,
)
from fractalisator.core.math_functions import point_to_complex, iterate_point
from fractalisator.acceleration.parallel import compute_fractal
from fractalisator.rendering.coloring import (
    ColorPeak, Gradient, color_with_gradient, color_fractal, default_gradient, GRADIENT_PRESETS,
)
from fractalisator.rendering.image_output import ImageExporter, resize_image

# Main API classes
from fractalisator.api import FractalRenderer, RenderConfig

__all__ = [
    "FractalRenderer",
    "RenderConfig",
    "Field",
    "FracArgs",
    "FracPoint",
    "RawFrac",
    "IterationStyle",
    "IteratorKind",
    "default_field",
    "default_frac_args",
    "JULIA_PRESETS",
    "point_to_complex",
    "iterate_point",
    "compute_fractal",
    "ColorPeak",
    "Gradient",
    "color_with_gradient",
    "color_fractal",
    "default_gradient",
    "GRADIENT_PRESETS",
    "ImageExporter",
    "resize_image",
]
