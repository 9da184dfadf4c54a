"""
Fractal parameter definitions and result containers.

This module defines the value types that describe one fractal render (the
viewport, the iteration parameters and the selectable strategies) together
with the containers the evaluation engine hands back to its callers.
"""

import numpy as np
from typing import Dict, Any, Iterator, NamedTuple
from dataclasses import dataclass, field as dataclass_field, replace
from enum import IntEnum
import logging

logger = logging.getLogger(__name__)


class IterationStyle(IntEnum):
    """Which operand of the iteration varies per pixel."""

    JULIA = 0
    MANDELBROT = 1


class IteratorKind(IntEnum):
    """Closed set of complex step functions."""

    SQUARE = 0
    CUBE = 1
    INVERSE = 2
    BURNING_SHIP = 3


def parse_enum(enum_class, value):
    """Accept an enum member, its integer value or its (case-insensitive) name."""
    if isinstance(value, enum_class):
        return value
    if isinstance(value, str):
        key = value.strip().upper().replace('-', '_')
        try:
            return enum_class[key]
        except KeyError:
            available = ', '.join(m.name.lower() for m in enum_class)
            raise ValueError(f"Unknown {enum_class.__name__} '{value}'. Available: {available}")
    try:
        return enum_class(value)
    except ValueError:
        raise ValueError(f"Invalid {enum_class.__name__} value: {value!r}")


@dataclass(frozen=True)
class Field:
    """Square viewport on the complex plane."""

    pixel_size: int = 1000
    center_re: float = 0.0
    center_im: float = 0.0
    radius: float = 2.0

    def validate(self) -> None:
        """Validate viewport values."""
        if not isinstance(self.pixel_size, (int, np.integer)) or self.pixel_size <= 0:
            raise ValueError("pixel_size must be a positive integer")
        if not np.isfinite(self.radius) or self.radius <= 0:
            raise ValueError("radius must be positive")
        if not (np.isfinite(self.center_re) and np.isfinite(self.center_im)):
            raise ValueError("center must be finite")

    def zoomed(self, factor: float) -> 'Field':
        """Viewport with the radius scaled by ``factor`` around the same center."""
        return replace(self, radius=self.radius * factor)

    def zoom_in(self) -> 'Field':
        return self.zoomed(0.8)

    def zoom_out(self) -> 'Field':
        return self.zoomed(1.2)

    def panned(self, dx: float, dy: float) -> 'Field':
        """
        Viewport moved by a fraction of its radius.

        Args:
            dx: Shift of the real axis center, in radii
            dy: Shift of the imaginary axis center, in radii
        """
        return replace(self,
                       center_re=self.center_re + dx * self.radius,
                       center_im=self.center_im + dy * self.radius)

    def with_pixel_size(self, pixel_size: int) -> 'Field':
        return replace(self, pixel_size=int(pixel_size))

    def more_detailed(self) -> 'Field':
        return self.with_pixel_size(self.pixel_size * 2)

    def less_detailed(self, minimum: int = 128) -> 'Field':
        return self.with_pixel_size(max(self.pixel_size // 2, minimum))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pixel_size': int(self.pixel_size),
            'center_re': float(self.center_re),
            'center_im': float(self.center_im),
            'radius': float(self.radius),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Field':
        return cls(
            pixel_size=int(data.get('pixel_size', cls.pixel_size)),
            center_re=float(data.get('center_re', cls.center_re)),
            center_im=float(data.get('center_im', cls.center_im)),
            radius=float(data.get('radius', cls.radius)),
        )


@dataclass(frozen=True)
class FracArgs:
    """Everything needed to compute one raw fractal."""

    field: Field = dataclass_field(default_factory=Field)
    c_re: float = -0.96656
    c_im: float = 0.1225
    steps: int = 256
    iter_bound: float = 4.0
    iteration_style: IterationStyle = IterationStyle.JULIA
    iterator_kind: IteratorKind = IteratorKind.SQUARE

    def __post_init__(self):
        object.__setattr__(self, 'iteration_style', parse_enum(IterationStyle, self.iteration_style))
        object.__setattr__(self, 'iterator_kind', parse_enum(IteratorKind, self.iterator_kind))

    def validate(self) -> None:
        """Validate render arguments, including the viewport."""
        self.field.validate()
        if not isinstance(self.steps, (int, np.integer)) or self.steps <= 0:
            raise ValueError("steps must be a positive integer")
        if not np.isfinite(self.iter_bound) or self.iter_bound <= 0:
            raise ValueError("iter_bound must be positive and finite")
        if not (np.isfinite(self.c_re) and np.isfinite(self.c_im)):
            raise ValueError("c must be finite")

    @property
    def c(self) -> complex:
        """The iteration constant as a complex number."""
        return complex(self.c_re, self.c_im)

    def with_field(self, field: Field) -> 'FracArgs':
        return replace(self, field=field)

    def with_steps(self, steps: int) -> 'FracArgs':
        return replace(self, steps=max(int(steps), 1))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'field': self.field.to_dict(),
            'c_re': float(self.c_re),
            'c_im': float(self.c_im),
            'steps': int(self.steps),
            'iter_bound': float(self.iter_bound),
            'iteration_style': self.iteration_style.name.lower(),
            'iterator_kind': self.iterator_kind.name.lower(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FracArgs':
        defaults = cls()
        return cls(
            field=Field.from_dict(data.get('field', {})),
            c_re=float(data.get('c_re', defaults.c_re)),
            c_im=float(data.get('c_im', defaults.c_im)),
            steps=int(data.get('steps', defaults.steps)),
            iter_bound=float(data.get('iter_bound', defaults.iter_bound)),
            iteration_style=data.get('iteration_style', defaults.iteration_style),
            iterator_kind=data.get('iterator_kind', defaults.iterator_kind),
        )


def default_field() -> Field:
    """The viewport a new session starts with."""
    return Field(pixel_size=1000, center_re=0.0, center_im=0.0, radius=2.0)


def default_frac_args() -> FracArgs:
    """The fractal a new session starts with: a square-map Julia set."""
    return FracArgs(
        field=default_field(),
        c_re=-0.96656,
        c_im=0.1225,
        steps=256,
        iter_bound=4.0,
        iteration_style=IterationStyle.JULIA,
        iterator_kind=IteratorKind.SQUARE,
    )


class FracPoint(NamedTuple):
    """Escape sample of one pixel."""

    steps: int
    final_re: float
    final_im: float


class RawFrac:
    """
    Row-major escape data of a whole render.

    The samples are kept as three flat arrays of length ``pixel_size ** 2``;
    indexing and iteration yield :class:`FracPoint` values.
    """

    def __init__(self, pixel_size: int, steps: np.ndarray,
                 final_re: np.ndarray, final_im: np.ndarray):
        """
        Initialize raw fractal data.

        Args:
            pixel_size: Side length of the square grid
            steps: Iteration counts (int64)
            final_re, final_im: Final iterate per pixel (float64)
        """
        expected = pixel_size * pixel_size
        for name, array in (('steps', steps), ('final_re', final_re), ('final_im', final_im)):
            if array.shape != (expected,):
                raise ValueError(f"{name} must have shape ({expected},), got {array.shape}")

        for array in (steps, final_re, final_im):
            array.flags.writeable = False

        self.pixel_size = pixel_size
        self.steps = steps
        self.final_re = final_re
        self.final_im = final_im
        self.shape = (pixel_size, pixel_size)

    def __len__(self) -> int:
        return self.steps.shape[0]

    def __getitem__(self, index: int) -> FracPoint:
        return FracPoint(int(self.steps[index]), float(self.final_re[index]), float(self.final_im[index]))

    def __iter__(self) -> Iterator[FracPoint]:
        for n, re, im in zip(self.steps.tolist(), self.final_re.tolist(), self.final_im.tolist()):
            yield FracPoint(n, re, im)

    def __eq__(self, other) -> bool:
        if not isinstance(other, RawFrac):
            return NotImplemented
        return (self.pixel_size == other.pixel_size
                and self.steps.tobytes() == other.steps.tobytes()
                and self.final_re.tobytes() == other.final_re.tobytes()
                and self.final_im.tobytes() == other.final_im.tobytes())

    def point(self, i: int, j: int) -> FracPoint:
        """Sample at column ``i`` of row ``j``."""
        return self[j * self.pixel_size + i]


# Predefined interesting Julia constants (c_re, c_im)
JULIA_PRESETS = {
    'default': (-0.96656, 0.1225),
    'dragon': (-0.75, 0.1),
    'spiral': (-0.4, 0.6),
    'dendrite': (0.0, 1.0),
    'rabbit': (-0.123, 0.745),
    'airplane': (-1.755, 0.0),
    'san_marco': (-0.75, 0.0),
    'siegel_disk': (-0.391, -0.587),
}
