"""
Gradient coloring for fractal rendering.

This module turns raw escape data into BGRA pixels. A gradient is a start
color, any number of color peaks anchored along [0, 1] and an end color;
escape counts (optionally smoothed into a continuous value) are normalised
onto that axis and the two bounding stops are blended linearly.
"""

import numpy as np
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, replace
from bisect import bisect_right
import logging
import math

from ..core.fractal_types import RawFrac

logger = logging.getLogger(__name__)

BGRA = Tuple[int, int, int, int]


def bgra(r: int, g: int, b: int, a: int = 255) -> BGRA:
    """Build a BGRA tuple from RGB(A) components."""
    return (b, g, r, a)


def _as_bgra(color: Sequence[int]) -> BGRA:
    if len(color) != 4:
        raise ValueError(f"Color must have 4 channels (B, G, R, A), got {tuple(color)}")
    return tuple(int(c) for c in color)


def _check_bgra(color: BGRA, name: str) -> None:
    for component in color:
        if not 0 <= component <= 255:
            raise ValueError(f"{name} channels must be between 0 and 255, got {color}")


@dataclass(frozen=True)
class ColorPeak:
    """A color anchored at position ``at`` of the gradient axis."""

    at: float
    bgra: BGRA

    def __post_init__(self):
        object.__setattr__(self, 'at', float(self.at))
        object.__setattr__(self, 'bgra', _as_bgra(self.bgra))

    def validate(self) -> None:
        if not 0.0 <= self.at <= 1.0:
            raise ValueError(f"Color peak position must be within [0, 1], got {self.at}")
        _check_bgra(self.bgra, "Color peak")

    def to_dict(self) -> Dict[str, Any]:
        return {'at': self.at, 'bgra': list(self.bgra)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ColorPeak':
        return cls(at=data['at'], bgra=data['bgra'])


@dataclass(frozen=True)
class Gradient:
    """
    Multi-stop color gradient.

    ``start_color`` sits at position 0 and ``end_color`` at position 1; the
    peaks may be given in any order.
    """

    start_color: BGRA
    peaks: Tuple[ColorPeak, ...] = ()
    end_color: BGRA = (255, 255, 255, 255)
    smooth: bool = True

    def __post_init__(self):
        peaks = []
        for peak in self.peaks:
            if isinstance(peak, ColorPeak):
                peaks.append(peak)
            elif isinstance(peak, dict):
                peaks.append(ColorPeak.from_dict(peak))
            else:
                at, color = peak
                peaks.append(ColorPeak(at, color))

        object.__setattr__(self, 'start_color', _as_bgra(self.start_color))
        object.__setattr__(self, 'end_color', _as_bgra(self.end_color))
        object.__setattr__(self, 'peaks', tuple(peaks))
        object.__setattr__(self, 'smooth', bool(self.smooth))

    def validate(self) -> None:
        """
        Validate the gradient.

        Peak positions must lie within [0, 1] and be unique. Color lookup does
        not depend on this: equal positions are resolved to the later stop.
        """
        _check_bgra(self.start_color, "Start color")
        _check_bgra(self.end_color, "End color")

        seen = set()
        for peak in self.peaks:
            peak.validate()
            if peak.at in seen:
                raise ValueError(f"Duplicate color peak position: {peak.at}")
            seen.add(peak.at)

    def sorted_peaks(self) -> List[ColorPeak]:
        """Peaks in ascending order of position."""
        return sorted(self.peaks, key=lambda peak: peak.at)

    def lookup_table(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Positions and colors of all stops, boundary stops included.

        Returns:
            Tuple of (positions, colors) with shapes (k + 2,) and (k + 2, 4)
        """
        peaks = self.sorted_peaks()
        positions = [0.0] + [peak.at for peak in peaks] + [1.0]
        colors = [self.start_color] + [peak.bgra for peak in peaks] + [self.end_color]
        return np.array(positions, dtype=np.float64), np.array(colors, dtype=np.float64)

    def with_smooth(self, smooth: bool) -> 'Gradient':
        return replace(self, smooth=smooth)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start_color': list(self.start_color),
            'peaks': [peak.to_dict() for peak in self.peaks],
            'end_color': list(self.end_color),
            'smooth': self.smooth,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Gradient':
        return cls(
            start_color=data['start_color'],
            peaks=tuple(ColorPeak.from_dict(p) for p in data.get('peaks', [])),
            end_color=data.get('end_color', (255, 255, 255, 255)),
            smooth=data.get('smooth', True),
        )


def smooth_steps(steps: int, re: float, im: float) -> float:
    """
    Continuous iteration count ``steps - log2(log2(|z|^2))``.

    Points left inside the unit circle map to 0. A non-finite ``|z|^2`` or
    ``|z|^2 == 1`` keeps the raw count.
    """
    abs_val = re * re + im * im
    if not math.isfinite(abs_val):
        return float(steps)
    if abs_val < 1.0:
        return 0.0
    if abs_val == 1.0:
        return float(steps)
    return steps - math.log2(math.log2(abs_val))


def continuous_steps(raw: RawFrac, smooth: bool) -> np.ndarray:
    """Vectorised :func:`smooth_steps` over a whole raw fractal."""
    n = raw.steps.astype(np.float64)
    if not smooth:
        return n

    with np.errstate(over='ignore', invalid='ignore', divide='ignore'):
        abs_val = raw.final_re * raw.final_re + raw.final_im * raw.final_im
        defined = np.isfinite(abs_val) & (abs_val > 1.0)
        safe = np.where(defined, abs_val, 2.0)
        correction = np.where(defined, np.log2(np.log2(safe)), 0.0)
        inside = np.isfinite(abs_val) & (abs_val < 1.0)

    return np.where(inside, 0.0, n - correction)


def _check_max_steps(max_steps: int) -> float:
    if max_steps <= 0:
        raise ValueError("max_steps must be positive")
    return float(max_steps)


def _blend(c1: float, c2: float, f: float) -> int:
    value = math.floor(c1 * (1.0 - f) + c2 * f + 0.5)
    return min(255, max(0, value))


def color_with_gradient(gradient: Gradient, max_steps: int) -> Callable[[int, float, float], BGRA]:
    """
    Create the per-pixel coloring function of ``gradient``.

    Peaks are sorted once here; the returned function maps an escape sample
    ``(steps, final_re, final_im)`` to a BGRA tuple.

    Args:
        gradient: Gradient to color with
        max_steps: Step bound of the render, used to normalise counts

    Returns:
        Coloring function
    """
    scale = _check_max_steps(max_steps)
    positions, colors = gradient.lookup_table()
    positions = positions.tolist()
    colors = [tuple(color) for color in colors.tolist()]
    peak_at = positions[1:-1]
    smooth = gradient.smooth

    def color(steps: int, re: float, im: float) -> BGRA:
        n = smooth_steps(steps, re, im) if smooth else float(steps)

        # Transfer n to [0, 1]
        x = min(max(n / scale, 0.0), 1.0)

        # Bounding stops: first peak beyond x, and the stop before it
        upper = bisect_right(peak_at, x) + 1
        lower = upper - 1
        at1, at2 = positions[lower], positions[upper]
        f = (x - at1) / (at2 - at1) if at2 > at1 else 1.0

        c1, c2 = colors[lower], colors[upper]
        return tuple(_blend(c1[k], c2[k], f) for k in range(4))

    return color


def color_fractal(raw: RawFrac, max_steps: int, gradient: Gradient) -> np.ndarray:
    """
    Color raw fractal data with ``gradient``.

    Same mapping as :func:`color_with_gradient`, evaluated for all pixels at
    once.

    Args:
        raw: Raw fractal data
        max_steps: Step bound the data was computed with
        gradient: Gradient to color with

    Returns:
        Flat uint8 array, 4 bytes (B, G, R, A) per pixel, row-major
    """
    scale = _check_max_steps(max_steps)
    positions, colors = gradient.lookup_table()
    peak_at = positions[1:-1]

    n = continuous_steps(raw, gradient.smooth)
    x = np.clip(n / scale, 0.0, 1.0)

    upper = np.searchsorted(peak_at, x, side='right') + 1
    lower = upper - 1
    at1 = positions[lower]
    span = positions[upper] - at1

    f = np.divide(x - at1, span, out=np.ones_like(x), where=span > 0)[:, None]
    mixed = colors[lower] * (1.0 - f) + colors[upper] * f
    pixels = np.clip(np.floor(mixed + 0.5), 0, 255).astype(np.uint8)

    logger.debug(f"Colored {len(raw)} pixels with {len(positions)} gradient stops")
    return pixels.reshape(-1)


GRADIENT_PRESETS: Dict[str, Gradient] = {
    'azul': Gradient(
        start_color=bgra(0, 7, 100),
        peaks=(
            ColorPeak(0.16, bgra(32, 107, 203)),
            ColorPeak(0.42, bgra(237, 255, 255)),
            ColorPeak(0.6425, bgra(255, 170, 0)),
            ColorPeak(0.8575, bgra(0, 2, 0)),
        ),
        end_color=bgra(0, 0, 0),
    ),
    'hot': Gradient(
        start_color=bgra(0, 0, 0),
        peaks=(ColorPeak(1 / 3, bgra(255, 0, 0)), ColorPeak(2 / 3, bgra(255, 255, 0))),
        end_color=bgra(255, 255, 255),
    ),
    'fire': Gradient(
        start_color=bgra(0, 0, 0),
        peaks=(
            ColorPeak(0.2, bgra(128, 0, 0)),
            ColorPeak(0.4, bgra(255, 0, 0)),
            ColorPeak(0.6, bgra(255, 128, 0)),
            ColorPeak(0.8, bgra(255, 255, 0)),
        ),
        end_color=bgra(255, 255, 255),
    ),
    'ocean': Gradient(
        start_color=bgra(0, 0, 51),
        peaks=(
            ColorPeak(0.2, bgra(0, 0, 204)),
            ColorPeak(0.4, bgra(0, 128, 255)),
            ColorPeak(0.6, bgra(0, 255, 255)),
            ColorPeak(0.8, bgra(128, 255, 255)),
        ),
        end_color=bgra(255, 255, 255),
    ),
    'gray': Gradient(start_color=bgra(0, 0, 0), end_color=bgra(255, 255, 255)),
}


def default_gradient() -> Gradient:
    """The gradient a new session starts with."""
    return GRADIENT_PRESETS['azul']


def get_gradient(name: str, smooth: Optional[bool] = None) -> Gradient:
    """
    Get a preset gradient by name.

    Args:
        name: Preset name
        smooth: Override the preset's smoothing flag

    Returns:
        Gradient
    """
    gradient = GRADIENT_PRESETS.get(name.lower())
    if gradient is None:
        available = ', '.join(GRADIENT_PRESETS.keys())
        raise ValueError(f"Unknown gradient '{name}'. Available: {available}")
    if smooth is not None:
        gradient = gradient.with_smooth(smooth)
    return gradient
