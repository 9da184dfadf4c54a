"""
Main API classes for fractal generation.

This module combines the evaluation engine, the colorizer and the resampler
into a renderer that keeps the last raw fractal and colored image around and
only recomputes what a parameter change invalidates.
"""

import numpy as np
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
from pathlib import Path
import logging
import time

from .core.fractal_types import FracArgs, RawFrac, default_frac_args
from .acceleration.parallel import compute_fractal
from .rendering.coloring import Gradient, color_fractal, default_gradient
from .rendering.image_output import ImageExporter, RenderMetadata, resize_image

logger = logging.getLogger(__name__)


@dataclass
class RenderConfig:
    """Configuration for fractal rendering."""

    fractal: FracArgs = field(default_factory=default_frac_args)
    gradient: Gradient = field(default_factory=default_gradient)

    # Side length of the delivered image; None keeps the compute resolution
    display_size: Optional[int] = None
    num_threads: Optional[int] = None

    def validate(self):
        """Validate configuration parameters."""
        self.fractal.validate()
        self.gradient.validate()

        if self.display_size is not None and self.display_size <= 0:
            raise ValueError("display_size must be positive")

        if self.num_threads is not None and self.num_threads < 1:
            raise ValueError("num_threads must be >= 1")

    @property
    def output_size(self) -> int:
        return self.display_size or self.fractal.field.pixel_size

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fractal': self.fractal.to_dict(),
            'gradient': self.gradient.to_dict(),
            'display_size': self.display_size,
            'num_threads': self.num_threads,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderConfig':
        config = cls()
        if 'fractal' in data:
            config.fractal = FracArgs.from_dict(data['fractal'])
        if 'gradient' in data:
            config.gradient = Gradient.from_dict(data['gradient'])
        config.display_size = data.get('display_size')
        config.num_threads = data.get('num_threads')
        return config


def default_render_config() -> RenderConfig:
    """Fully populated default configuration."""
    return RenderConfig(fractal=default_frac_args(), gradient=default_gradient())


class FractalRenderer:
    """
    Stateful rendering front end.

    Holds the current arguments and gradient together with the raw fractal
    and colored image they produced. Changing the fractal arguments recomputes
    everything; changing only the gradient recolors the cached raw data.
    """

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize fractal renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or default_render_config()
        self.config.validate()

        self._raw: Optional[RawFrac] = None
        self._image: Optional[np.ndarray] = None
        self._display: Optional[np.ndarray] = None
        self.last_render_time = 0.0

        self.image_exporter = ImageExporter()

        logger.info(f"FractalRenderer initialized: {self.config.fractal.field.pixel_size}px compute, "
                    f"{self.config.output_size}px display")

    @property
    def args(self) -> FracArgs:
        return self.config.fractal

    @property
    def gradient(self) -> Gradient:
        return self.config.gradient

    @property
    def raw(self) -> RawFrac:
        """Raw fractal for the current arguments, computed on demand."""
        if self._raw is None:
            self._raw = compute_fractal(self.config.fractal, self.config.num_threads)
        return self._raw

    @property
    def image(self) -> np.ndarray:
        """Full-resolution BGRA image for the current arguments and gradient."""
        if self._image is None:
            self._image = color_fractal(self.raw, self.config.fractal.steps, self.config.gradient)
        return self._image

    def render(self) -> np.ndarray:
        """
        Render at display resolution.

        Returns:
            Flat BGRA buffer of output_size x output_size pixels
        """
        if self._display is None:
            start_time = time.time()
            compute_size = self.config.fractal.field.pixel_size
            self._display = resize_image(self.image, compute_size, self.config.output_size)
            self.last_render_time = time.time() - start_time
            logger.info(f"Render complete: {self.last_render_time:.2f}s")
        return self._display

    def update_fractal(self, args: FracArgs) -> bool:
        """
        Replace the fractal arguments.

        Returns:
            True if the arguments changed and cached output was discarded
        """
        if args == self.config.fractal:
            return False
        args.validate()
        self.config.fractal = args
        self._raw = None
        self._image = None
        self._display = None
        return True

    def update_gradient(self, gradient: Gradient) -> bool:
        """
        Replace the gradient; the raw fractal is kept.

        Returns:
            True if the gradient changed and the image was discarded
        """
        if gradient == self.config.gradient:
            return False
        gradient.validate()
        self.config.gradient = gradient
        self._image = None
        self._display = None
        return True

    def set_display_size(self, display_size: Optional[int]) -> None:
        if display_size is not None and display_size <= 0:
            raise ValueError("display_size must be positive")
        if display_size != self.config.display_size:
            self.config.display_size = display_size
            self._display = None

    def zoom(self, factor: float) -> bool:
        """Scale the viewport radius by ``factor``."""
        return self.update_fractal(self.args.with_field(self.args.field.zoomed(factor)))

    def pan(self, dx: float, dy: float) -> bool:
        """Move the viewport center by ``(dx, dy)`` radii."""
        return self.update_fractal(self.args.with_field(self.args.field.panned(dx, dy)))

    def set_pixel_size(self, pixel_size: int) -> bool:
        return self.update_fractal(self.args.with_field(self.args.field.with_pixel_size(pixel_size)))

    def set_steps(self, steps: int) -> bool:
        return self.update_fractal(self.args.with_steps(steps))

    def metadata(self) -> RenderMetadata:
        """Metadata describing the current render."""
        size = self.config.output_size
        return RenderMetadata(
            fractal_args=self.config.fractal.to_dict(),
            gradient=self.config.gradient.to_dict(),
            resolution=(size, size),
            render_time_seconds=self.last_render_time,
        )

    def save(self, output_path: Path, quality: int = 95) -> Path:
        """Render (if needed) and save the display image with metadata."""
        image = self.render()
        return self.image_exporter.save_image(image, self.config.output_size, output_path,
                                              self.metadata(), quality)
