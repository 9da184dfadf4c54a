"""
Image resampling and export for fractal rendering.

Fractal images are flat BGRA byte buffers. This module resizes them with
Pillow's Lanczos filter and writes them to PNG, TIFF or JPEG files, converting
to the channel order each codec expects and embedding render metadata.
"""

import numpy as np
from typing import Dict, Any, Optional, Tuple
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

from .. import __version__

logger = logging.getLogger(__name__)


def image_to_array(image: np.ndarray, size: int) -> np.ndarray:
    """
    View a flat 4-channel buffer as a (size, size, 4) array.

    Args:
        image: Flat uint8 buffer (or bytes) of length 4 * size**2
        size: Side length in pixels

    Returns:
        uint8 array of shape (size, size, 4)
    """
    if size <= 0:
        raise ValueError("Image size must be positive")

    pixels = np.frombuffer(image, dtype=np.uint8) if isinstance(image, (bytes, bytearray)) \
        else np.asarray(image, dtype=np.uint8)

    expected = 4 * size * size
    if pixels.size != expected:
        raise ValueError(f"Expected {expected} bytes for a {size}x{size} image, got {pixels.size}")

    return pixels.reshape(size, size, 4)


def resize_image(image: np.ndarray, from_size: int, to_size: int) -> np.ndarray:
    """
    Resize a square 4-channel image with a Lanczos (3-lobe) filter.

    The filter treats the four channels independently, so BGRA buffers keep
    their channel order.

    Args:
        image: Flat uint8 buffer of a from_size x from_size image
        from_size: Source side length
        to_size: Target side length

    Returns:
        Flat uint8 buffer of a to_size x to_size image
    """
    pixels = image_to_array(image, from_size)
    if to_size <= 0:
        raise ValueError("Target size must be positive")

    if from_size == to_size:
        return pixels.reshape(-1).copy()

    resized = Image.fromarray(pixels).resize((to_size, to_size), Image.Resampling.LANCZOS)
    logger.debug(f"Resized image {from_size}x{from_size} -> {to_size}x{to_size}")

    return np.asarray(resized, dtype=np.uint8).reshape(-1)


def bgra_to_rgba(image: np.ndarray, size: int) -> np.ndarray:
    """Reorder a flat BGRA buffer into an (size, size, 4) RGBA array."""
    pixels = image_to_array(image, size)
    return np.ascontiguousarray(pixels[..., [2, 1, 0, 3]])


@dataclass
class RenderMetadata:
    """Metadata for fractal renders."""

    # Fractal parameters
    fractal_args: Dict[str, Any]
    gradient: Dict[str, Any]

    # Output
    resolution: Tuple[int, int]
    render_time_seconds: float = 0.0

    # Generation info
    timestamp: str = ""
    software_version: str = __version__
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        data = dict(data)
        data['resolution'] = tuple(data['resolution'])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """Writes BGRA fractal images to disk."""

    def __init__(self):
        """Initialize image exporter."""
        self.supported_formats = {
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
            '.jpg': self._save_jpeg,
            '.jpeg': self._save_jpeg,
        }

    def save_image(self, image: np.ndarray, size: int, filepath: Path,
                   metadata: Optional[RenderMetadata] = None, quality: int = 95) -> Path:
        """
        Save a flat BGRA image to file.

        Args:
            image: Flat BGRA buffer of a size x size image
            size: Side length in pixels
            filepath: Output file path; the suffix selects the format
            metadata: Render metadata to embed
            quality: JPEG quality (1-100)

        Returns:
            Path written
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

        pil_image = Image.fromarray(bgra_to_rgba(image, size))

        save_method = self.supported_formats[suffix]
        save_method(pil_image, filepath, metadata, quality)

        logger.info(f"Saved image: {filepath} ({size}x{size})")
        return filepath

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as PNG with metadata."""
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            pnginfo.add_text("Software", f"Fractalisator v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text("FractalMetadata", metadata.to_json())

        pil_image.save(filepath, "PNG", pnginfo=pnginfo)

    def _save_tiff(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as TIFF; metadata goes into the ImageDescription tag."""
        save_kwargs = {'format': 'TIFF', 'compression': 'tiff_lzw'}
        if metadata:
            save_kwargs['description'] = metadata.to_json()
        pil_image.save(filepath, **save_kwargs)

    def _save_jpeg(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as JPEG; alpha is dropped and metadata goes to a companion JSON file."""
        if pil_image.getextrema()[3][0] < 255:
            logger.warning(f"JPEG has no alpha channel, transparency dropped: {filepath}")

        pil_image.convert('RGB').save(filepath, "JPEG", quality=quality, optimize=True)

        if metadata:
            json_path = filepath.with_suffix('.json')
            with open(json_path, 'w') as f:
                f.write(metadata.to_json())
            logger.info(f"Saved metadata: {json_path}")

    def extract_metadata(self, filepath: Path) -> Optional[RenderMetadata]:
        """
        Read render metadata back from a saved PNG or companion JSON file.

        Returns:
            RenderMetadata or None if the file carries none
        """
        filepath = Path(filepath)

        json_path = filepath.with_suffix('.json')
        if filepath.suffix.lower() in ('.jpg', '.jpeg') and json_path.exists():
            with open(json_path, 'r') as f:
                return RenderMetadata.from_json(f.read())

        with Image.open(filepath) as img:
            text = getattr(img, 'text', {}) or {}
            if 'FractalMetadata' in text:
                return RenderMetadata.from_json(text['FractalMetadata'])

        return None
