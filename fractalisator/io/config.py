"""
Configuration file handling.

Render configurations are stored as JSON documents mirroring
``RenderConfig.to_dict()``::

    {
      "fractal": {"field": {"pixel_size": 800, "center_re": -0.5, ...},
                  "steps": 256, "iteration_style": "mandelbrot", ...},
      "gradient": {"start_color": [100, 7, 0, 255], "peaks": [...], ...},
      "display_size": 1000
    }

Missing keys fall back to the defaults.
"""

from typing import Dict, Any, Optional
from pathlib import Path
import json
import logging

from ..api import RenderConfig, default_render_config

logger = logging.getLogger(__name__)


class ConfigManager:
    """Loads and saves render configurations."""

    def load_config(self, filepath: Path) -> Dict[str, Any]:
        """
        Read a raw configuration document.

        Args:
            filepath: JSON file path

        Returns:
            Parsed document
        """
        filepath = Path(filepath)
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid configuration file {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {filepath} must contain a JSON object")

        logger.info(f"Loaded configuration: {filepath}")
        return data

    def load_render_config(self, filepath: Path) -> RenderConfig:
        """Read and validate a render configuration."""
        data = self.load_config(filepath)
        try:
            config = RenderConfig.from_dict(data)
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed configuration in {filepath}: {e}") from e
        config.validate()
        return config

    def save_render_config(self, config: RenderConfig, filepath: Path) -> Path:
        """Write a render configuration as JSON."""
        config.validate()
        filepath = Path(filepath)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)
        logger.info(f"Saved configuration: {filepath}")
        return filepath


def load_config_from_args(config_file: Optional[str]) -> RenderConfig:
    """Configuration from an optional file, defaults otherwise."""
    if config_file:
        return ConfigManager().load_render_config(Path(config_file))
    return default_render_config()
