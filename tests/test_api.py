"""
Tests for the stateful renderer and its configuration.
"""

import numpy as np
import pytest

from fractalisator.api import FractalRenderer, RenderConfig, default_render_config
from fractalisator.core.fractal_types import FracArgs
from fractalisator.rendering.coloring import get_gradient


@pytest.fixture
def config(julia_args):
    return RenderConfig(fractal=julia_args, gradient=get_gradient('hot'), display_size=24,
                        num_threads=2)


class TestRenderConfig:

    def test_defaults(self):
        config = default_render_config()
        assert config.output_size == config.fractal.field.pixel_size
        config.validate()

    def test_dict_round_trip(self, config):
        restored = RenderConfig.from_dict(config.to_dict())
        assert restored == config

    @pytest.mark.parametrize("changes", [{'display_size': 0}, {'num_threads': 0}])
    def test_validate(self, config, changes):
        for key, value in changes.items():
            setattr(config, key, value)
        with pytest.raises(ValueError):
            config.validate()


class TestFractalRenderer:

    def test_render_size(self, config):
        renderer = FractalRenderer(config)
        image = renderer.render()
        assert image.shape == (4 * 24 * 24,)
        assert renderer.image.shape == (4 * 16 * 16,)

    def test_render_without_resize(self, julia_args):
        renderer = FractalRenderer(RenderConfig(fractal=julia_args))
        assert np.array_equal(renderer.render(), renderer.image)

    def test_gradient_change_keeps_raw(self, config):
        renderer = FractalRenderer(config)
        renderer.render()
        raw = renderer.raw

        assert renderer.update_gradient(get_gradient('ocean'))
        assert renderer.raw is raw
        assert not renderer.update_gradient(get_gradient('ocean'))

    def test_same_arguments_keep_cache(self, config):
        renderer = FractalRenderer(config)
        raw = renderer.raw
        assert not renderer.update_fractal(FracArgs.from_dict(config.fractal.to_dict()))
        assert renderer.raw is raw

    def test_zoom_recomputes(self, config):
        renderer = FractalRenderer(config)
        raw = renderer.raw
        assert renderer.zoom(0.8)
        assert renderer.args.field.radius == pytest.approx(1.6)
        assert renderer.raw is not raw

    def test_pan(self, config):
        renderer = FractalRenderer(config)
        renderer.pan(0.2, -0.2)
        assert renderer.args.field.center_re == pytest.approx(0.4)
        assert renderer.args.field.center_im == pytest.approx(-0.4)

    def test_steps_and_pixel_size(self, config):
        renderer = FractalRenderer(config)
        renderer.set_steps(0)
        assert renderer.args.steps == 1
        renderer.set_pixel_size(8)
        assert len(renderer.raw) == 64

    def test_display_size(self, config):
        renderer = FractalRenderer(config)
        renderer.set_display_size(None)
        assert renderer.render().shape == (4 * 16 * 16,)
        with pytest.raises(ValueError):
            renderer.set_display_size(-1)

    def test_invalid_update_rejected(self, config):
        renderer = FractalRenderer(config)
        with pytest.raises(ValueError):
            renderer.update_fractal(FracArgs(steps=0))

    def test_save(self, config, tmp_path):
        renderer = FractalRenderer(config)
        path = renderer.save(tmp_path / "fractal.png")
        metadata = renderer.image_exporter.extract_metadata(path)
        assert metadata.resolution == (24, 24)
        assert metadata.fractal_args == config.fractal.to_dict()
