import os
import tempfile
import unittest
from unittest import mock

import numpy
from PIL import Image

from juliafatou import JuliaFatouRenderer, ViewportConfig, render
from juliafatou.rendering.coloring import ColorStyle, PixelMapper, build_gradient
from juliafatou.rendering.image_output import ImageExporter
from juliafatou.exceptions import ConfigError


class TestRenderer(unittest.TestCase):

    def setUp(self):
        self.config = ViewportConfig(width=24, height=18, blur=0.0)

    def test_output_shape(self):
        image = render(self.config, ColorStyle.MINT, threads=2)

        assert image.shape == (18, 24, 3)
        assert image.dtype == numpy.uint8

    def test_unblurred_raster_is_colored_field(self):
        renderer = JuliaFatouRenderer(self.config)
        gradient = build_gradient(ColorStyle.CHRISTMAS)

        image = renderer.render(gradient)
        field = renderer.compute_field()

        numpy.testing.assert_array_equal(image, PixelMapper(gradient).map_field(field))

    def test_inverse_uses_reversed_gradient(self):
        rgb = [(255, 0, 0), (0, 255, 0), (0, 0, 255)]
        normal = render(self.config, rgb)
        inverse = render(self.config.with_changes(inverse=True), rgb)

        gradient = build_gradient(rgb)
        field = JuliaFatouRenderer(self.config).compute_field()
        indices = PixelMapper(gradient).indices(field)
        reversed_colors = gradient.table[gradient.size - 1 - indices].astype(int)

        numpy.testing.assert_array_equal(normal, gradient.table[indices])
        assert numpy.abs(inverse.astype(int) - reversed_colors).max() <= 2

    def test_blur_is_applied(self):
        sharp = render(self.config, ColorStyle.PLASMA)
        blurred = render(self.config.with_changes(blur=1.0), ColorStyle.PLASMA)

        assert blurred.shape == sharp.shape
        assert not numpy.array_equal(blurred, sharp)

    def test_bad_gradient_fails_before_workers_start(self):
        renderer = JuliaFatouRenderer(self.config)

        with mock.patch('juliafatou.api.BandAccelerator') as accelerator:
            with self.assertRaises(ConfigError):
                renderer.render([(255, 0, 0), (0, 255, 0)])
            with self.assertRaises(ConfigError):
                renderer.render('sepia')

        accelerator.assert_not_called()

    def test_bad_config_fails_before_workers_start(self):
        with mock.patch('juliafatou.api.BandAccelerator') as accelerator:
            with self.assertRaises(ConfigError):
                render(ViewportConfig(width=0, height=10), ColorStyle.MINT)
            with self.assertRaises(ConfigError):
                render(ViewportConfig(width=10.5, height=10), ColorStyle.MINT)
            with self.assertRaises(ConfigError):
                render(ViewportConfig(width=10, height=10, power=2.9), ColorStyle.MINT)

        accelerator.assert_not_called()

    def test_unsupported_output_fails_before_workers_start(self):
        renderer = JuliaFatouRenderer(self.config)

        with mock.patch('juliafatou.api.BandAccelerator') as accelerator:
            with self.assertRaises(ValueError):
                renderer.render(ColorStyle.MINT, output_path='julia.bmp')

        accelerator.assert_not_called()

    def test_thread_count_is_recorded(self):
        renderer = JuliaFatouRenderer(self.config)

        with mock.patch('juliafatou.acceleration.parallel.get_optimal_thread_count',
                        return_value=4):
            renderer.render(ColorStyle.MINT, threads=64)
            assert renderer.last_thread_count == 4

            renderer.compute_field(threads=3)
            assert renderer.last_thread_count == 3

    def test_compute_field_skips_coloring(self):
        with mock.patch('juliafatou.acceleration.parallel.PixelMapper') as mapper:
            field = JuliaFatouRenderer(self.config).compute_field(threads=2)

        mapper.assert_not_called()
        assert field.shape == (18, 24)
        assert field.dtype == numpy.float64

    def test_output_path(self):
        renderer = JuliaFatouRenderer(self.config)

        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'julia.png')

            image = renderer.render(ColorStyle.TEN, output_path=path)

            with Image.open(path) as img:
                assert img.size == (24, 18)
                numpy.testing.assert_array_equal(numpy.asarray(img), image)

            metadata = ImageExporter().extract_metadata_from_image(path)
            assert metadata.threads == renderer.last_thread_count
            assert metadata.color_style == 'ten'
