import os
import tempfile
import unittest

import numpy

from juliafatou.rendering.coloring import (
    BUILTIN_PALETTES, TABLE_SIZE, ColorStyle, GradientTable, PixelMapper,
    build_gradient, load_colors_from_file
)
from juliafatou.exceptions import ConfigError

RGB = [(255, 0, 0), (0, 255, 0), (0, 0, 255)]


class TestGradientTable(unittest.TestCase):

    def test_red_green_blue(self):
        gradient = build_gradient(RGB)
        table = gradient.table.astype(int)

        assert gradient.size == TABLE_SIZE
        assert tuple(table[0]) == (255, 0, 0)
        assert tuple(table[-1]) == (0, 0, 255)

        # red fades out, blue fades in, green rises then falls
        assert numpy.all(numpy.diff(table[:, 0]) <= 0)
        assert numpy.all(numpy.diff(table[:, 2]) >= 0)

        peak = int(numpy.argmax(table[:, 1]))
        assert table[peak, 1] >= 254
        assert numpy.all(numpy.diff(table[:peak + 1, 1]) >= 0)
        assert numpy.all(numpy.diff(table[peak:, 1]) <= 0)

    def test_no_discontinuities(self):
        table = build_gradient(RGB).table.astype(int)

        # neighbouring entries differ by at most one interpolation step
        assert numpy.abs(numpy.diff(table, axis=0)).max() <= 1

    def test_builtin_palettes(self):
        for style, colors in BUILTIN_PALETTES.items():
            gradient = build_gradient(style)

            assert gradient.name == style.value
            assert gradient.table.shape == (TABLE_SIZE, 3)
            assert gradient.table.dtype == numpy.uint8
            assert tuple(gradient.table[0]) == colors[0]
            assert tuple(gradient.table[-1]) == colors[-1]

    def test_style_names(self):
        assert build_gradient('PLASMA').name == 'plasma'
        assert ColorStyle.parse('greyscale') is ColorStyle.GREYSCALE

        with self.assertRaises(ConfigError):
            ColorStyle.parse('sepia')

    def test_two_colors_rejected_for_config_gradient(self):
        with self.assertRaises(ConfigError):
            build_gradient([(255, 0, 0), (0, 255, 0)])

    def test_channel_out_of_range(self):
        for colors in ([(300, 0, 0), (0, 0, 0), (1, 1, 1)],
                       [(0, -1, 0), (0, 0, 0), (1, 1, 1)]):
            with self.assertRaises(ConfigError):
                build_gradient(colors)

    def test_malformed_colors(self):
        for colors in ([(1.5, 0, 0), (0, 0, 0), (1, 1, 1)],
                       [(1, 2), (0, 0, 0), (1, 1, 1)],
                       [('a', 0, 0), (0, 0, 0), (1, 1, 1)]):
            with self.assertRaises(ConfigError):
                build_gradient(colors)

    def test_too_few_distinct_colors(self):
        with self.assertRaises(ConfigError):
            GradientTable([(10, 20, 30)])
        with self.assertRaises(ConfigError):
            GradientTable([(10, 20, 30), (10, 20, 30), (10, 20, 30)])

    def test_any_number_of_control_colors(self):
        gradient = GradientTable([(0, 0, 0), (255, 255, 255)], size=256)

        assert gradient.size == 256
        numpy.testing.assert_array_equal(gradient.table[:, 0], numpy.arange(256))

    def test_table_is_read_only(self):
        gradient = build_gradient(ColorStyle.MINT)

        with self.assertRaises(ValueError):
            gradient.table[0, 0] = 1

    def test_random_gradient_is_reproducible(self):
        a = build_gradient(ColorStyle.RANDOM, rng=numpy.random.default_rng(42))
        b = build_gradient('random', rng=numpy.random.default_rng(42))

        assert a.colors.shape == (3, 3)
        numpy.testing.assert_array_equal(a.colors, b.colors)
        numpy.testing.assert_array_equal(a.table, b.table)


class TestColorFile(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def write(self, content):
        path = os.path.join(self.tmpdir.name, 'colors.csv')
        with open(path, 'w') as f:
            f.write(content)
        return path

    def test_load(self):
        path = self.write("R,G,B\n5,71,92\n10, 120, 115\n184,216,215\n")

        assert load_colors_from_file(path) == [(5, 71, 92), (10, 120, 115), (184, 216, 215)]

    def test_config_style(self):
        path = self.write("R,G,B\n255,0,0\n0,255,0\n0,0,255\n")

        gradient = build_gradient(ColorStyle.CONFIG, config_path=path)

        numpy.testing.assert_array_equal(gradient.table, build_gradient(RGB).table)

    def test_header_is_skipped(self):
        path = self.write("1,2,3\n4,5,6\n7,8,9\n10,11,12\n")

        assert load_colors_from_file(path)[0] == (4, 5, 6)

    def test_save_and_load(self):
        path = os.path.join(self.tmpdir.name, 'saved.csv')
        build_gradient(ColorStyle.JELLYFISH).save_to_file(path)

        assert load_colors_from_file(path) == BUILTIN_PALETTES[ColorStyle.JELLYFISH]

    def test_malformed_files(self):
        contents = [
            "R,G,B\n1,2,3\n4,5,6\n",
            "R,G,B\n1,2,3\n4,5,6\n7,8,9\n10,11,12\n",
            "R,G,B\n1,2,3\n4,5\n7,8,9\n",
            "R,G,B\n1,2,3\n4,x,6\n7,8,9\n",
            "R,G,B\n1,2,3\n4,300,6\n7,8,9\n",
        ]
        for content in contents:
            with self.assertRaises(ConfigError):
                load_colors_from_file(self.write(content))

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_colors_from_file(os.path.join(self.tmpdir.name, 'missing.csv'))


class TestPixelMapper(unittest.TestCase):

    def setUp(self):
        self.gradient = build_gradient(RGB)
        self.table = self.gradient.table

    def test_range_is_clamped(self):
        mapper = PixelMapper(self.gradient)

        assert mapper.map_value(0.0) == (255, 0, 0)
        assert mapper.map_value(-50.0) == (255, 0, 0)
        assert mapper.map_value(255.0) == (0, 0, 255)
        assert mapper.map_value(1024.0 * 3) == (0, 0, 255)

    def test_non_finite_values(self):
        mapper = PixelMapper(self.gradient)

        assert mapper.map_value(float('nan')) == (255, 0, 0)
        assert mapper.map_value(float('inf')) == (255, 0, 0)

    def test_inverse(self):
        mapper = PixelMapper(self.gradient, inverse=True)

        assert mapper.map_value(0.0) == (0, 0, 255)
        assert mapper.map_value(1000.0) == (255, 0, 0)

    def test_inverse_uses_complementary_index(self):
        field = numpy.random.default_rng(7).uniform(-10.0, 300.0, size=(40, 30))

        normal = PixelMapper(self.gradient).indices(field)
        inverse = PixelMapper(self.gradient, inverse=True).indices(field)

        assert numpy.abs(normal + inverse - (self.gradient.size - 1)).max() <= 1

    def test_map_field_shape(self):
        field = numpy.linspace(0.0, 255.0, 12).reshape(3, 4)

        colors = PixelMapper(self.gradient).map_field(field)

        assert colors.shape == (3, 4, 3)
        assert colors.dtype == numpy.uint8
        numpy.testing.assert_array_equal(colors[0, 0], self.table[0])
        numpy.testing.assert_array_equal(colors[-1, -1], self.table[-1])
