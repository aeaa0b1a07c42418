"""Tests for the color lookup table, tone mapping and HDR packing."""

import numpy as np
import pytest

from skyrender.color import (
    ColorTable,
    apply_exposure,
    build_color_table,
    exposure_scale,
    float3_to_rgb9e5,
    rgb9e5_to_float3,
)
from skyrender.color.encoding import RGB9E5_MAX_VALUE
from skyrender.color.tonemapping import to_rgba8


@pytest.fixture(scope="module")
def color_table():
    return build_color_table()


class TestColorTable:
    def test_table_size(self, color_table):
        assert len(color_table) == 400
        assert color_table.colors.shape == (400, 3)

    def test_colors_normalized(self, color_table):
        """Every entry lies in [0, 1] with its brightest channel at 1."""
        assert np.all(color_table.colors >= 0.0)
        assert np.all(color_table.colors <= 1.0 + 1e-6)
        assert np.allclose(color_table.colors.max(axis=1), 1.0)

    def test_cool_stars_are_red(self, color_table):
        coolest = color_table.colors[0]

        assert coolest[0] > coolest[2], "1000 K should be redder than blue"

    def test_hot_stars_are_blue(self, color_table):
        hottest = color_table.colors[-1]

        assert hottest[2] > hottest[0], "40900 K should be bluer than red"

    def test_daylight_temperature_is_near_white(self, color_table):
        color = color_table.lookup(np.array([6500.0]))[0]

        assert np.all(color > 0.8)

    def test_built_once(self):
        assert build_color_table() is build_color_table()

    def test_read_only(self, color_table):
        with pytest.raises(ValueError):
            color_table.colors[0, 0] = 0.5

    @pytest.mark.parametrize(
        "temperature, expected_index",
        [
            (500.0, 0),
            (1000.0, 0),
            (1099.9, 0),
            (1100.0, 1),
            (5800.0, 48),
            (40900.0, 399),
            (100000.0, 399),
        ],
    )
    def test_index_for(self, temperature, expected_index):
        assert ColorTable.index_for(np.array([temperature]))[0] == expected_index

    def test_unknown_temperature_is_white(self, color_table):
        colors = color_table.lookup(np.array([0.0, 5800.0]))

        assert np.array_equal(colors[0], [1.0, 1.0, 1.0])
        assert np.array_equal(colors[1], color_table.colors[48])

    def test_rejects_wrong_shape(self):
        with pytest.raises(ValueError, match="shape"):
            ColorTable(np.ones((10, 3)))


class TestToneMapping:
    def test_exposure_scale(self):
        assert exposure_scale(3.0) == 255.0
        assert exposure_scale(2.0) == 510.0
        assert exposure_scale(-7.0) == 255.0 * 1024.0

    def test_values_truncate(self):
        """At EV 3 radiance maps straight to 255 * radiance, truncated."""
        radiance = np.array([0.0, 0.5, 0.999, 1.0, 2.0])

        ldr = apply_exposure(radiance, 3.0)

        assert ldr.dtype == np.uint8
        assert ldr.tolist() == [0, 127, 254, 255, 255]

    def test_non_finite_and_negative(self):
        radiance = np.array([np.nan, np.inf, -np.inf, -1.0])

        ldr = apply_exposure(radiance, 3.0)

        assert ldr.tolist() == [0, 255, 0, 0]

    def test_rgba_alpha_is_opaque(self):
        rgb = np.zeros((2, 3, 3), dtype=np.uint8)

        rgba = to_rgba8(rgb)

        assert rgba.shape == (2, 3, 4)
        assert np.all(rgba[..., 3] == 255)


class TestRgb9e5:
    def test_black(self):
        assert int(float3_to_rgb9e5(np.array([0.0, 0.0, 0.0]))) == 0

    def test_one(self):
        packed = int(float3_to_rgb9e5(np.array([1.0, 1.0, 1.0])))

        assert packed & 0x1FF == 256
        assert (packed >> 9) & 0x1FF == 256
        assert (packed >> 18) & 0x1FF == 256
        assert packed >> 27 == 16

    def test_channel_order(self):
        """Red occupies the low bits."""
        packed = float3_to_rgb9e5(np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]]))

        assert packed[0] & 0x1FF > 0
        assert (packed[0] >> 18) & 0x1FF == 0
        assert packed[1] & 0x1FF == 0
        assert (packed[1] >> 18) & 0x1FF > 0

    def test_precision_across_range(self):
        rng = np.random.default_rng(5)
        values = 10.0 ** rng.uniform(-4, 4, size=(1000, 3))

        decoded = rgb9e5_to_float3(float3_to_rgb9e5(values))

        # Error is bounded by half a mantissa step of the largest channel
        step = values.max(axis=1, keepdims=True) / 256.0
        assert np.all(np.abs(decoded - values) <= step)

    def test_mantissa_rounding_overflow(self):
        """A value that rounds up to 512 moves to the next exponent."""
        decoded = rgb9e5_to_float3(float3_to_rgb9e5(np.array([0.9999, 0.0, 0.0])))

        assert np.isclose(decoded[0], 1.0)

    def test_clamping(self):
        values = np.array([[-1.0, np.nan, 1e9]])

        decoded = rgb9e5_to_float3(float3_to_rgb9e5(values))[0]

        assert decoded[0] == 0.0
        assert decoded[1] == 0.0
        assert decoded[2] == RGB9E5_MAX_VALUE
