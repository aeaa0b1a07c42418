"""Blackbody temperature to RGB color lookup table."""

from functools import lru_cache

import numpy as np
from colour import SpectralShape, sd_blackbody, sd_ones, sd_to_XYZ

from .encoding import xyz_to_linear_srgb

TABLE_SIZE = 400
MIN_TEMPERATURE_K = 1000.0
TEMPERATURE_STEP_K = 100.0

_SPECTRAL_SHAPE = SpectralShape(380, 780, 5)


class ColorTable:
    """Read-only mapping from effective temperature to normalized linear RGB."""

    def __init__(self, colors: np.ndarray):
        colors = np.array(colors, dtype=np.float32)
        if colors.shape != (TABLE_SIZE, 3):
            raise ValueError(f"Color table must have shape ({TABLE_SIZE}, 3)")

        self.colors = colors
        self.colors.setflags(write=False)

    def __len__(self) -> int:
        return len(self.colors)

    @staticmethod
    def index_for(temperatures: np.ndarray) -> np.ndarray:
        """Table index for each temperature: floor((T - 1000) / 100) in [0, 399]."""
        temperatures = np.nan_to_num(
            np.asarray(temperatures, dtype=np.float64), nan=MIN_TEMPERATURE_K
        )
        index = np.floor((temperatures - MIN_TEMPERATURE_K) / TEMPERATURE_STEP_K)
        return np.clip(index, 0, TABLE_SIZE - 1).astype(np.intp)

    def lookup(self, temperatures: np.ndarray) -> np.ndarray:
        """Look up colors for an array of temperatures.

        A temperature of exactly 0 means unknown and maps to white.

        Args:
            temperatures: Effective temperatures in Kelvin, shape (N,)

        Returns:
            np.ndarray: float32 RGB colors with shape (N, 3)
        """
        temperatures = np.asarray(temperatures)
        colors = self.colors[self.index_for(temperatures)]
        unknown = temperatures == 0.0
        return np.where(unknown[:, np.newaxis], np.float32(1.0), colors)


def blackbody_rgb(temperature_k: float) -> np.ndarray:
    """Linear sRGB color of a blackbody, scaled so the largest channel is 1.

    Integrates the Planck distribution against the CIE 1931 2° standard
    observer under an equal-energy illuminant, so the result is the color of
    the emitter itself rather than of a surface lit by D65.

    Args:
        temperature_k: Blackbody temperature in Kelvin

    Returns:
        np.ndarray: RGB triple with components in [0, 1]
    """
    sd = sd_blackbody(temperature_k, _SPECTRAL_SHAPE)
    xyz = sd_to_XYZ(sd, illuminant=sd_ones(_SPECTRAL_SHAPE), method="ASTM E308")

    rgb = np.maximum(xyz_to_linear_srgb(np.asarray(xyz, dtype=np.float64)), 0.0)
    peak = rgb.max()
    if peak <= 0:
        return np.ones(3)

    return rgb / peak


@lru_cache(maxsize=1)
def build_color_table() -> ColorTable:
    """Sample the blackbody model at 1000 K + 100 K * i for i in [0, 400)."""
    temperatures = MIN_TEMPERATURE_K + TEMPERATURE_STEP_K * np.arange(TABLE_SIZE)
    return ColorTable(np.array([blackbody_rgb(t) for t in temperatures]))
