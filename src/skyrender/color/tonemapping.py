"""Exposure tone mapping for the low dynamic range previews."""

import numpy as np


def exposure_scale(exposure_value: float) -> float:
    """Scale from linear radiance to 8-bit code values: 255 * 2^(3 - EV)."""
    return 255.0 * 2.0 ** (3.0 - exposure_value)


def apply_exposure(radiance: np.ndarray, exposure_value: float) -> np.ndarray:
    """Apply exposure to linear radiance and clip to 8 bits.

    Values are scaled, clamped to [0, 255] and truncated toward zero.
    Non-finite inputs map to 0 (NaN) or 255 (+inf).

    Args:
        radiance: Linear RGB radiance, any shape
        exposure_value: Exposure value in stops

    Returns:
        np.ndarray: uint8 array with the same shape as radiance
    """
    scaled = np.asarray(radiance, dtype=np.float32) * np.float32(
        exposure_scale(exposure_value)
    )
    scaled = np.nan_to_num(scaled, nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(scaled, 0.0, 255.0).astype(np.uint8)


def to_rgba8(rgb8: np.ndarray) -> np.ndarray:
    """Append an opaque alpha channel to an 8-bit RGB image."""
    alpha = np.full(rgb8.shape[:-1] + (1,), 255, dtype=np.uint8)
    return np.concatenate([rgb8, alpha], axis=-1)
