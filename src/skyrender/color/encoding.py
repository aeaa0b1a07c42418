"""Color space conversion and shared-exponent HDR packing."""

import numpy as np


# XYZ to linear sRGB transformation matrix (D65 illuminant)
_XYZ_TO_SRGB_MATRIX = np.array(
    [
        [3.2406, -1.5372, -0.4986],
        [-0.9689, 1.8758, 0.0415],
        [0.0557, -0.2040, 1.0570],
    ]
)

RGB9E5_MANTISSA_BITS = 9
RGB9E5_EXPONENT_BIAS = 15
RGB9E5_MAX_EXPONENT = 31
# Largest representable channel value: (511 / 512) * 2^16
RGB9E5_MAX_VALUE = (
    ((1 << RGB9E5_MANTISSA_BITS) - 1)
    / (1 << RGB9E5_MANTISSA_BITS)
    * 2.0 ** (RGB9E5_MAX_EXPONENT - RGB9E5_EXPONENT_BIAS)
)


def xyz_to_linear_srgb(xyz: np.ndarray) -> np.ndarray:
    """Convert XYZ to linear sRGB using transformation matrix.

    Args:
        xyz: XYZ tristimulus values

    Returns:
        np.ndarray: Linear sRGB values
    """
    return _XYZ_TO_SRGB_MATRIX @ xyz


def float3_to_rgb9e5(rgb: np.ndarray) -> np.ndarray:
    """Pack linear RGB triples into E5B9G9R9 32-bit words.

    Each word holds three 9-bit mantissas (red in the low bits) and a 5-bit
    exponent shared by all channels. Channels are clamped to
    [0, RGB9E5_MAX_VALUE]; NaN becomes 0.

    Args:
        rgb: Array of shape (..., 3)

    Returns:
        np.ndarray: uint32 array of shape (...)
    """
    rgb = np.nan_to_num(
        np.asarray(rgb, dtype=np.float64), nan=0.0, posinf=RGB9E5_MAX_VALUE
    )
    clamped = np.clip(rgb, 0.0, RGB9E5_MAX_VALUE)
    max_channel = clamped.max(axis=-1)

    # frexp gives max_channel = m * 2^e with m in [0.5, 1), so floor(log2) = e - 1
    _, exponent = np.frexp(max_channel)
    floor_log2 = np.where(max_channel > 0, exponent - 1, -RGB9E5_EXPONENT_BIAS - 1)
    shared_exponent = (
        np.maximum(-RGB9E5_EXPONENT_BIAS - 1, floor_log2) + 1 + RGB9E5_EXPONENT_BIAS
    )

    scale = np.ldexp(
        1.0, shared_exponent - RGB9E5_EXPONENT_BIAS - RGB9E5_MANTISSA_BITS
    )
    max_mantissa = np.floor(max_channel / scale + 0.5)
    overflow = max_mantissa == (1 << RGB9E5_MANTISSA_BITS)
    shared_exponent = np.where(overflow, shared_exponent + 1, shared_exponent)
    scale = np.where(overflow, scale * 2.0, scale)

    mantissas = np.floor(clamped / scale[..., np.newaxis] + 0.5).astype(np.uint32)

    return (
        mantissas[..., 0]
        | (mantissas[..., 1] << np.uint32(9))
        | (mantissas[..., 2] << np.uint32(18))
        | (shared_exponent.astype(np.uint32) << np.uint32(27))
    )


def rgb9e5_to_float3(packed: np.ndarray) -> np.ndarray:
    """Unpack E5B9G9R9 words back into linear RGB triples."""
    packed = np.asarray(packed, dtype=np.uint32)
    mask = np.uint32((1 << RGB9E5_MANTISSA_BITS) - 1)

    mantissas = np.stack(
        [
            packed & mask,
            (packed >> np.uint32(9)) & mask,
            (packed >> np.uint32(18)) & mask,
        ],
        axis=-1,
    ).astype(np.float64)
    exponent = (packed >> np.uint32(27)).astype(np.int64)
    scale = np.ldexp(1.0, exponent - RGB9E5_EXPONENT_BIAS - RGB9E5_MANTISSA_BITS)

    return mantissas * scale[..., np.newaxis]
