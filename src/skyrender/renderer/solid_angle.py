"""Per-texel solid angle correction for cubemap faces."""

import numpy as np

from ..models.cubemap import Cubemap


def _element_area(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Solid angle of the face region between the face centre and (x, y)."""
    return np.arctan2(x * y, np.sqrt(x * x + y * y + 1.0))


def texel_solid_angles(resolution: int) -> np.ndarray:
    """Exact solid angle subtended by each texel of one cubemap face.

    Uses the closed form from
    https://www.rorydriscoll.com/2012/01/15/cubemap-texel-solid-angle
    evaluated at the texel corners. Every face has the same layout, and the
    texels of one face sum to 4π/6.

    Args:
        resolution: Face edge length in texels

    Returns:
        np.ndarray: float64 array of shape (resolution, resolution), [row, column]
    """
    centers = 2.0 * (np.arange(resolution, dtype=np.float64) + 0.5) / resolution - 1.0
    half_texel = 1.0 / resolution

    u = centers[np.newaxis, :]
    v = centers[:, np.newaxis]
    u0, u1 = u - half_texel, u + half_texel
    v0, v1 = v - half_texel, v + half_texel

    return (
        _element_area(u0, v0)
        - _element_area(u0, v1)
        - _element_area(u1, v0)
        + _element_area(u1, v1)
    )


def normalize_by_solid_angle(cubemap: Cubemap) -> None:
    """Divide accumulated flux by texel solid angle, giving mean radiance.

    Texels whose solid angle is not a positive finite number are zeroed.

    Args:
        cubemap: Accumulated cubemap, rescaled in place
    """
    solid_angles = texel_solid_angles(cubemap.resolution)

    valid = np.isfinite(solid_angles) & (solid_angles > 0.0)
    inverse = np.zeros_like(solid_angles)
    np.divide(1.0, solid_angles, out=inverse, where=valid)
    inverse[~np.isfinite(inverse)] = 0.0

    cubemap.data *= inverse.astype(np.float32)[np.newaxis, :, :, np.newaxis]
