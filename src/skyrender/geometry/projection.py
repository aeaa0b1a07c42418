"""Gnomonic projection of sky directions onto cubemap faces.

Directions are built from equatorial coordinates as

    x = -sin(ra) cos(dec),  y = cos(ra) cos(dec),  z = sin(dec)

and assigned to a face by testing the dominant axis in a fixed priority order:
+X, -X, +Y, -Y, +Z, -Z. The first predicate that holds wins, so directions
lying exactly on a cube edge or corner always resolve to the same face.
"""

import math
from typing import Tuple

import numpy as np


def direction_from_radec(ra_deg, dec_deg):
    """Convert right ascension and declination to a unit direction.

    Args:
        ra_deg: Right ascension in degrees (scalar or array)
        dec_deg: Declination in degrees (scalar or array)

    Returns:
        Tuple (x, y, z) of float64 arrays
    """
    ra = np.radians(np.asarray(ra_deg, dtype=np.float64))
    dec = np.radians(np.asarray(dec_deg, dtype=np.float64))
    cos_dec = np.cos(dec)
    return -np.sin(ra) * cos_dec, np.cos(ra) * cos_dec, np.sin(dec)


def _texel_coordinate(c, resolution: int):
    c = np.nan_to_num(c, nan=0.0)
    texel = np.floor((c * 0.5 + 0.5) * resolution)
    return np.clip(texel, 0, resolution - 1).astype(np.intp)


def project_direction(
    x: float, y: float, z: float, resolution: int
) -> Tuple[int, int, int]:
    """Project one direction vector to (face, texel_x, texel_y)."""
    ax, ay, az = abs(x), abs(y), abs(z)

    if x >= max(ay, az):
        face, u, v = 0, z, y
    elif -x >= max(ay, az):
        face, u, v = 1, -z, y
    elif y >= max(ax, az):
        face, u, v = 3, x, z
    elif -y >= max(ax, az):
        face, u, v = 2, x, -z
    elif z >= max(ax, ay):
        face, u, v = 5, -x, y
    else:
        face, u, v = 4, x, y

    major = max(ax, ay, az)
    texel_x = math.floor((u / major * 0.5 + 0.5) * resolution)
    texel_y = math.floor((v / major * 0.5 + 0.5) * resolution)
    texel_x = min(max(texel_x, 0), resolution - 1)
    texel_y = min(max(texel_y, 0), resolution - 1)
    return face, texel_x, texel_y


def project_radec(
    ra_deg: float, dec_deg: float, resolution: int
) -> Tuple[int, int, int]:
    """Project one catalog position (degrees) to (face, texel_x, texel_y)."""
    x, y, z = direction_from_radec(ra_deg, dec_deg)
    return project_direction(float(x), float(y), float(z), resolution)


def project_records(
    ra_deg: np.ndarray, dec_deg: np.ndarray, resolution: int
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized projection of many catalog positions.

    Args:
        ra_deg: Right ascensions in degrees, shape (N,)
        dec_deg: Declinations in degrees, shape (N,)
        resolution: Cubemap face edge length in texels

    Returns:
        Tuple of intp arrays (face, texel_x, texel_y), each of shape (N,)
    """
    x, y, z = direction_from_radec(ra_deg, dec_deg)
    ax, ay, az = np.abs(x), np.abs(y), np.abs(z)

    # np.select takes the first true condition, matching the priority order
    conditions = [
        x >= np.maximum(ay, az),
        -x >= np.maximum(ay, az),
        y >= np.maximum(ax, az),
        -y >= np.maximum(ax, az),
        z >= np.maximum(ax, ay),
    ]
    face = np.select(conditions, [0, 1, 3, 2, 5], default=4)
    u = np.select(conditions, [z, -z, x, x, -x], default=x)
    v = np.select(conditions, [y, y, z, -z, y], default=y)

    major = np.maximum(np.maximum(ax, ay), az)
    with np.errstate(invalid="ignore", divide="ignore"):
        u = u / major
        v = v / major

    return (
        face.astype(np.intp),
        _texel_coordinate(u, resolution),
        _texel_coordinate(v, resolution),
    )


def texel_index(face, texel_x, texel_y, resolution: int):
    """Flat texel index into a cubemap stored as [face, row, column]."""
    return (face * resolution + texel_y) * resolution + texel_x
