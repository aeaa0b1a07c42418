"""Radiometric accumulation of catalog stars into a cubemap."""

from typing import Iterable

import numpy as np

from ..color.blackbody import ColorTable
from ..geometry.projection import project_records, texel_index
from ..models.catalog import BRIGHT_STAR_DTYPE, RECORD_FIELDS
from ..models.cubemap import Cubemap

# Zero point of the magnitude scale used to turn Gaia G magnitudes into flux
PHOTOMETRIC_ZERO_POINT = 14.18


def magnitude_to_flux(magnitude: np.ndarray) -> np.ndarray:
    """Convert apparent magnitude to linear flux.

    flux = 10^(0.4 * (-magnitude - zero_point))
    Lower magnitude = brighter star = more flux.

    Args:
        magnitude: Apparent magnitude (scalar or array)

    Returns:
        np.ndarray: Linear flux as float64
    """
    magnitude = np.asarray(magnitude, dtype=np.float64)
    return 10.0 ** (0.4 * (-magnitude - PHOTOMETRIC_ZERO_POINT))


def _bright_star_records(
    ra_deg: np.ndarray, dec_deg: np.ndarray, magnitude: np.ndarray, colors: np.ndarray
) -> np.ndarray:
    stars = np.zeros(len(ra_deg), dtype=BRIGHT_STAR_DTYPE)
    stars["ra"] = np.radians(ra_deg.astype(np.float32))
    stars["dec"] = np.radians(dec_deg.astype(np.float32))
    stars["magnitude"] = magnitude

    rgb8 = np.clip(np.round(colors * 255.0), 0, 255).astype(np.uint8)
    stars["r"] = rgb8[:, 0]
    stars["g"] = rgb8[:, 1]
    stars["b"] = rgb8[:, 2]
    return stars


def accumulate_records(
    cubemap: Cubemap,
    records: np.ndarray,
    color_table: ColorTable,
    min_magnitude: float,
) -> np.ndarray:
    """Add a batch of catalog records into the cubemap.

    Stars with magnitude below ``min_magnitude`` are not rasterized; they are
    returned as bright-star records instead, in input order. Every other star
    adds flux * color to the texel it projects into.

    Args:
        cubemap: Accumulation target, modified in place
        records: float32 array of shape (N, 4): ra_deg, dec_deg, magnitude, temperature
        color_table: Temperature to color lookup
        min_magnitude: Bright-star cutoff magnitude

    Returns:
        np.ndarray: Bright stars as a BRIGHT_STAR_DTYPE array
    """
    records = np.asarray(records, dtype=np.float32).reshape(-1, RECORD_FIELDS)
    ra, dec, magnitude, temperature = records.T

    colors = color_table.lookup(temperature)
    bright = magnitude < min_magnitude
    faint = ~bright

    face, texel_x, texel_y = project_records(ra[faint], dec[faint], cubemap.resolution)
    index = texel_index(face, texel_x, texel_y, cubemap.resolution)
    contribution = magnitude_to_flux(magnitude[faint])[:, np.newaxis] * colors[faint]

    # add.at accumulates repeated indices, so stars sharing a texel superpose
    np.add.at(cubemap.texels(), index, contribution.astype(np.float32))

    return _bright_star_records(
        ra[bright], dec[bright], magnitude[bright], colors[bright]
    )


def accumulate_catalog(
    cubemap: Cubemap,
    batches: Iterable[np.ndarray],
    color_table: ColorTable,
    min_magnitude: float,
) -> np.ndarray:
    """Accumulate record batches in order, collecting every bright star."""
    bright_stars = [np.zeros(0, dtype=BRIGHT_STAR_DTYPE)]
    for records in batches:
        bright_stars.append(
            accumulate_records(cubemap, records, color_table, min_magnitude)
        )

    return np.concatenate(bright_stars)
