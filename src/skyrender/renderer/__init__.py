from .accumulator import (
    PHOTOMETRIC_ZERO_POINT,
    accumulate_catalog,
    accumulate_records,
    magnitude_to_flux,
)
from .solid_angle import normalize_by_solid_angle, texel_solid_angles

__all__ = [
    "PHOTOMETRIC_ZERO_POINT",
    "accumulate_catalog",
    "accumulate_records",
    "magnitude_to_flux",
    "normalize_by_solid_angle",
    "texel_solid_angles",
]
