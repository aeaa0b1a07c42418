from .blackbody import ColorTable, build_color_table
from .encoding import float3_to_rgb9e5, rgb9e5_to_float3, xyz_to_linear_srgb
from .tonemapping import apply_exposure, exposure_scale

__all__ = [
    "ColorTable",
    "build_color_table",
    "float3_to_rgb9e5",
    "rgb9e5_to_float3",
    "xyz_to_linear_srgb",
    "apply_exposure",
    "exposure_scale",
]
