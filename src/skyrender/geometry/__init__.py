from .projection import (
    direction_from_radec,
    project_direction,
    project_radec,
    project_records,
    texel_index,
)

__all__ = [
    "direction_from_radec",
    "project_direction",
    "project_radec",
    "project_records",
    "texel_index",
]
