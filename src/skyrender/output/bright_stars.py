"""Raw binary list of stars too bright to rasterize."""

from pathlib import Path

import numpy as np

from ..errors import EncodeError
from ..fileio import atomic_write_bytes
from ..models.catalog import BRIGHT_STAR_DTYPE


def write_bright_stars(stars: np.ndarray, output_path) -> bool:
    """Write bright-star records verbatim, 16 bytes each.

    Nothing is written for an empty list.

    Returns:
        True if the file was written
    """
    if len(stars) == 0:
        return False

    data = np.ascontiguousarray(stars, dtype=BRIGHT_STAR_DTYPE).tobytes()
    try:
        atomic_write_bytes(output_path, data)
    except OSError as e:
        raise EncodeError(str(output_path), str(e)) from e

    return True


def read_bright_stars(path) -> np.ndarray:
    return np.frombuffer(Path(path).read_bytes(), dtype=BRIGHT_STAR_DTYPE)
