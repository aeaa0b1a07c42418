from dataclasses import dataclass
from pathlib import Path

import numpy as np

# Cache files hold little-endian float32 quadruples: ra, dec, magnitude, temperature
RECORD_DTYPE = np.dtype("<f4")
RECORD_FIELDS = 4

BRIGHT_STAR_DTYPE = np.dtype(
    [
        ("ra", "<f4"),
        ("dec", "<f4"),
        ("magnitude", "<f4"),
        ("r", "u1"),
        ("g", "u1"),
        ("b", "u1"),
        ("pad", "u1"),
    ]
)


@dataclass(frozen=True)
class CatalogRecord:
    right_ascension: float
    declination: float
    magnitude: float
    temperature: float = 0.0

    def as_row(self) -> tuple[float, float, float, float]:
        return (
            self.right_ascension,
            self.declination,
            self.magnitude,
            self.temperature,
        )


@dataclass(frozen=True)
class ShardEntry:
    checksum: str
    filename: str

    def cache_path(self, cache_dir: Path) -> Path:
        return Path(cache_dir) / f"{self.filename}.bin"
