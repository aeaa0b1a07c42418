from dataclasses import dataclass
from typing import Optional

from ..errors import ConfigError

MAX_COMPRESSION_LEVEL = 22
DEFAULT_MIN_MAGNITUDE = -10.0


@dataclass(frozen=True)
class RenderConfig:
    resolution: int = 1024
    min_magnitude: Optional[float] = None
    exposure_value: float = -7.0
    compression_level: int = MAX_COMPRESSION_LEVEL

    def __post_init__(self):
        if self.resolution < 1:
            raise ConfigError("resolution", self.resolution, "must be at least 1")
        if not 1 <= self.compression_level <= MAX_COMPRESSION_LEVEL:
            raise ConfigError(
                "compression_level",
                self.compression_level,
                f"must be between 1 and {MAX_COMPRESSION_LEVEL}",
            )

    @property
    def magnitude_cutoff(self) -> float:
        """Magnitude below which stars are kept out of the raster."""
        if self.min_magnitude is None:
            return DEFAULT_MIN_MAGNITUDE
        return self.min_magnitude
